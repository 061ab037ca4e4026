"""
Initial random draw of players to teams.
"""
import logging
import random
import secrets
from typing import List, Optional, Sequence, TypeVar

from .errors import InsufficientTeamsError, NotEnoughPlayersError
from .models import Assignment, Player, Team

logger = logging.getLogger(__name__)

T = TypeVar('T')


def make_rng(seed: Optional[int] = None) -> random.Random:
    """Build the random source every shuffle in the engine draws from."""
    return random.Random(seed)


def shuffle(items: Sequence[T], rng: random.Random) -> List[T]:
    """Return a Fisher-Yates shuffled copy of items; the input is not touched."""
    result = list(items)
    for i in range(len(result) - 1, 0, -1):
        j = rng.randint(0, i)
        result[i], result[j] = result[j], result[i]
    return result


def new_player_id() -> str:
    return secrets.token_hex(6)


def sort_teams_by_rating(teams: Sequence[Team]) -> List[Team]:
    """Strongest first. Equal ratings keep their pool order."""
    return sorted(teams, key=lambda t: -t.rating)


def perform_draw(players: Sequence[Player], teams: Sequence[Team], rng: random.Random) -> List[Assignment]:
    """
    Pair every player with a team.

    Teams are sorted by rating (descending) and zipped by index against a
    shuffled copy of the players, so the strongest team goes to a random
    player rather than to a fixed one.

    Raises:
        NotEnoughPlayersError: no players were given.
        InsufficientTeamsError: fewer teams than players.
    """
    if not players:
        raise NotEnoughPlayersError('No players registered.')
    if len(teams) < len(players):
        raise InsufficientTeamsError(len(teams), len(players))

    sorted_teams = sort_teams_by_rating(teams)
    shuffled_players = shuffle(players, rng)
    assignments = [Assignment(player, sorted_teams[i]) for i, player in enumerate(shuffled_players)]
    logger.info('Drew %d players against a pool of %d teams', len(players), len(teams))
    return assignments
