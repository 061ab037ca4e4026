"""
Single elimination round generation and advancement.
"""
import logging
import random
from typing import Dict, List, Optional, Sequence, Tuple

from .draw import shuffle
from .models import Assignment, Matchup, MatchStatus

logger = logging.getLogger(__name__)

BYE_SCORE = (3, 0)


def get_round_name(round_matches: Sequence[Matchup], round_number: int) -> str:
    """Get the name of a round based on the matches it holds."""
    has_third_place = any(m.is_third_place for m in round_matches)
    bracket_count = sum(1 for m in round_matches if not m.is_third_place)
    if has_third_place:
        return "Final & Third Place"
    elif bracket_count == 1:
        return "Final"
    elif bracket_count == 2:
        return "Semifinal"
    elif bracket_count == 4:
        return "Quarterfinal"
    elif bracket_count == 8:
        return "Round of 16"
    else:
        return f"Round {round_number}"


def make_match_id(round_number: int, pair_index: int) -> str:
    return f"round-{round_number}-match-{pair_index}"


def make_third_place_id(round_number: int) -> str:
    return f"round-{round_number}-3rd-place"


def create_round_matchups(assignments: Sequence[Assignment], round_number: int,
                          bye_score: Tuple[int, int] = BYE_SCORE) -> List[Matchup]:
    """
    Pair consecutive entrants (0 v 1, 2 v 3, ...) into the matches of one round.

    The caller shuffles beforehand. An odd entrant out gets a bye: a match
    without player2, already finished and won with the placeholder score.
    """
    matchups = []
    for pair_index, i in enumerate(range(0, len(assignments), 2)):
        match_id = make_match_id(round_number, pair_index)
        if i + 1 < len(assignments):
            matchups.append(Matchup(
                id=match_id,
                player1=assignments[i],
                player2=assignments[i + 1],
                status=MatchStatus.SCHEDULED,
            ))
        else:
            matchups.append(Matchup.bye(match_id, assignments[i], bye_score))
    return matchups


def bracket_matches(matchups: Sequence[Matchup]) -> List[Matchup]:
    """Matches of the round proper, without the third place playoff."""
    return [m for m in matchups if not m.is_third_place]


def undecided_matches(matchups: Sequence[Matchup]) -> List[Matchup]:
    return [m for m in matchups if not m.is_decided]


def all_matches_decided(matchups: Sequence[Matchup]) -> bool:
    return bool(matchups) and not undecided_matches(matchups)


def collect_round_results(matchups: Sequence[Matchup]) -> Tuple[List[Assignment], List[Dict]]:
    """
    Split a round into advancing winners and beaten entrants.

    Losers are returned as {'assignment', 'goal_diff', 'goals_for'} measured in
    the match they lost. Byes produce a winner and no loser; undecided
    matches produce neither.
    """
    winners = []
    losers = []
    for match in matchups:
        if not match.is_decided:
            continue
        winners.append(match.winner)
        if match.is_bye:
            continue
        score1 = match.score1 or 0
        score2 = match.score2 or 0
        if match.winner_id == match.player1.player_id:
            losers.append({'assignment': match.player2, 'goal_diff': score2 - score1, 'goals_for': score2})
        else:
            losers.append({'assignment': match.player1, 'goal_diff': score1 - score2, 'goals_for': score1})
    return winners, losers


def rank_losers(losers: Sequence[Dict]) -> List[Dict]:
    """Best loser first by goal difference, then goals for. Exact ties keep insertion order."""
    return sorted(losers, key=lambda x: (-x['goal_diff'], -x['goals_for']))


def advance_bracket(matchups: Sequence[Matchup], round_number: int, rng: random.Random,
                    bye_score: Tuple[int, int] = BYE_SCORE) -> Optional[List[Matchup]]:
    """
    Build the round that follows a completed one.

    Args:
        matchups: Matches of the current round. A third place match is ignored.
        round_number: Number of the current round; the new round is round_number + 1.
        rng: Random source used to re-shuffle the pairings.

    Returns:
        The matches of the next round, or None when there is nothing to advance
        (no decided match, or the current round is already the final).

    An odd number of winners is evened out by promoting the best loser. When
    the new round is the final and at least two losers exist, a third place
    match between the two best losers is appended.
    """
    active = bracket_matches(matchups)
    winners, losers = collect_round_results(active)

    if not winners:
        return None
    if len(winners) == 1 and len(active) == 1:
        return None

    ranked_losers = rank_losers(losers)
    entrants = list(winners)
    if len(entrants) % 2 != 0 and ranked_losers:
        lucky_loser = ranked_losers[0]['assignment']
        logger.info('Promoting %s as lucky loser into round %d', lucky_loser.player.name, round_number + 1)
        entrants.append(lucky_loser)

    next_round = round_number + 1
    new_matchups = create_round_matchups(shuffle(entrants, rng), next_round, bye_score)

    if len(new_matchups) == 1 and len(ranked_losers) >= 2:
        new_matchups.append(Matchup(
            id=make_third_place_id(next_round),
            player1=ranked_losers[0]['assignment'],
            player2=ranked_losers[1]['assignment'],
            score1=0,
            score2=0,
            is_third_place=True,
            status=MatchStatus.SCHEDULED,
        ))

    logger.info('Round %d generated with %d matches from %d entrants',
                next_round, len(new_matchups), len(entrants))
    return new_matchups


def find_final(matchups: Sequence[Matchup]) -> Optional[Matchup]:
    """The final, if the given round is the terminal one."""
    active = bracket_matches(matchups)
    if len(active) != 1 or active[0].is_bye:
        return None
    return active[0]


def find_third_place(matchups: Sequence[Matchup]) -> Optional[Matchup]:
    for match in matchups:
        if match.is_third_place:
            return match
    return None


def is_final_stage(matchups: Sequence[Matchup]) -> bool:
    return find_final(matchups) is not None


def get_podium(matchups: Sequence[Matchup]) -> Optional[Dict]:
    """
    Champion, runner-up and third place of a finished final stage.

    Returns None until the final and, if present, the third place match
    are both decided.
    """
    final = find_final(matchups)
    if final is None or not all_matches_decided(matchups):
        return None
    third_place_match = find_third_place(matchups)
    return {
        'champion': final.winner,
        'runner_up': final.loser,
        'third_place': third_place_match.winner if third_place_match else None,
    }
