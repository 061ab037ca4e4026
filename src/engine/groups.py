"""
Group stage generation, standings and qualification.
"""
import logging
import math
import random
import string
from itertools import combinations
from typing import Dict, List, Optional, Sequence

from .draw import shuffle
from .models import Assignment, Group, Matchup, MatchStatus

logger = logging.getLogger(__name__)

TARGET_GROUP_SIZE = 4
MIN_PLAYERS_FOR_GROUPS = 4
QUALIFIERS_PER_GROUP = 2


def group_label(index: int) -> str:
    """'A', 'B', ..., 'Z', 'AA', 'AB', ..."""
    letters = string.ascii_uppercase
    label = ''
    index += 1
    while index:
        index, rem = divmod(index - 1, len(letters))
        label = letters[rem] + label
    return label


def calculate_group_count(num_assignments: int, group_size: int = TARGET_GROUP_SIZE) -> int:
    if num_assignments <= 0:
        return 0
    return math.ceil(num_assignments / group_size)


def generate_round_robin(group_id: str, assignments: Sequence[Assignment], rng: random.Random) -> List[Matchup]:
    """
    Every unordered pair of the group plays once.

    The home side alternates with the parity of the index sum so nobody is
    player1 in every match; the resulting fixture list is then shuffled.
    """
    matches = []
    for i, j in combinations(range(len(assignments)), 2):
        if (i + j) % 2 == 0:
            player1, player2 = assignments[i], assignments[j]
        else:
            player1, player2 = assignments[j], assignments[i]
        matches.append(Matchup(
            id=f"g{group_id}-{i}-{j}",
            player1=player1,
            player2=player2,
            status=MatchStatus.SCHEDULED,
        ))
    return shuffle(matches, rng)


def generate_groups(assignments: Sequence[Assignment], rng: random.Random,
                    group_size: int = TARGET_GROUP_SIZE) -> List[Group]:
    """
    Split assignments into ceil(n / group_size) groups labelled from 'A'.

    Assignment i goes to group i mod group_count, which interleaves the
    rating-ordered draw across groups instead of blocking it.
    """
    if len(assignments) < MIN_PLAYERS_FOR_GROUPS:
        raise ValueError(f'A group stage needs at least {MIN_PLAYERS_FOR_GROUPS} players')

    num_groups = calculate_group_count(len(assignments), group_size)
    members = [[] for _ in range(num_groups)]
    for i, assignment in enumerate(assignments):
        members[i % num_groups].append(assignment)

    groups = []
    for index, group_assignments in enumerate(members):
        group_id = group_label(index)
        groups.append(Group(group_id, group_assignments, generate_round_robin(group_id, group_assignments, rng)))

    logger.info('Generated %d groups for %d players', num_groups, len(assignments))
    return groups


def counts_for_table(match: Matchup) -> bool:
    """
    Finished matches count. In-progress matches with both scores count as
    live provisional results; scheduled ones never do.
    """
    if match.is_bye or not match.has_scores:
        return False
    return match.status in (MatchStatus.FINISHED, MatchStatus.IN_PROGRESS)


def calculate_group_table(group: Group, points_for_win: int = 3, points_for_draw: int = 1) -> List[Dict]:
    """
    Calculate the standings table of one group.

    Returns: [{'assignment': Assignment, 'player_id': id, 'player': name, 'team': name,
               'played': n, 'wins': n, 'draws': n, 'losses': n, 'goals_for': n,
               'goals_against': n, 'goal_diff': n, 'points': n}, ...]

    Ranking: points -> goal difference -> goals for. Remaining ties keep the
    group's assignment order.
    """
    stats = {}
    for assignment in group.assignments:
        stats[assignment.player_id] = {
            'assignment': assignment,
            'player_id': assignment.player_id,
            'player': assignment.player.name,
            'team': assignment.team.name,
            'played': 0,
            'wins': 0,
            'draws': 0,
            'losses': 0,
            'goals_for': 0,
            'goals_against': 0,
            'points': 0,
        }

    for match in group.matches:
        if not counts_for_table(match):
            continue
        p1 = stats.get(match.player1.player_id)
        p2 = stats.get(match.player2.player_id)
        if p1 is None or p2 is None:
            logger.warning('Group %s match %s references a player outside the group', group.id, match.id)
            continue

        p1['played'] += 1
        p2['played'] += 1
        p1['goals_for'] += match.score1
        p1['goals_against'] += match.score2
        p2['goals_for'] += match.score2
        p2['goals_against'] += match.score1

        if match.score1 > match.score2:
            p1['wins'] += 1
            p2['losses'] += 1
            p1['points'] += points_for_win
        elif match.score2 > match.score1:
            p2['wins'] += 1
            p1['losses'] += 1
            p2['points'] += points_for_win
        else:
            p1['draws'] += 1
            p2['draws'] += 1
            p1['points'] += points_for_draw
            p2['points'] += points_for_draw

    for row in stats.values():
        row['goal_diff'] = row['goals_for'] - row['goals_against']

    return sorted(
        stats.values(),
        key=lambda x: (-x['points'], -x['goal_diff'], -x['goals_for'])
    )


def pending_group_matches(groups: Sequence[Group]) -> List[Matchup]:
    return [m for g in groups for m in g.matches if not m.is_finished]


def all_group_matches_finished(groups: Sequence[Group]) -> bool:
    return not pending_group_matches(groups)


def select_qualifiers(groups: Sequence[Group], per_group: int = QUALIFIERS_PER_GROUP,
                      points_for_win: int = 3, points_for_draw: int = 1) -> Optional[List[Assignment]]:
    """
    Top `per_group` of every group, in group order.

    Returns None while any group match is unfinished.
    """
    if not all_group_matches_finished(groups):
        return None
    qualifiers = []
    for group in groups:
        table = calculate_group_table(group, points_for_win, points_for_draw)
        qualifiers.extend(row['assignment'] for row in table[:per_group])
    return qualifiers
