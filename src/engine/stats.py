"""
Player statistics and awards across the whole tournament.
"""
import logging
import re
from typing import Dict, Iterable, List, Optional

from .models import Matchup, TournamentState

logger = logging.getLogger(__name__)

POINTS_FOR_WIN = 3
POINTS_FOR_DRAW = 1
POINTS_FOR_SHOOTOUT_WIN = 2
POINTS_FOR_SHOOTOUT_LOSS = 1

_ROUND_ID = re.compile(r'^round-(\d+)-')


def get_stage_label(match: Matchup) -> str:
    """Human-readable stage derived from the match id pattern."""
    if match.id.startswith('g'):
        return 'Group Stage'
    if match.is_third_place:
        return 'Third Place'
    found = _ROUND_ID.match(match.id)
    if found:
        return f'Knockout (R{found.group(1)})'
    return 'Tournament'


def _new_record(assignment) -> Dict:
    return {
        'id': assignment.player_id,
        'name': assignment.player.name,
        'team': assignment.team.name,
        'team_logo': assignment.team.logo,
        'played': 0,
        'wins': 0,
        'draws': 0,
        'losses': 0,
        'goals_for': 0,
        'goals_against': 0,
        'goal_diff': 0,
        'points': 0,
        'form': [],
        'match_history': [],
    }


def _match_results(match: Matchup, points: Dict) -> tuple:
    """Return ((result1, points1), (result2, points2)) for a finished match."""
    p1_id = match.player1.player_id
    p2_id = match.player2.player_id
    if match.score1 > match.score2:
        return ('W', points['win']), ('L', 0)
    if match.score2 > match.score1:
        return ('L', 0), ('W', points['win'])
    # Level on goals: a winner means a shootout decided it
    if match.winner_id == p1_id:
        return ('W', points['shootout_win']), ('L', points['shootout_loss'])
    if match.winner_id == p2_id:
        return ('L', points['shootout_loss']), ('W', points['shootout_win'])
    return ('D', points['draw']), ('D', points['draw'])


def _apply(record: Dict, result: str, points: int, own: int, opp: int, opponent, stage: str):
    record['played'] += 1
    record['goals_for'] += own
    record['goals_against'] += opp
    record['goal_diff'] += own - opp
    record['points'] += points
    if result == 'W':
        record['wins'] += 1
    elif result == 'L':
        record['losses'] += 1
    else:
        record['draws'] += 1
    record['form'].append({'result': result, 'stage': stage})
    record['match_history'].append({
        'stage': stage,
        'opponent_id': opponent.player_id,
        'opponent_name': opponent.player.name,
        'opponent_team': opponent.team.name,
        'opponent_logo': opponent.team.logo,
        'score_own': own,
        'score_opp': opp,
        'result': result,
    })


def aggregate_player_stats(matches: Iterable[Matchup], known_player_ids: Optional[set] = None,
                           points: Optional[Dict] = None) -> List[Dict]:
    """
    Accumulate per-player records over matches, in the order given.

    Only finished matches with an opponent and both scores count. Records that
    cannot be trusted (finished without scores, unknown players) are skipped
    and logged.

    Ranking: points -> wins -> goal difference -> goals for.
    """
    points = {
        'win': POINTS_FOR_WIN,
        'draw': POINTS_FOR_DRAW,
        'shootout_win': POINTS_FOR_SHOOTOUT_WIN,
        'shootout_loss': POINTS_FOR_SHOOTOUT_LOSS,
        **(points or {}),
    }
    records = {}

    for match in matches:
        if match.is_bye or not match.is_finished:
            continue
        if not match.has_scores:
            logger.warning('Skipping finished match %s without scores', match.id)
            continue
        if known_player_ids is not None and not all(a.player_id in known_player_ids for a in match.participants):
            logger.warning('Skipping match %s with an unknown player', match.id)
            continue

        p1, p2 = match.player1, match.player2
        s1 = records.setdefault(p1.player_id, _new_record(p1))
        s2 = records.setdefault(p2.player_id, _new_record(p2))
        (res1, pts1), (res2, pts2) = _match_results(match, points)
        stage = get_stage_label(match)
        _apply(s1, res1, pts1, match.score1, match.score2, p2, stage)
        _apply(s2, res2, pts2, match.score2, match.score1, p1, stage)

    return sorted(
        records.values(),
        key=lambda x: (-x['points'], -x['wins'], -x['goal_diff'], -x['goals_for'])
    )


def tournament_stats(state: TournamentState, points: Optional[Dict] = None) -> List[Dict]:
    """Stats over group matches, then bracket history, then the current round."""
    known = {p.id for p in state.players} or None
    return aggregate_player_stats(state.all_matches(), known, points)


def calculate_awards(stats: List[Dict]) -> Dict:
    """
    Tournament-wide awards from aggregated stats.

    Returns a dict with best_attack, best_defense, top_scorer and
    most_defeated (each a stats record, or None with no played matches).
    Per-match averages divide by max(played, 1).
    """
    if not stats:
        return {'best_attack': None, 'best_defense': None, 'top_scorer': None, 'most_defeated': None}

    def per_match(value, record):
        return value / (record['played'] or 1)

    return {
        'best_attack': max(stats, key=lambda s: per_match(s['goals_for'], s)),
        'best_defense': min(stats, key=lambda s: per_match(s['goals_against'], s)),
        'top_scorer': max(stats, key=lambda s: s['goals_for']),
        'most_defeated': max(stats, key=lambda s: (s['losses'], s['goals_against'])),
    }


def head_to_head(stats: List[Dict], player_id: str, opponent_id: str) -> Dict:
    """Summary of every counted meeting between two players."""
    summary = {'played': 0, 'wins': 0, 'draws': 0, 'losses': 0,
               'goals_for': 0, 'goals_against': 0, 'matches': []}
    record = next((s for s in stats if s['id'] == player_id), None)
    if record is None:
        return summary
    for entry in record['match_history']:
        if entry['opponent_id'] != opponent_id:
            continue
        summary['played'] += 1
        summary['goals_for'] += entry['score_own']
        summary['goals_against'] += entry['score_opp']
        key = {'W': 'wins', 'D': 'draws', 'L': 'losses'}[entry['result']]
        summary[key] += 1
        summary['matches'].append(entry)
    return summary
