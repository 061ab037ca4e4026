"""
Flask web application for the Tournament Bracket Manager.
"""
import os
import time
from datetime import timedelta
from functools import wraps

from flask import Flask, Response, jsonify, request, session, stream_with_context, abort

from engine.commentary import generate_commentary
from engine.draw import make_rng
from engine.elimination import get_round_name
from engine.errors import (
    InsufficientTeamsError,
    IntegrityError,
    NotEnoughPlayersError,
    PreconditionError,
    RegistrationError,
    UnknownMatchError,
)
from engine.models import Team
from engine.presets import find_preset, get_default_presets
from engine.settings import stats_points
from engine.stats import calculate_awards, head_to_head, tournament_stats
from engine.storage import OrganizerRegistry, TournamentStore, load_or_create_secret_key
from engine import tournament as transitions

app = Flask(__name__)

BASE_DIR = os.path.dirname(os.path.dirname(__file__))
DATA_DIR = os.environ.get('TOURNAMENT_DATA_DIR', os.path.join(BASE_DIR, 'data'))
USERS_FILE = os.path.join(DATA_DIR, 'users.yaml')
os.makedirs(DATA_DIR, exist_ok=True)
app.secret_key = os.environ.get('SECRET_KEY') or load_or_create_secret_key(DATA_DIR)
app.config['PERMANENT_SESSION_LIFETIME'] = timedelta(days=3650)
# Fixed seed for reproducible draws (tests); None draws from system entropy
app.config.setdefault('RNG_SEED', None)

_ERROR_STATUS = {
    NotEnoughPlayersError: 400,
    InsufficientTeamsError: 400,
    UnknownMatchError: 404,
    RegistrationError: 400,
}


# --- Users ---

def _registry() -> OrganizerRegistry:
    return OrganizerRegistry(USERS_FILE)


def login_required(f):
    """Reject API calls from anonymous sessions."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if 'user' not in session:
            return jsonify({'error': 'Login required'}), 401
        return f(*args, **kwargs)
    return decorated_function


# --- Helpers ---

def _store(owner: str = None) -> TournamentStore:
    return TournamentStore(DATA_DIR, owner or session['user'])


def _rng():
    return make_rng(app.config.get('RNG_SEED'))


def _load_state(store: TournamentStore):
    return store.load() or transitions.new_tournament()


def _presets(store: TournamentStore) -> list:
    return get_default_presets() + store.load_presets()


def _payload() -> dict:
    return request.get_json(silent=True) or {}


def _state_response(state, **extra):
    body = {'success': True, 'state': state.to_dict()}
    body.update(extra)
    return jsonify(body)


def _apply(transition, *args, **kwargs):
    """Run a transition on the session owner's live state and persist the result."""
    store = _store()
    with store.lock:
        state = _load_state(store)
        new_state = transition(state, *args, **kwargs)
        if new_state is not state:
            store.save(new_state)
    return new_state


def _table_rows(table):
    return [
        {**{k: v for k, v in row.items() if k != 'assignment'}, 'assignment': row['assignment'].to_dict()}
        for row in table
    ]


def _assignment_dict(assignment):
    return assignment.to_dict() if assignment else None


def _podium_dict(podium):
    if not podium:
        return None
    return {key: _assignment_dict(value) for key, value in podium.items()}


def _stats_payload(state, settings):
    stats = tournament_stats(state, stats_points(settings))
    awards = calculate_awards(stats)
    return {
        'players': stats,
        'awards': {
            key: ({'id': rec['id'], 'name': rec['name'], 'team': rec['team'],
                   'goals_for': rec['goals_for'], 'goals_against': rec['goals_against'],
                   'losses': rec['losses'], 'played': rec['played']} if rec else None)
            for key, rec in awards.items()
        },
    }


@app.errorhandler(PreconditionError)
def handle_precondition_error(error):
    status = _ERROR_STATUS.get(type(error), 409)
    return jsonify(error.to_dict()), status


@app.errorhandler(IntegrityError)
def handle_integrity_error(error):
    app.logger.error(f'Integrity violation: {error.message}')
    return jsonify(error.to_dict()), 500


# --- Auth ---

@app.route('/api/login', methods=['POST'])
def api_login():
    """Authenticate and open a session."""
    data = _payload()
    username = _registry().check_password(data.get('username', ''), data.get('password', ''))
    if username:
        session['user'] = username
        session.permanent = True
        return jsonify({'success': True, 'user': session['user']})
    return jsonify({'error': 'Invalid username or password.'}), 401


@app.route('/api/register', methods=['POST'])
def api_register():
    """Create an account and log it in."""
    data = _payload()
    password = data.get('password', '')
    if password != data.get('confirm_password', password):
        return jsonify({'error': 'Passwords do not match.'}), 400
    session['user'] = _registry().register(data.get('username', ''), password)
    session.permanent = True
    return jsonify({'success': True, 'message': 'Account created successfully.', 'user': session['user']})


@app.route('/api/logout', methods=['POST'])
def api_logout():
    session.clear()
    return jsonify({'success': True})


# --- Tournament setup ---

@app.route('/api/state')
@login_required
def api_state():
    """Current live state of the logged-in organizer."""
    store = _store()
    state = _load_state(store)
    return jsonify({
        'state': state.to_dict(),
        'podium': _podium_dict(transitions.podium(state)),
        'round_name': get_round_name(state.matchups, state.round) if state.matchups else None,
        'is_final_stage': transitions.is_final_stage(state),
    })


@app.route('/api/presets', methods=['GET', 'POST'])
@login_required
def api_presets():
    """List presets, or create a custom (empty) one."""
    store = _store()
    if request.method == 'POST':
        preset = transitions.create_custom_preset(_payload().get('name', ''))
        store.add_preset(preset)
    return jsonify({'presets': [
        {'id': p['id'], 'name': p['name'], 'is_custom': p['is_custom'],
         'teams': [t.to_dict() for t in p['teams']]}
        for p in _presets(store)
    ]})


@app.route('/api/presets/delete', methods=['POST'])
@login_required
def api_delete_preset():
    if not _store().delete_preset(_payload().get('id', '')):
        return jsonify({'error': 'Preset not found'}), 404
    return jsonify({'success': True})


@app.route('/api/tournament/select', methods=['POST'])
@login_required
def api_select_tournament():
    """Pick a preset; its teams become the team pool."""
    preset = find_preset(_presets(_store()), _payload().get('preset', ''))
    if preset is None:
        return jsonify({'error': 'Preset not found'}), 404
    return _state_response(_apply(transitions.select_preset, preset))


@app.route('/api/players', methods=['POST'])
@login_required
def api_add_players():
    """Register one player ({'name'}) or a whole roster ({'names': [...]})."""
    data = _payload()
    names = data.get('names')
    if names is None:
        names = [data.get('name', '')]
    if not isinstance(names, list):
        return jsonify({'error': 'names must be a list'}), 400
    return _state_response(_apply(transitions.add_players, [str(n) for n in names]))


@app.route('/api/players/remove', methods=['POST'])
@login_required
def api_remove_player():
    return _state_response(_apply(transitions.remove_player, _payload().get('id', '')))


def _team_from_payload(data):
    team = data.get('team') or {}
    if not str(team.get('name', '')).strip():
        return None
    try:
        team['rating'] = float(team.get('rating', 0) or 0)
    except (TypeError, ValueError):
        return None
    return Team.from_dict(team)


@app.route('/api/teams/add', methods=['POST'])
@login_required
def api_add_team():
    team = _team_from_payload(_payload())
    if team is None:
        return jsonify({'error': 'A team needs a name and a numeric rating'}), 400
    return _state_response(_apply(transitions.add_team, team))


def _team_index(data):
    try:
        return int(data.get('index'))
    except (TypeError, ValueError):
        return None


@app.route('/api/teams/edit', methods=['POST'])
@login_required
def api_edit_team():
    data = _payload()
    team = _team_from_payload(data)
    if team is None:
        return jsonify({'error': 'A team needs a name and a numeric rating'}), 400
    index = _team_index(data)
    if index is None:
        return jsonify({'error': 'Team index must be a whole number'}), 400
    return _state_response(_apply(transitions.update_team, index, team))


@app.route('/api/teams/remove', methods=['POST'])
@login_required
def api_remove_team():
    index = _team_index(_payload())
    if index is None:
        return jsonify({'error': 'Team index must be a whole number'}), 400
    return _state_response(_apply(transitions.remove_team, index))


@app.route('/api/teams/reset', methods=['POST'])
@login_required
def api_reset_teams():
    return _state_response(_apply(transitions.reset_teams, _presets(_store())))


@app.route('/api/settings/group-stage', methods=['POST'])
@login_required
def api_set_group_stage():
    return _state_response(_apply(transitions.set_group_stage, bool(_payload().get('enabled'))))


@app.route('/api/settings', methods=['GET', 'POST'])
@login_required
def api_settings():
    """Read or update the rule settings."""
    store = _store()
    if request.method == 'POST':
        store.save_settings({**store.load_settings(), **_payload()})
    return jsonify({'settings': store.load_settings()})


@app.route('/api/reset', methods=['POST'])
@login_required
def api_reset():
    """Discard the live tournament."""
    _store().clear()
    return _state_response(transitions.new_tournament())


# --- Play ---

@app.route('/api/draw', methods=['POST'])
@login_required
def api_draw():
    """Draw teams and open the group stage or the first knockout round."""
    settings = _store().load_settings()
    return _state_response(_apply(transitions.start_tournament, _rng(), settings))


def _score(data, key):
    value = data.get(key)
    if value is None or value == '':
        return None
    return int(value)


@app.route('/api/matches/<match_id>', methods=['POST'])
@login_required
def api_update_match(match_id):
    """
    Update a group match or a match of the current knockout round.

    Body: {'action': 'score' | 'start' | 'finish' | 'winner' | 'reopen',
           'score1', 'score2', 'winner_id', 'shootout_winner_id'}
    """
    data = _payload()
    action = data.get('action', 'score')
    try:
        score1 = _score(data, 'score1')
        score2 = _score(data, 'score2')
    except (TypeError, ValueError):
        return jsonify({'error': 'Scores must be whole numbers'}), 400

    if action == 'score':
        if score1 is None or score2 is None:
            return jsonify({'error': 'Both scores must be filled'}), 400
        state = _apply(transitions.set_match_scores, match_id, score1, score2)
    elif action == 'start':
        state = _apply(transitions.start_match, match_id)
    elif action == 'finish':
        scores = (score1, score2) if score1 is not None and score2 is not None else None
        state = _apply(transitions.finish_match, match_id, data.get('shootout_winner_id'), scores)
    elif action == 'winner':
        state = _apply(transitions.decide_match, match_id, data.get('winner_id', ''))
    elif action == 'reopen':
        state = _apply(transitions.reopen_match, match_id)
    else:
        return jsonify({'error': f'Unknown action {action}'}), 400
    return _state_response(state)


@app.route('/api/groups/advance', methods=['POST'])
@login_required
def api_advance_from_groups():
    """Close the group stage and seed the knockout bracket."""
    settings = _store().load_settings()
    return _state_response(_apply(transitions.advance_from_groups, _rng(), settings))


@app.route('/api/bracket/advance', methods=['POST'])
@login_required
def api_advance_round():
    """Close the current knockout round."""
    settings = _store().load_settings()
    state = _apply(transitions.advance_round, _rng(), settings)
    return _state_response(state, podium=_podium_dict(transitions.podium(state)))


@app.route('/api/standings')
@login_required
def api_standings():
    store = _store()
    state = _load_state(store)
    tables = transitions.group_tables(state, store.load_settings())
    return jsonify({'standings': {group_id: _table_rows(table) for group_id, table in tables.items()}})


@app.route('/api/stats')
@login_required
def api_stats():
    store = _store()
    return jsonify(_stats_payload(_load_state(store), store.load_settings()))


@app.route('/api/head-to-head')
@login_required
def api_head_to_head():
    store = _store()
    stats = tournament_stats(_load_state(store), stats_points(store.load_settings()))
    return jsonify(head_to_head(stats, request.args.get('player', ''), request.args.get('opponent', '')))


@app.route('/api/podium')
@login_required
def api_podium():
    return jsonify({'podium': _podium_dict(transitions.podium(_load_state(_store())))})


@app.route('/api/commentary')
@login_required
def api_commentary():
    """Preview of the current round from the commentary service."""
    state = _load_state(_store())
    text = generate_commentary(state.tournament_type or 'Tournament', state.matchups)
    return jsonify({'commentary': text})


# --- Saved snapshots ---

@app.route('/api/saves', methods=['GET', 'POST'])
@login_required
def api_saves():
    """List saved tournaments, or save the live one under a name."""
    store = _store()
    if request.method == 'POST':
        saved = store.save_snapshot(_load_state(store), _payload().get('name'))
        return jsonify({'success': True, 'save': saved})
    return jsonify({'saves': store.list_snapshots()})


@app.route('/api/saves/<save_id>', methods=['POST'])
@login_required
def api_update_save(save_id):
    store = _store()
    if not store.update_snapshot(save_id, _load_state(store)):
        return jsonify({'error': 'Save not found'}), 404
    return jsonify({'success': True})


@app.route('/api/saves/<save_id>/load', methods=['POST'])
@login_required
def api_load_save(save_id):
    """Make a saved snapshot the live state."""
    store = _store()
    state = store.get_snapshot(save_id)
    if state is None:
        return jsonify({'error': 'Save not found'}), 404
    store.save(state)
    return _state_response(state)


@app.route('/api/saves/<save_id>/delete', methods=['POST'])
@login_required
def api_delete_save(save_id):
    if not _store().delete_snapshot(save_id):
        return jsonify({'error': 'Save not found'}), 404
    return jsonify({'success': True})


# --- Spectator (read-only) ---

def _resolve_owner(username: str) -> str:
    """Validate a public username and return it, or abort with 404."""
    account = _registry().find(username)
    if account is None:
        abort(404)
    return account['username']


@app.route('/api/live/<username>')
def api_live(username):
    """Public read-only mirror of an organizer's live tournament."""
    store = _store(_resolve_owner(username))
    state = _load_state(store)
    return jsonify({
        'state': state.to_dict(),
        'podium': _podium_dict(transitions.podium(state)),
        'stats': _stats_payload(state, store.load_settings()),
        'updated': store.state_mtime(),
    })


@app.route('/api/live-stream/<username>')
def api_live_stream(username):
    """Server-Sent Events stream that notifies spectators when the state changes."""
    store = _store(_resolve_owner(username))
    settings = store.load_settings()
    poll = settings['live_poll_seconds']
    heartbeat_every = settings['live_heartbeat_seconds']

    def generate():
        """Yield SSE events, checking the state file mtime every poll interval."""
        yield "event: connected\ndata: ok\n\n"
        last_mtime = store.state_mtime()
        heartbeat_counter = 0
        while True:
            time.sleep(poll)
            heartbeat_counter += poll
            current_mtime = store.state_mtime()
            if current_mtime != last_mtime:
                last_mtime = current_mtime
                yield f"event: update\ndata: {current_mtime}\n\n"
            if heartbeat_counter >= heartbeat_every:
                heartbeat_counter = 0
                yield ": heartbeat\n\n"

    return Response(
        stream_with_context(generate()),
        mimetype='text/event-stream',
        headers={'Cache-Control': 'no-cache', 'X-Accel-Buffering': 'no'},
    )


if __name__ == '__main__':
    app.run(debug=True, port=5000)
