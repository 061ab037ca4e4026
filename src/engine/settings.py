"""
Tournament rule settings and their defaults.
"""
import logging

logger = logging.getLogger(__name__)


def get_default_settings():
    """Return default settings."""
    return {
        'tournament_name': 'Tournament',
        'bye_score': [3, 0],
        'points_for_win': 3,
        'points_for_draw': 1,
        'points_for_shootout_win': 2,
        'points_for_shootout_loss': 1,
        'qualifiers_per_group': 2,
        'target_group_size': 4,
        'live_poll_seconds': 3,
        'live_heartbeat_seconds': 15,
    }


# Smallest accepted value of each whole-number setting
_MINIMUMS = {
    'points_for_win': 0,
    'points_for_draw': 0,
    'points_for_shootout_win': 0,
    'points_for_shootout_loss': 0,
    'qualifiers_per_group': 1,
    'target_group_size': 2,
    'live_poll_seconds': 1,
    'live_heartbeat_seconds': 1,
}


def _is_count(value, minimum=0):
    return isinstance(value, int) and not isinstance(value, bool) and value >= minimum


def _valid_setting(key, value):
    if key == 'tournament_name':
        return isinstance(value, str) and bool(value.strip())
    if key == 'bye_score':
        return isinstance(value, (list, tuple)) and len(value) == 2 and all(_is_count(v) for v in value)
    return _is_count(value, _MINIMUMS[key])


def merge_settings(data):
    """Overlay user settings on the defaults.

    Unknown keys are ignored; a value of the wrong type keeps the default.
    """
    settings = get_default_settings()
    if not data:
        return settings
    for key, value in data.items():
        if key not in settings or value is None:
            continue
        if not _valid_setting(key, value):
            logger.warning(f'Ignoring invalid value for setting {key}: {value!r}')
            continue
        settings[key] = list(value) if key == 'bye_score' else value
    return settings


def stats_points(settings):
    """Point rules in the shape engine.stats expects."""
    return {
        'win': settings['points_for_win'],
        'draw': settings['points_for_draw'],
        'shootout_win': settings['points_for_shootout_win'],
        'shootout_loss': settings['points_for_shootout_loss'],
    }
