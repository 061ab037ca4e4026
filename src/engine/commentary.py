"""
Pre-round commentary from an external text generation service.

The service is optional. Any failure degrades to a placeholder string and
never touches tournament state.
"""
import logging
import os
from typing import Optional, Sequence

import requests

from .models import Matchup

logger = logging.getLogger(__name__)

NOT_CONFIGURED = 'Commentary service not configured.'
UNAVAILABLE = 'The commentator is taking a break (commentary service unavailable).'
EMPTY_RESPONSE = 'No commentary could be generated.'


def format_matchups(matchups: Sequence[Matchup]) -> str:
    lines = []
    for m in matchups:
        p1 = f"{m.player1.player.name} ({m.player1.team.name})"
        if m.player2:
            lines.append(f"- {p1} vs {m.player2.player.name} ({m.player2.team.name})")
        else:
            lines.append(f"- {p1} goes straight through (BYE)")
    return '\n'.join(lines)


def build_prompt(tournament_type: str, matchups: Sequence[Matchup]) -> str:
    return (
        "Act as an excited, professional football commentator.\n\n"
        f'We are in the tournament "{tournament_type}".\n\n'
        f"These are the drawn matchups:\n{format_matchups(matchups)}\n\n"
        "Write a short preview (max 150 words): name the match of the round, "
        "make a fun prediction about the dark horse, keep it light and competitive."
    )


def generate_commentary(tournament_type: str, matchups: Sequence[Matchup],
                        api_url: Optional[str] = None, api_key: Optional[str] = None,
                        timeout: float = 15) -> str:
    """
    POST the prompt to COMMENTARY_API_URL and return the generated text.

    The endpoint receives {'prompt': ...} and answers {'text': ...}.
    """
    api_url = api_url or os.environ.get('COMMENTARY_API_URL')
    api_key = api_key or os.environ.get('COMMENTARY_API_KEY')
    if not api_url:
        return NOT_CONFIGURED

    headers = {'Authorization': f'Bearer {api_key}'} if api_key else {}
    try:
        response = requests.post(
            api_url,
            json={'prompt': build_prompt(tournament_type, matchups)},
            headers=headers,
            timeout=timeout,
        )
        response.raise_for_status()
        text = response.json().get('text')
    except (requests.RequestException, ValueError) as e:
        logger.warning('Commentary request failed: %s', e)
        return UNAVAILABLE
    return text or EMPTY_RESPONSE
