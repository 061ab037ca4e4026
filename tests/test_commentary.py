"""
Tests for the optional commentary service client.
"""
import pytest
import sys
import os
from unittest.mock import MagicMock

import requests

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from engine import commentary
from engine.elimination import create_round_matchups
from conftest import make_assignments


@pytest.fixture
def matchups():
    return create_round_matchups(make_assignments(3), 1)


class TestPrompt:
    def test_prompt_lists_matchups_and_byes(self, matchups):
        prompt = commentary.build_prompt('Test Cup', matchups)
        assert 'Test Cup' in prompt
        assert 'Player 1 (Team 1) vs Player 2 (Team 2)' in prompt
        assert 'Player 3 (Team 3) goes straight through (BYE)' in prompt


class TestGenerateCommentary:
    def test_not_configured(self, matchups, monkeypatch):
        monkeypatch.delenv('COMMENTARY_API_URL', raising=False)
        assert commentary.generate_commentary('Test Cup', matchups) == commentary.NOT_CONFIGURED

    def test_success(self, matchups, monkeypatch):
        response = MagicMock()
        response.json.return_value = {'text': 'What a round!'}
        post = MagicMock(return_value=response)
        monkeypatch.setattr(commentary.requests, 'post', post)

        text = commentary.generate_commentary('Test Cup', matchups,
                                              api_url='http://commentary.local/generate', api_key='k')
        assert text == 'What a round!'
        _, kwargs = post.call_args
        assert kwargs['headers'] == {'Authorization': 'Bearer k'}
        assert 'Test Cup' in kwargs['json']['prompt']

    def test_service_error_degrades(self, matchups, monkeypatch):
        post = MagicMock(side_effect=requests.ConnectionError('down'))
        monkeypatch.setattr(commentary.requests, 'post', post)
        text = commentary.generate_commentary('Test Cup', matchups, api_url='http://commentary.local')
        assert text == commentary.UNAVAILABLE

    def test_empty_response(self, matchups, monkeypatch):
        response = MagicMock()
        response.json.return_value = {}
        monkeypatch.setattr(commentary.requests, 'post', MagicMock(return_value=response))
        text = commentary.generate_commentary('Test Cup', matchups, api_url='http://commentary.local')
        assert text == commentary.EMPTY_RESPONSE
