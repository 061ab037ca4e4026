import argparse
import os
import sys

import yaml

from engine.draw import make_rng, new_player_id, perform_draw, shuffle
from engine.elimination import create_round_matchups, get_round_name
from engine.errors import PreconditionError
from engine.groups import MIN_PLAYERS_FOR_GROUPS, generate_groups
from engine.models import Player, Team


def load_players(file_path):
    """Players file: a list of names, or {'players': [names]}."""
    with open(file_path, mode='r', encoding='utf-8') as file:
        data = yaml.safe_load(file) or []
    if isinstance(data, dict):
        data = data.get('players', [])
    return [Player(new_player_id(), str(name).strip()) for name in data if str(name).strip()]


def load_teams(file_path):
    """
    Teams file: league name -> list of teams. A team is either a bare name
    or a mapping with name, rating and optional starPlayer / logo.
    """
    teams = []
    with open(file_path, mode='r', encoding='utf-8') as file:
        leagues = yaml.safe_load(file) or {}
    for league, entries in leagues.items():
        for entry in entries or []:
            if isinstance(entry, dict):
                teams.append(Team.from_dict({'league': league, **entry}))
            else:
                teams.append(Team(name=str(entry), league=league))
    return teams


def _side(assignment):
    return f"{assignment.player.name} ({assignment.team.name})"


def format_groups(groups):
    lines = []
    for group in groups:
        if lines:
            lines.append('')  # Blank line between groups
        lines.append(f"# Group {group.id}")
        for match in group.matches:
            lines.append(f"{_side(match.player1)} vs {_side(match.player2)}")
    return lines


def format_round(matchups, round_number):
    lines = [f"# {get_round_name(matchups, round_number)}"]
    for match in matchups:
        if match.is_bye:
            lines.append(f"{_side(match.player1)} - BYE")
        else:
            lines.append(f"{_side(match.player1)} vs {_side(match.player2)}")
    return lines


def main(argv=None):
    script_dir = os.path.dirname(__file__)
    base_dir = os.path.dirname(script_dir)

    parser = argparse.ArgumentParser(description='Draw players to teams and print the opening fixtures.')
    parser.add_argument('players', nargs='?', default=os.path.join(base_dir, 'data', 'players.yaml'))
    parser.add_argument('teams', nargs='?', default=os.path.join(base_dir, 'data', 'teams.yaml'))
    parser.add_argument('--groups', action='store_true', help='open with a group stage')
    parser.add_argument('--seed', type=int, default=None, help='seed for a reproducible draw')
    args = parser.parse_args(argv)

    players = load_players(args.players)
    teams = load_teams(args.teams)
    rng = make_rng(args.seed)

    try:
        assignments = perform_draw(players, teams, rng)
    except PreconditionError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    if len(assignments) < 2:
        print("Error: At least 2 players are required.", file=sys.stderr)
        return 1

    if args.groups and len(assignments) >= MIN_PLAYERS_FOR_GROUPS:
        lines = format_groups(generate_groups(assignments, rng))
    else:
        lines = format_round(create_round_matchups(shuffle(assignments, rng), 1), 1)

    for line in lines:
        print(line)
    return 0


if __name__ == '__main__':
    sys.exit(main())
