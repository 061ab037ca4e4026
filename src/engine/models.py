import enum

from .errors import IntegrityError, InvalidTransitionError


class MatchStatus(enum.Enum):
    SCHEDULED = 'SCHEDULED'
    IN_PROGRESS = 'IN_PROGRESS'
    FINISHED = 'FINISHED'


class TournamentStage(enum.Enum):
    GROUPS = 'GROUPS'
    BRACKET = 'BRACKET'


class Player:
    def __init__(self, id, name):
        self.id = id
        self.name = name

    def __eq__(self, other):
        return isinstance(other, Player) and self.id == other.id

    def __hash__(self):
        return hash(self.id)

    def __repr__(self):
        return f"Player(id={self.id}, name={self.name})"

    def to_dict(self):
        return {'id': self.id, 'name': self.name}

    @classmethod
    def from_dict(cls, data):
        return cls(id=str(data['id']), name=data.get('name', ''))


class Team:
    def __init__(self, name, league='', rating=0, logo='', star_player='', id=None, logo_color=None):
        self.name = name
        self.league = league
        self.rating = rating  # 1-5 stars, higher is stronger
        self.logo = logo
        self.star_player = star_player
        self.id = id
        self.logo_color = logo_color

    def __eq__(self, other):
        return isinstance(other, Team) and self.to_dict() == other.to_dict()

    def __repr__(self):
        return f"Team(name={self.name}, rating={self.rating})"

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'league': self.league,
            'rating': self.rating,
            'logo': self.logo,
            'logoColor': self.logo_color,
            'starPlayer': self.star_player,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            name=data['name'],
            league=data.get('league', ''),
            rating=data.get('rating', 0) or 0,
            logo=data.get('logo', '') or '',
            star_player=data.get('starPlayer', '') or '',
            id=data.get('id'),
            logo_color=data.get('logoColor'),
        )


class Assignment:
    """A player bound to a team for one tournament run."""

    def __init__(self, player, team):
        self.player = player
        self.team = team

    @property
    def player_id(self):
        return self.player.id

    def __eq__(self, other):
        return isinstance(other, Assignment) and self.player == other.player and self.team == other.team

    def __hash__(self):
        return hash(self.player.id)

    def __repr__(self):
        return f"Assignment(player={self.player.name}, team={self.team.name})"

    def to_dict(self):
        return {'player': self.player.to_dict(), 'team': self.team.to_dict()}

    @classmethod
    def from_dict(cls, data):
        return cls(Player.from_dict(data['player']), Team.from_dict(data['team']))


class Matchup:
    """
    One match between two assignments, or a bye when player2 is None.

    The combination of fields always falls into one of these kinds:
    - bye: no player2, FINISHED, won by player1
    - scheduled: SCHEDULED, no winner (scores may be pre-filled)
    - in progress: IN_PROGRESS, no winner
    - finished: FINISHED, with a winner, or a draw without one

    Transition methods never mutate; they return a new Matchup.
    """

    def __init__(self, id, player1, player2=None, winner_id=None, score1=None, score2=None,
                 is_third_place=False, status=MatchStatus.SCHEDULED):
        self.id = id
        self.player1 = player1
        self.player2 = player2
        self.winner_id = winner_id
        self.score1 = score1
        self.score2 = score2
        self.is_third_place = is_third_place
        self.status = MatchStatus(status)
        self._validate()

    def _validate(self):
        if self.player1 is None:
            raise IntegrityError(f'Match {self.id} has no player1')
        if self.player2 is None:
            if self.status is not MatchStatus.FINISHED or self.winner_id != self.player1.player_id:
                raise IntegrityError(f'Bye {self.id} must be finished and won by player1')
            return
        if self.player1.player_id == self.player2.player_id:
            raise IntegrityError(f'Match {self.id} pairs a player with themselves')
        if self.winner_id is not None:
            if self.winner_id not in (self.player1.player_id, self.player2.player_id):
                raise IntegrityError(f'Winner {self.winner_id} is not a participant of match {self.id}')
            if self.status is not MatchStatus.FINISHED:
                raise IntegrityError(f'Match {self.id} has a winner but is {self.status.value}')

    @classmethod
    def bye(cls, id, assignment, score=(3, 0)):
        return cls(id, assignment, None, winner_id=assignment.player_id,
                   score1=score[0], score2=score[1], status=MatchStatus.FINISHED)

    def __repr__(self):
        p2 = self.player2.player.name if self.player2 else 'BYE'
        return f"Matchup(id={self.id}, {self.player1.player.name} vs {p2}, status={self.status.value})"

    @property
    def is_bye(self):
        return self.player2 is None

    @property
    def is_scheduled(self):
        return self.status is MatchStatus.SCHEDULED

    @property
    def is_in_progress(self):
        return self.status is MatchStatus.IN_PROGRESS

    @property
    def is_finished(self):
        return self.status is MatchStatus.FINISHED

    @property
    def is_decided(self):
        return self.status is MatchStatus.FINISHED and self.winner_id is not None

    @property
    def is_draw(self):
        return self.is_finished and not self.is_bye and self.has_scores and self.score1 == self.score2

    @property
    def has_scores(self):
        return self.score1 is not None and self.score2 is not None

    @property
    def participants(self):
        return [a for a in (self.player1, self.player2) if a is not None]

    def involves(self, player_id):
        return any(a.player_id == player_id for a in self.participants)

    @property
    def winner(self):
        if self.winner_id is None:
            return None
        return self.player1 if self.winner_id == self.player1.player_id else self.player2

    @property
    def loser(self):
        if self.winner_id is None or self.is_bye:
            return None
        return self.player2 if self.winner_id == self.player1.player_id else self.player1

    def replace(self, **changes):
        fields = {
            'id': self.id,
            'player1': self.player1,
            'player2': self.player2,
            'winner_id': self.winner_id,
            'score1': self.score1,
            'score2': self.score2,
            'is_third_place': self.is_third_place,
            'status': self.status,
        }
        fields.update(changes)
        return Matchup(**fields)

    def _score_winner_id(self, score1, score2):
        if score1 > score2:
            return self.player1.player_id
        if score2 > score1:
            return self.player2.player_id
        return None

    def _require_opponent(self, action):
        if self.is_bye:
            raise InvalidTransitionError(f'Cannot {action} bye {self.id}')

    def with_scores(self, score1, score2):
        """Record scores. A finished match gets its winner recomputed;
        a shootout winner survives only while the scores stay level."""
        self._require_opponent('score')
        if score1 is None or score2 is None or score1 < 0 or score2 < 0:
            raise InvalidTransitionError('Scores must be non-negative numbers')
        winner_id = self.winner_id
        if self.is_finished:
            winner_id = self._score_winner_id(score1, score2)
            if winner_id is None and self.is_draw:
                winner_id = self.winner_id
        return self.replace(score1=score1, score2=score2, winner_id=winner_id)

    def start(self):
        self._require_opponent('start')
        if not self.is_scheduled:
            raise InvalidTransitionError(f'Match {self.id} is already {self.status.value}')
        return self.replace(status=MatchStatus.IN_PROGRESS)

    def finish(self, shootout_winner_id=None):
        """Close the match. Missing scores count as 0."""
        self._require_opponent('finish')
        if self.is_finished:
            raise InvalidTransitionError(f'Match {self.id} is already finished')
        score1 = self.score1 or 0
        score2 = self.score2 or 0
        winner_id = self._score_winner_id(score1, score2)
        if winner_id is None:
            winner_id = shootout_winner_id
        return self.replace(score1=score1, score2=score2, winner_id=winner_id,
                            status=MatchStatus.FINISHED)

    def with_winner(self, player_id):
        """Decide the match in favour of player_id."""
        self._require_opponent('decide')
        if not self.involves(player_id):
            raise InvalidTransitionError(f'Player {player_id} does not play in match {self.id}')
        if self.has_scores:
            by_score = self._score_winner_id(self.score1, self.score2)
            if by_score is not None and by_score != player_id:
                raise InvalidTransitionError(f'Scores of match {self.id} contradict the chosen winner')
        return self.replace(winner_id=player_id, status=MatchStatus.FINISHED)

    def reopen(self):
        self._require_opponent('reopen')
        if not self.is_finished:
            raise InvalidTransitionError(f'Match {self.id} is not finished')
        return self.replace(status=MatchStatus.IN_PROGRESS, winner_id=None)

    def to_dict(self):
        data = {
            'id': self.id,
            'player1': self.player1.to_dict(),
            'player2': self.player2.to_dict() if self.player2 else None,
            'status': self.status.value,
        }
        if self.winner_id is not None:
            data['winnerId'] = self.winner_id
        if self.score1 is not None:
            data['score1'] = self.score1
        if self.score2 is not None:
            data['score2'] = self.score2
        if self.is_third_place:
            data['isThirdPlace'] = True
        return data

    @classmethod
    def from_dict(cls, data):
        player1 = Assignment.from_dict(data['player1'])
        player2 = Assignment.from_dict(data['player2']) if data.get('player2') else None
        winner_id = data.get('winnerId')
        score1 = data.get('score1')
        score2 = data.get('score2')
        status = data.get('status')
        # Compatibility shim for snapshots written before status was tracked,
        # and for knockout matches decided without a status change.
        if status is None:
            if player2 is None or winner_id or (score1 is not None and score2 is not None):
                status = MatchStatus.FINISHED
            else:
                status = MatchStatus.SCHEDULED
        elif winner_id and status != MatchStatus.FINISHED.value:
            status = MatchStatus.FINISHED
        return cls(
            id=data['id'],
            player1=player1,
            player2=player2,
            winner_id=winner_id or None,
            score1=score1,
            score2=score2,
            is_third_place=bool(data.get('isThirdPlace', False)),
            status=status,
        )


class Group:
    def __init__(self, id, assignments=None, matches=None):
        self.id = id
        self.assignments = list(assignments) if assignments else []
        self.matches = list(matches) if matches else []

    def __repr__(self):
        return f"Group(id={self.id}, assignments={len(self.assignments)}, matches={len(self.matches)})"

    def find_match(self, match_id):
        for match in self.matches:
            if match.id == match_id:
                return match
        return None

    def with_match(self, updated):
        """Return a copy of the group with one match replaced."""
        return Group(self.id, self.assignments,
                     [updated if m.id == updated.id else m for m in self.matches])

    def to_dict(self):
        return {
            'id': self.id,
            'assignments': [a.to_dict() for a in self.assignments],
            'matches': [m.to_dict() for m in self.matches],
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            data['id'],
            [Assignment.from_dict(a) for a in data.get('assignments', [])],
            [Matchup.from_dict(m) for m in data.get('matches', [])],
        )


STEPS = ('select', 'players', 'game')


class TournamentState:
    """
    Full serializable snapshot of one tournament run.

    Treated as immutable: every transition builds a new state with replace().
    """

    def __init__(self, step='select', tournament_type=None, use_group_stage=False, players=None,
                 stage=TournamentStage.BRACKET, current_teams=None, groups=None, matchups=None,
                 history=None, round=1):
        if step not in STEPS:
            raise IntegrityError(f'Unknown step {step}')
        self.step = step
        self.tournament_type = tournament_type
        self.use_group_stage = use_group_stage
        self.players = list(players) if players else []
        self.stage = TournamentStage(stage)
        self.current_teams = list(current_teams) if current_teams else []
        self.groups = list(groups) if groups else []
        self.matchups = list(matchups) if matchups else []
        self.history = [list(r) for r in history] if history else []
        self.round = round

    def __repr__(self):
        return (f"TournamentState(step={self.step}, stage={self.stage.value}, "
                f"players={len(self.players)}, round={self.round})")

    def __eq__(self, other):
        return isinstance(other, TournamentState) and self.to_dict() == other.to_dict()

    def replace(self, **changes):
        fields = {
            'step': self.step,
            'tournament_type': self.tournament_type,
            'use_group_stage': self.use_group_stage,
            'players': self.players,
            'stage': self.stage,
            'current_teams': self.current_teams,
            'groups': self.groups,
            'matchups': self.matchups,
            'history': self.history,
            'round': self.round,
        }
        fields.update(changes)
        return TournamentState(**fields)

    def group_matches(self):
        return [m for g in self.groups for m in g.matches]

    def all_matches(self):
        """Group matches, then bracket history, then the current round."""
        matches = self.group_matches()
        for past_round in self.history:
            matches.extend(past_round)
        matches.extend(self.matchups)
        return matches

    def to_dict(self):
        return {
            'step': self.step,
            'tournamentType': self.tournament_type,
            'useGroupStage': self.use_group_stage,
            'players': [p.to_dict() for p in self.players],
            'stage': self.stage.value,
            'currentTeams': [t.to_dict() for t in self.current_teams],
            'groups': [g.to_dict() for g in self.groups],
            'matchups': [m.to_dict() for m in self.matchups],
            'history': [[m.to_dict() for m in r] for r in self.history],
            'round': self.round,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            step=data.get('step', 'select'),
            tournament_type=data.get('tournamentType'),
            use_group_stage=bool(data.get('useGroupStage', False)),
            players=[Player.from_dict(p) for p in data.get('players', [])],
            stage=data.get('stage', TournamentStage.BRACKET.value),
            current_teams=[Team.from_dict(t) for t in data.get('currentTeams', [])],
            groups=[Group.from_dict(g) for g in data.get('groups', [])],
            matchups=[Matchup.from_dict(m) for m in data.get('matchups', [])],
            history=[[Matchup.from_dict(m) for m in r] for r in data.get('history', [])],
            round=int(data.get('round', 1)),
        )
