"""
Group activity workflow.

A game starts with its organizer as the only participant. Other members ask
to join; the organizer approves or rejects each request. Capacity is
re-checked under a row lock on the game whenever a request is approved, so
two approvals racing for the last seat cannot both succeed.
"""

from decimal import Decimal, InvalidOperation

from flask import current_app
from sqlalchemy.exc import IntegrityError

from turfbook.audit import audit_log_bulk_operation, audit_log_create, audit_log_update
from turfbook.clock import get_clock
from turfbook.exceptions import ConflictError, NotFoundError, ValidationError
from turfbook.models import Game, GameStatus, JoinRequest, JoinRequestStatus, Member
from turfbook.state import GAME_STATES, JOIN_REQUEST_STATES
from turfbook.store import SqlAlchemyStore
from turfbook.utils import require_game_organizer


class GameWorkflow:
    """Validates and manages join requests against a capacity-bounded game."""

    def __init__(self, store=None, clock=None, max_players_options=None):
        self.store = store or SqlAlchemyStore()
        self.clock = clock or get_clock()
        if max_players_options is None:
            max_players_options = current_app.config.get('MAX_PLAYERS_OPTIONS', {})
        self.max_players_options = max_players_options

    # Queries

    def get(self, game_id) -> Game:
        game = self.store.find_by_id(Game, game_id)
        if game is None:
            raise NotFoundError('Game', game_id)
        return game

    def list_open(self, sport=None):
        """Upcoming games that still have seats."""
        criteria = [
            Game.status == GameStatus.OPEN.value,
            Game.game_date >= self.clock.today(),
        ]
        if sport:
            criteria.append(Game.sport == sport)
        return self.store.find_where(Game, *criteria, order_by=Game.game_date)

    def join_requests(self, game_id, actor, status=None):
        """Join requests for a game (organizer only)."""
        game = self.get(game_id)
        require_game_organizer(actor, game, 'view join requests')
        criteria = [JoinRequest.game_id == game.id]
        if status:
            criteria.append(JoinRequest.status == getattr(status, 'value', status))
        return self.store.find_where(JoinRequest, *criteria, order_by=JoinRequest.created_at)

    # Commands

    def create_game(self, organizer, sport, game_date, start_time, end_time,
                    turf_name, turf_location, max_players, required_players=0,
                    per_head_contribution=None, description=None) -> Game:
        """
        Create a game with the organizer as its first participant.

        Raises:
            ValidationError: an invalid squad size, time range, date or venue
            NotFoundError: the organizer is not a known member
        """
        allowed = self.max_players_options.get(sport)
        if not allowed:
            raise ValidationError(f"Unsupported sport: {sport}", field='sport')
        if max_players not in allowed:
            raise ValidationError(
                f"Max players for {sport} must be one of {', '.join(str(n) for n in allowed)}",
                field='max_players'
            )
        if required_players is None or required_players < 0:
            raise ValidationError('Required players cannot be negative', field='required_players')
        # The organizer occupies one seat
        if required_players > max_players - 1:
            raise ValidationError('Required players cannot exceed max players', field='required_players')
        if start_time >= end_time:
            raise ValidationError('End time must be after start time', field='time_range')
        if game_date < self.clock.today():
            raise ValidationError('Game date cannot be in the past', field='game_date')
        if not (turf_name or '').strip():
            raise ValidationError('Turf name is required', field='turf_name')
        if not (turf_location or '').strip():
            raise ValidationError('Turf location is required', field='turf_location')

        contribution = None
        if per_head_contribution is not None:
            try:
                contribution = Decimal(str(per_head_contribution))
            except InvalidOperation:
                raise ValidationError('Contribution must be a number', field='per_head_contribution')
            if not contribution.is_finite() or contribution < 0:
                raise ValidationError('Contribution cannot be negative', field='per_head_contribution')

        member = self.store.find_by_id(Member, organizer.user_id)
        if member is None:
            raise NotFoundError('Member', organizer.user_id)

        now = self.clock.utcnow()
        with self.store.transaction():
            game = Game(
                organizer_id=member.id,
                sport=sport,
                game_date=game_date,
                start_time=start_time,
                end_time=end_time,
                turf_name=turf_name.strip(),
                turf_location=turf_location.strip(),
                max_players=max_players,
                required_players=required_players,
                per_head_contribution=contribution,
                description=description,
                status=GameStatus.FULL.value if max_players == 1 else GameStatus.OPEN.value,
                created_at=now,
                updated_at=now,
            )
            game.participants.append(member)
            self.store.save(game)

        audit_log_create('Game', game.id, f'Created {sport} game at {game.turf_name} on {game_date}',
                         actor=organizer)
        return game

    def request_to_join(self, game_id, requester, note='') -> JoinRequest:
        """
        Ask to join a game.

        Raises:
            ValidationError: the game is full or cancelled
            ConflictError: already a participant, or a request is already pending
        """
        game = self.get(game_id)
        if game.status != GameStatus.OPEN.value:
            raise ValidationError(f"Game {game.id} is {game.status} and not accepting players",
                                  field='status')
        if game.has_participant(requester.user_id):
            raise ConflictError(f"Member {requester.user_id} is already playing in game {game.id}")

        pending = self.store.count_where(
            JoinRequest,
            JoinRequest.game_id == game.id,
            JoinRequest.requester_id == requester.user_id,
            JoinRequest.status == JoinRequestStatus.PENDING.value,
        )
        if pending:
            raise ConflictError(f"Member {requester.user_id} already has a pending request for game {game.id}")

        now = self.clock.utcnow()
        try:
            with self.store.transaction():
                join_request = JoinRequest(
                    game_id=game.id,
                    requester_id=requester.user_id,
                    note=note or None,
                    status=JoinRequestStatus.PENDING.value,
                    created_at=now,
                    updated_at=now,
                )
                self.store.save(join_request)
        except IntegrityError:
            # Lost a race against a concurrent request from the same member
            raise ConflictError(f"Member {requester.user_id} already has a pending request for game {game.id}")

        audit_log_create('JoinRequest', join_request.id, f'Requested to join game {game.id}', actor=requester)
        return join_request

    def approve_join(self, game_id, request_id, actor) -> JoinRequest:
        """
        Approve a pending join request and add the requester to the roster
        (organizer only). The game becomes full when the last seat is taken.
        """
        game = self.get(game_id)
        join_request = self._get_request(game, request_id)
        require_game_organizer(actor, game, 'approve join requests')

        with self.store.transaction():
            game = self.store.lock(Game, game.id)
            if game.status == GameStatus.CANCELLED.value:
                raise ConflictError(f"Game {game.id} has been cancelled")
            if game.is_at_capacity():
                raise ConflictError(f"Game {game.id} is already full")
            if game.has_participant(join_request.requester_id):
                raise ConflictError(f"Member {join_request.requester_id} is already playing in game {game.id}")

            requester = self.store.find_by_id(Member, join_request.requester_id)
            now = self.clock.utcnow()
            JOIN_REQUEST_STATES.transition(self.store, join_request, JoinRequestStatus.APPROVED,
                                           updated_at=now)
            game.participants.append(requester)
            if game.is_at_capacity():
                GAME_STATES.transition(self.store, game, GameStatus.FULL, updated_at=now)
            else:
                game.updated_at = now

        audit_log_update('JoinRequest', join_request.id, f'Approved join request for game {game.id}',
                         {'status': JoinRequestStatus.PENDING.value}, actor=actor)
        return join_request

    def reject_join(self, game_id, request_id, actor) -> JoinRequest:
        """Reject a pending join request (organizer only). The roster is untouched."""
        game = self.get(game_id)
        join_request = self._get_request(game, request_id)
        require_game_organizer(actor, game, 'reject join requests')

        with self.store.transaction():
            JOIN_REQUEST_STATES.transition(self.store, join_request, JoinRequestStatus.REJECTED,
                                           updated_at=self.clock.utcnow())

        audit_log_update('JoinRequest', join_request.id, f'Rejected join request for game {game.id}',
                         {'status': JoinRequestStatus.PENDING.value}, actor=actor)
        return join_request

    def cancel_game(self, game_id, actor) -> Game:
        """
        Cancel a game (organizer only). Every pending join request is
        rejected in the same transaction.
        """
        game = self.get(game_id)
        require_game_organizer(actor, game, 'cancel the game')

        previous = game.status
        now = self.clock.utcnow()
        with self.store.transaction():
            GAME_STATES.transition(self.store, game, GameStatus.CANCELLED, updated_at=now)
            rejected = self.store.update_where(
                JoinRequest,
                JoinRequest.game_id == game.id,
                JoinRequest.status == JoinRequestStatus.PENDING.value,
                status=JoinRequestStatus.REJECTED.value,
                updated_at=now,
            )

        audit_log_update('Game', game.id, 'Cancelled game', {'status': previous}, actor=actor)
        if rejected:
            audit_log_bulk_operation('BULK_UPDATE', 'JoinRequest', rejected,
                                     f'Rejected pending requests of cancelled game {game.id}', actor=actor)
        return game

    def leave_game(self, game_id, participant) -> Game:
        """
        Remove a non-organizer participant from the roster. A full game
        re-opens.
        """
        game = self.get(game_id)
        if game.status == GameStatus.CANCELLED.value:
            raise ValidationError(f"Game {game.id} has been cancelled", field='status')
        if participant.is_organizer_of(game):
            raise ValidationError('The organizer cannot leave; cancel the game instead', field='organizer')

        with self.store.transaction():
            game = self.store.lock(Game, game.id)
            member = next((m for m in game.participants if m.id == participant.user_id), None)
            if member is None:
                raise ConflictError(f"Member {participant.user_id} is not playing in game {game.id}")

            now = self.clock.utcnow()
            game.participants.remove(member)
            if game.status == GameStatus.FULL.value:
                GAME_STATES.transition(self.store, game, GameStatus.OPEN, updated_at=now)
            else:
                game.updated_at = now

        audit_log_update('Game', game.id, f'Member {participant.user_id} left the game', actor=participant)
        return game

    # Helpers

    def _get_request(self, game, request_id) -> JoinRequest:
        join_request = self.store.find_by_id(JoinRequest, request_id)
        if join_request is None or join_request.game_id != game.id:
            raise NotFoundError('JoinRequest', request_id)
        return join_request
