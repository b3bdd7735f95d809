"""
Unit tests for the game and join request workflow.
"""
import pytest
from datetime import time, timedelta
from decimal import Decimal

from turfbook.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from turfbook.games.services import GameWorkflow
from turfbook.identity import Identity
from turfbook.models import Game, JoinRequest
from tests.fixtures.factories import GameFactory, JoinRequestFactory, MemberFactory


@pytest.fixture
def workflow(db_session, clock):
    return GameWorkflow(clock=clock)


def _players(count):
    return [Identity.from_member(MemberFactory.create()) for _ in range(count)]


def _game_fields(clock, **overrides):
    fields = {
        'sport': 'football',
        'game_date': clock.today() + timedelta(days=3),
        'start_time': time(18, 0),
        'end_time': time(19, 30),
        'turf_name': 'Greenfield Arena',
        'turf_location': 'North Road',
        'max_players': 10,
        'required_players': 6,
        'per_head_contribution': Decimal('150'),
    }
    fields.update(overrides)
    return fields


@pytest.mark.unit
class TestCreateGame:
    """Test cases for creating games."""

    def test_organizer_is_first_participant(self, workflow, organizer, organizer_identity, clock):
        game = workflow.create_game(organizer_identity, **_game_fields(clock))

        assert game.status == 'open'
        assert [m.id for m in game.participants] == [organizer.id]
        assert game.remaining_spots() == 9
        assert game.per_head_contribution == Decimal('150.00')

    @pytest.mark.parametrize('overrides, field', [
        ({'sport': 'curling'}, 'sport'),
        ({'max_players': 12}, 'max_players'),
        ({'required_players': -1}, 'required_players'),
        ({'required_players': 10}, 'required_players'),
        ({'start_time': time(20, 0), 'end_time': time(18, 0)}, 'time_range'),
        ({'turf_name': ''}, 'turf_name'),
        ({'turf_location': '  '}, 'turf_location'),
        ({'per_head_contribution': Decimal('-5')}, 'per_head_contribution'),
        ({'per_head_contribution': 'lots'}, 'per_head_contribution'),
    ])
    def test_invalid_game_is_rejected(self, db_session, workflow, organizer_identity, clock, overrides, field):
        with pytest.raises(ValidationError) as excinfo:
            workflow.create_game(organizer_identity, **_game_fields(clock, **overrides))

        assert excinfo.value.field == field
        assert db_session.query(Game).count() == 0

    def test_game_in_past_is_rejected(self, workflow, organizer_identity, clock):
        with pytest.raises(ValidationError) as excinfo:
            workflow.create_game(organizer_identity,
                                 **_game_fields(clock, game_date=clock.today() - timedelta(days=1)))
        assert excinfo.value.field == 'game_date'

    def test_unknown_organizer(self, db_session, workflow, clock):
        with pytest.raises(NotFoundError):
            workflow.create_game(Identity(user_id=999), **_game_fields(clock))


@pytest.mark.unit
class TestJoinRequests:
    """Test cases for asking to join a game and the organizer's decisions."""

    def test_game_fills_up_and_refuses_new_requests(self, workflow, game, organizer_identity):
        """Three approvals fill a game for four and close it to new requests."""
        for player in _players(3):
            join_request = workflow.request_to_join(game.id, player)
            workflow.approve_join(game.id, join_request.id, organizer_identity)

        game = workflow.get(game.id)
        assert len(game.participants) == 4
        assert game.status == 'full'

        latecomer = _players(1)[0]
        with pytest.raises(ValidationError):
            workflow.request_to_join(game.id, latecomer)

    def test_non_organizer_cannot_approve(self, db_session, workflow, game, player_identity, other_identity):
        """An approval attempt by someone other than the organizer changes nothing."""
        join_request = workflow.request_to_join(game.id, player_identity)

        with pytest.raises(AuthorizationError):
            workflow.approve_join(game.id, join_request.id, other_identity)

        assert workflow.get(game.id).remaining_spots() == 3
        assert not workflow.get(game.id).has_participant(player_identity.user_id)
        assert db_session.get(JoinRequest, join_request.id).status == 'pending'

    def test_duplicate_pending_request_conflicts(self, workflow, game, player_identity):
        workflow.request_to_join(game.id, player_identity, note='Keen to play')

        with pytest.raises(ConflictError):
            workflow.request_to_join(game.id, player_identity)

    def test_participant_cannot_request_again(self, workflow, game, organizer_identity, player_identity):
        join_request = workflow.request_to_join(game.id, player_identity)
        workflow.approve_join(game.id, join_request.id, organizer_identity)

        with pytest.raises(ConflictError):
            workflow.request_to_join(game.id, player_identity)

    def test_organizer_cannot_request_to_join(self, workflow, game, organizer_identity):
        with pytest.raises(ConflictError):
            workflow.request_to_join(game.id, organizer_identity)

    def test_rejected_member_may_ask_again(self, workflow, game, organizer_identity, player_identity):
        first = workflow.request_to_join(game.id, player_identity)
        workflow.reject_join(game.id, first.id, organizer_identity)

        second = workflow.request_to_join(game.id, player_identity)
        assert second.status == 'pending'
        assert second.id != first.id

    def test_reject_leaves_roster_untouched(self, workflow, game, organizer_identity, player_identity):
        join_request = workflow.request_to_join(game.id, player_identity)

        rejected = workflow.reject_join(game.id, join_request.id, organizer_identity)

        assert rejected.status == 'rejected'
        assert len(workflow.get(game.id).participants) == 1

    def test_decided_request_cannot_be_decided_again(self, workflow, game, organizer_identity, player_identity):
        join_request = workflow.request_to_join(game.id, player_identity)
        workflow.reject_join(game.id, join_request.id, organizer_identity)

        with pytest.raises(ConflictError):
            workflow.approve_join(game.id, join_request.id, organizer_identity)
        assert len(workflow.get(game.id).participants) == 1

    def test_request_for_another_game_is_not_found(self, workflow, game, organizer_identity):
        stray = JoinRequestFactory.create()

        with pytest.raises(NotFoundError):
            workflow.approve_join(game.id, stray.id, organizer_identity)

    def test_pending_requests_left_when_game_fills(self, db_session, workflow, organizer, organizer_identity):
        game = GameFactory.create(organizer=organizer, sport='tennis', max_players=2, required_players=1)
        first, second = _players(2)
        first_request = workflow.request_to_join(game.id, first)
        second_request = workflow.request_to_join(game.id, second)

        workflow.approve_join(game.id, first_request.id, organizer_identity)
        with pytest.raises(ConflictError):
            workflow.approve_join(game.id, second_request.id, organizer_identity)

        db_session.expire_all()
        assert db_session.get(JoinRequest, second_request.id).status == 'pending'
        assert len(db_session.get(Game, game.id).participants) == 2

    def test_join_requests_listing_is_organizer_only(self, workflow, game, organizer_identity,
                                                     player_identity, other_identity):
        workflow.request_to_join(game.id, player_identity)
        workflow.request_to_join(game.id, other_identity)

        assert len(workflow.join_requests(game.id, organizer_identity, status='pending')) == 2
        with pytest.raises(AuthorizationError):
            workflow.join_requests(game.id, player_identity)


@pytest.mark.unit
class TestCancelAndLeave:
    """Test cases for cancelling a game and leaving the roster."""

    def test_cancel_rejects_pending_requests(self, workflow, game, organizer_identity,
                                             player_identity, other_identity):
        first = workflow.request_to_join(game.id, player_identity)
        second = workflow.request_to_join(game.id, other_identity)

        cancelled = workflow.cancel_game(game.id, organizer_identity)

        assert cancelled.status == 'cancelled'
        statuses = {r.status for r in workflow.join_requests(game.id, organizer_identity)}
        assert statuses == {'rejected'}
        assert {first.id, second.id} == {r.id for r in workflow.join_requests(game.id, organizer_identity)}

    def test_cancelled_game_refuses_requests(self, workflow, game, organizer_identity, player_identity):
        workflow.cancel_game(game.id, organizer_identity)

        with pytest.raises(ValidationError):
            workflow.request_to_join(game.id, player_identity)
        with pytest.raises(ConflictError):
            workflow.cancel_game(game.id, organizer_identity)

    def test_cancel_by_non_organizer_is_denied(self, workflow, game, player_identity):
        with pytest.raises(AuthorizationError):
            workflow.cancel_game(game.id, player_identity)
        assert workflow.get(game.id).status == 'open'

    def test_leaving_a_full_game_reopens_it(self, workflow, organizer, organizer_identity):
        player = MemberFactory.create()
        game = GameFactory.create(organizer=organizer, max_players=2, required_players=1,
                                  status='full', participants=[player])

        reopened = workflow.leave_game(game.id, Identity.from_member(player))

        assert reopened.status == 'open'
        assert not reopened.has_participant(player.id)

    def test_organizer_cannot_leave(self, workflow, game, organizer_identity):
        with pytest.raises(ValidationError):
            workflow.leave_game(game.id, organizer_identity)

    def test_non_participant_cannot_leave(self, workflow, game, player_identity):
        with pytest.raises(ConflictError):
            workflow.leave_game(game.id, player_identity)


@pytest.mark.unit
class TestGameQueries:
    """Test cases for listing games."""

    def test_list_open_skips_full_cancelled_and_past(self, db_session, workflow, clock):
        GameFactory.create(sport='tennis', turf_name='Open Tennis')
        GameFactory.create(sport='football', max_players=10, turf_name='Open Football')
        GameFactory.create(status='full', turf_name='Full')
        GameFactory.create(status='cancelled', turf_name='Cancelled')
        GameFactory.create(game_date=clock.today() - timedelta(days=1), turf_name='Yesterday')

        assert {g.turf_name for g in workflow.list_open()} == {'Open Tennis', 'Open Football'}
        assert [g.turf_name for g in workflow.list_open(sport='football')] == ['Open Football']
