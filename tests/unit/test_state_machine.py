"""
Unit tests for the shared request state machine.
"""
import pytest
import sqlalchemy as sa
from sqlalchemy.orm.attributes import set_committed_value

from turfbook.exceptions import ConflictError
from turfbook.models import Booking, JoinRequest
from turfbook.state import BOOKING_STATES, GAME_STATES, JOIN_REQUEST_STATES
from turfbook.store import SqlAlchemyStore
from tests.fixtures.factories import BookingFactory, JoinRequestFactory


@pytest.mark.unit
class TestTransitionTable:
    """Test cases for the transition tables themselves."""

    def test_join_request_terminal_states(self):
        assert JOIN_REQUEST_STATES.can_transition('pending', 'approved')
        assert JOIN_REQUEST_STATES.can_transition('pending', 'rejected')
        assert JOIN_REQUEST_STATES.is_terminal('approved')
        assert JOIN_REQUEST_STATES.is_terminal('rejected')
        assert not JOIN_REQUEST_STATES.can_transition('approved', 'rejected')

    def test_booking_can_be_cancelled_after_approval(self):
        assert BOOKING_STATES.can_transition('approved', 'cancelled')
        assert BOOKING_STATES.sources_for('cancelled') == {'pending', 'approved'}
        assert BOOKING_STATES.is_terminal('rejected')
        assert BOOKING_STATES.is_terminal('cancelled')

    def test_game_full_reopens(self):
        assert GAME_STATES.can_transition('open', 'full')
        assert GAME_STATES.can_transition('full', 'open')
        assert GAME_STATES.is_terminal('cancelled')


@pytest.mark.unit
class TestCompareAndSetTransition:
    """Test cases for applying transitions against stored records."""

    def test_pending_booking_is_approved(self, db_session):
        booking = BookingFactory.create()
        store = SqlAlchemyStore()

        with store.transaction():
            BOOKING_STATES.transition(store, booking, 'approved')

        assert booking.status == 'approved'
        assert db_session.get(Booking, booking.id).status == 'approved'

    def test_second_transition_on_terminal_record_conflicts(self, db_session):
        join_request = JoinRequestFactory.create()
        store = SqlAlchemyStore()

        with store.transaction():
            JOIN_REQUEST_STATES.transition(store, join_request, 'approved')

        with pytest.raises(ConflictError):
            with store.transaction():
                JOIN_REQUEST_STATES.transition(store, join_request, 'rejected')

        assert db_session.get(JoinRequest, join_request.id).status == 'approved'

    def test_stale_copy_loses_the_race(self, db_session):
        """A caller holding a stale 'pending' copy cannot overwrite a decision made elsewhere."""
        join_request = JoinRequestFactory.create()
        store = SqlAlchemyStore()

        # Another caller rejects the request behind this session's back
        db_session.execute(
            sa.update(JoinRequest)
            .where(JoinRequest.id == join_request.id)
            .values(status='rejected')
            .execution_options(synchronize_session=False)
        )
        db_session.commit()
        assert join_request.game_id  # reload the committed row
        set_committed_value(join_request, 'status', 'pending')  # stale in-memory view

        with pytest.raises(ConflictError):
            with store.transaction():
                JOIN_REQUEST_STATES.transition(store, join_request, 'approved')

        db_session.expire_all()
        assert db_session.get(JoinRequest, join_request.id).status == 'rejected'

    def test_extra_values_written_with_the_status(self, db_session, clock):
        booking = BookingFactory.create()
        store = SqlAlchemyStore()

        with store.transaction():
            BOOKING_STATES.transition(store, booking, 'rejected', updated_at=clock.now())

        assert booking.status == 'rejected'
        assert booking.updated_at == clock.now()
