"""
Dashboard statistics.

Every figure is recomputed from the stored bookings, turfs and join requests
on each call; nothing is cached or maintained incrementally.
"""

from decimal import Decimal
from typing import Any, Dict

from turfbook.clock import get_clock
from turfbook.models import (
    Booking, BookingStatus, Game, JoinRequest, JoinRequestStatus, PaymentStatus, Turf,
)
from turfbook.store import SqlAlchemyStore


class DashboardStats:
    """Read-side projections over the booking and game collections."""

    def __init__(self, store=None, clock=None):
        self.store = store or SqlAlchemyStore()
        self.clock = clock or get_clock()

    def _turf_ids(self, owner_id):
        return [turf.id for turf in self.store.find_where(Turf, Turf.owner_id == owner_id)]

    def total_revenue(self, owner_id) -> Decimal:
        """Sum of approved, paid booking amounts across the owner's turfs."""
        bookings = self.store.find_where(
            Booking,
            Booking.turf_id.in_(self._turf_ids(owner_id)),
            Booking.status == BookingStatus.APPROVED.value,
            Booking.payment_status == PaymentStatus.PAID.value,
        )
        return sum((booking.amount for booking in bookings), Decimal('0.00'))

    def todays_bookings(self, owner_id):
        """Bookings of any status on the owner's turfs dated today."""
        return self.store.find_where(
            Booking,
            Booking.turf_id.in_(self._turf_ids(owner_id)),
            Booking.booking_date == self.clock.today(),
            order_by=Booking.start_time,
        )

    def pending_booking_count(self, owner_id) -> int:
        return self.store.count_where(
            Booking,
            Booking.turf_id.in_(self._turf_ids(owner_id)),
            Booking.status == BookingStatus.PENDING.value,
        )

    def pending_join_count(self, organizer_id) -> int:
        """Pending join requests across every game the member organizes."""
        game_ids = [game.id for game in self.store.find_where(Game, Game.organizer_id == organizer_id)]
        return self.store.count_where(
            JoinRequest,
            JoinRequest.game_id.in_(game_ids),
            JoinRequest.status == JoinRequestStatus.PENDING.value,
        )

    def owner_summary(self, owner_id) -> Dict[str, Any]:
        """
        Headline figures for the turf owner dashboard.

        Returns:
            Dictionary with total_turfs, total_revenue, today_bookings_count
            and pending_requests_count
        """
        return {
            'total_turfs': len(self._turf_ids(owner_id)),
            'total_revenue': self.total_revenue(owner_id),
            'today_bookings_count': len(self.todays_bookings(owner_id)),
            'pending_requests_count': self.pending_booking_count(owner_id),
        }
