"""
Slot reservation workflow.

A booking starts pending and is approved or rejected by the turf owner.
Overlap is only ever checked against *approved* bookings: competing pending
requests for the same window are allowed, and the owner picks one to approve.
The check runs twice, once when the request is made and again under a row
lock on the turf when the owner approves, so two approvals in quick
succession cannot both land.
"""

from turfbook.audit import audit_log_create, audit_log_update
from turfbook.clock import get_clock
from turfbook.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from turfbook.models import Booking, BookingStatus, PaymentStatus, Turf
from turfbook.state import BOOKING_STATES
from turfbook.store import SqlAlchemyStore
from turfbook.utils import duration_hours, quantize_amount, ranges_overlap, require_turf_owner

# Payment flag moves allowed on an approved booking
PAYMENT_TRANSITIONS = {
    PaymentStatus.UNPAID.value: {PaymentStatus.PAID.value},
    PaymentStatus.PAID.value: {PaymentStatus.UNPAID.value, PaymentStatus.REFUNDED.value},
    PaymentStatus.REFUNDED.value: set(),
}


class BookingWorkflow:
    """Validates and manages time-slot booking requests against a turf."""

    def __init__(self, store=None, clock=None):
        self.store = store or SqlAlchemyStore()
        self.clock = clock or get_clock()

    # Queries

    def get(self, booking_id) -> Booking:
        booking = self.store.find_by_id(Booking, booking_id)
        if booking is None:
            raise NotFoundError('Booking', booking_id)
        return booking

    def for_requester(self, requester_id):
        return self.store.find_where(
            Booking, Booking.requester_id == requester_id,
            order_by=Booking.booking_date
        )

    def for_turf(self, turf_id, status=None):
        criteria = [Booking.turf_id == turf_id]
        if status:
            criteria.append(Booking.status == getattr(status, 'value', status))
        return self.store.find_where(Booking, *criteria, order_by=Booking.booking_date)

    def pending_for_owner(self, owner_id):
        return self.store.find_where(
            Booking,
            Booking.turf_id.in_(self._owned_turf_ids(owner_id)),
            Booking.status == BookingStatus.PENDING.value,
            order_by=Booking.created_at
        )

    def find_overlapping(self, turf_id, booking_date, start_time, end_time, exclude_id=None):
        """Approved bookings on the turf and date that overlap [start_time, end_time)."""
        approved = self.store.find_where(
            Booking,
            Booking.turf_id == turf_id,
            Booking.booking_date == booking_date,
            Booking.status == BookingStatus.APPROVED.value,
        )
        return [
            other for other in approved
            if other.id != exclude_id
            and ranges_overlap(start_time, end_time, other.start_time, other.end_time)
        ]

    # Commands

    def request_slot(self, turf_id, requester, booking_date, start_time, end_time, note='') -> Booking:
        """
        Create a pending booking request.

        Raises:
            NotFoundError: the turf is missing or retired
            ValidationError: date in the past, empty range, or outside opening hours
            ConflictError: the range overlaps an approved booking
        """
        turf = self.store.find_by_id(Turf, turf_id)
        if turf is None or not turf.is_available:
            raise NotFoundError('Turf', turf_id)

        self._validate_slot(turf, booking_date, start_time, end_time)

        clashes = self.find_overlapping(turf.id, booking_date, start_time, end_time)
        if clashes:
            raise ConflictError(
                f"{turf.name} is already booked {clashes[0].start_time:%H:%M}-"
                f"{clashes[0].end_time:%H:%M} on {booking_date.isoformat()}"
            )

        amount = quantize_amount(duration_hours(start_time, end_time) * turf.price_per_hour)
        now = self.clock.utcnow()
        with self.store.transaction():
            booking = Booking(
                turf_id=turf.id,
                requester_id=requester.user_id,
                booking_date=booking_date,
                start_time=start_time,
                end_time=end_time,
                amount=amount,
                note=note or None,
                status=BookingStatus.PENDING.value,
                payment_status=PaymentStatus.UNPAID.value,
                created_at=now,
                updated_at=now,
            )
            self.store.save(booking)

        audit_log_create('Booking', booking.id,
                         f'Requested {turf.name} on {booking_date} {start_time:%H:%M}-{end_time:%H:%M}',
                         actor=requester)
        return booking

    def approve(self, booking_id, actor) -> Booking:
        """
        Approve a pending booking (turf owner only).

        The overlap check is re-run under a lock on the turf row against the
        bookings approved since this request was made.
        """
        booking = self.get(booking_id)
        require_turf_owner(actor, booking.turf, 'approve bookings')

        with self.store.transaction():
            turf = self.store.lock(Turf, booking.turf_id)
            clashes = self.find_overlapping(
                turf.id, booking.booking_date, booking.start_time, booking.end_time,
                exclude_id=booking.id
            )
            if clashes:
                raise ConflictError(
                    f"Booking {booking.id} overlaps approved booking {clashes[0].id}"
                )
            BOOKING_STATES.transition(self.store, booking, BookingStatus.APPROVED,
                                      updated_at=self.clock.utcnow())

        audit_log_update('Booking', booking.id, 'Approved booking',
                         {'status': BookingStatus.PENDING.value}, actor=actor)
        return booking

    def reject(self, booking_id, actor) -> Booking:
        """Reject a pending booking (turf owner only)."""
        booking = self.get(booking_id)
        require_turf_owner(actor, booking.turf, 'reject bookings')

        with self.store.transaction():
            BOOKING_STATES.transition(self.store, booking, BookingStatus.REJECTED,
                                      updated_at=self.clock.utcnow())

        audit_log_update('Booking', booking.id, 'Rejected booking',
                         {'status': BookingStatus.PENDING.value}, actor=actor)
        return booking

    def update_payment_status(self, booking_id, payment_status, actor=None) -> Booking:
        """
        Change the payment flag of an approved booking.

        When `actor` is given it must own the turf.
        """
        try:
            payment_status = PaymentStatus(getattr(payment_status, 'value', payment_status)).value
        except ValueError:
            raise ValidationError(f"Unknown payment status: {payment_status}", field='payment_status')

        booking = self.get(booking_id)
        if actor is not None:
            require_turf_owner(actor, booking.turf, 'update payment status')

        if booking.status != BookingStatus.APPROVED.value:
            raise ConflictError(
                f"Payment status can only change on approved bookings; booking {booking.id} is {booking.status}"
            )

        previous = booking.payment_status
        if payment_status == previous:
            return booking
        if payment_status not in PAYMENT_TRANSITIONS[previous]:
            raise ValidationError(
                f"Payment status cannot change from {previous} to {payment_status}",
                field='payment_status'
            )

        with self.store.transaction():
            # The checks above ran against `previous`; the write only lands if it still holds
            updated = self.store.update_where(
                Booking,
                Booking.id == booking.id,
                Booking.status == BookingStatus.APPROVED.value,
                Booking.payment_status == previous,
                payment_status=payment_status,
                updated_at=self.clock.utcnow(),
            )
            if updated != 1:
                raise ConflictError(
                    f"Booking {booking.id} changed while updating its payment status; reload it and retry"
                )
        self.store.refresh(booking)

        audit_log_update('Booking', booking.id, f'Payment status set to {payment_status}',
                         {'payment_status': previous}, actor=actor)
        return booking

    def cancel(self, booking_id, requester) -> Booking:
        """
        Cancel a pending or approved booking (requester only) before it
        starts, freeing the slot.
        """
        booking = self.get(booking_id)
        if booking.requester_id != requester.user_id:
            raise AuthorizationError(f"Only the requester can cancel booking {booking.id}")

        if booking.starts_at() <= self.clock.now():
            raise ValidationError('Bookings can only be cancelled before they start', field='booking_date')

        previous = booking.status
        with self.store.transaction():
            BOOKING_STATES.transition(self.store, booking, BookingStatus.CANCELLED,
                                      updated_at=self.clock.utcnow())

        audit_log_update('Booking', booking.id, 'Cancelled booking', {'status': previous}, actor=requester)
        return booking

    # Helpers

    def _validate_slot(self, turf, booking_date, start_time, end_time):
        if booking_date < self.clock.today():
            raise ValidationError('Booking date cannot be in the past', field='booking_date')
        if start_time >= end_time:
            raise ValidationError('End time must be after start time', field='time_range')
        if not turf.is_within_operating_hours(start_time, end_time):
            raise ValidationError(
                f"Requested time must fall within operating hours "
                f"{turf.open_time:%H:%M}-{turf.close_time:%H:%M}",
                field='operating_hours'
            )

    def _owned_turf_ids(self, owner_id):
        return [turf.id for turf in self.store.find_where(Turf, Turf.owner_id == owner_id)]
