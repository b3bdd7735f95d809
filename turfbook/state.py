"""
Status transitions shared by bookings, join requests and games.

A transition is only ever applied as a conditional UPDATE against the stored
status column, so two callers racing on the same record cannot both win:
the loser sees zero affected rows and gets a ConflictError.
"""

from typing import Dict, FrozenSet, Iterable

from turfbook.exceptions import ConflictError
from turfbook.models import BookingStatus, GameStatus, JoinRequestStatus


def _value(status):
    return getattr(status, 'value', status)


class RequestStateMachine:
    """A closed transition table applied with compare-and-set."""

    def __init__(self, name: str, transitions: Dict[str, Iterable[str]]):
        self.name = name
        self.transitions: Dict[str, FrozenSet[str]] = {
            _value(source): frozenset(_value(t) for t in targets)
            for source, targets in transitions.items()
        }

    def can_transition(self, current, target) -> bool:
        return _value(target) in self.transitions.get(_value(current), frozenset())

    def is_terminal(self, status) -> bool:
        return not self.transitions.get(_value(status))

    def sources_for(self, target) -> FrozenSet[str]:
        """Every status from which `target` may be reached."""
        target = _value(target)
        return frozenset(
            source for source, targets in self.transitions.items()
            if target in targets
        )

    def transition(self, store, record, target, **values):
        """
        Move `record` to `target`, writing any extra column `values` in the
        same UPDATE.

        Raises:
            ConflictError: the record is already past the point where
                `target` is reachable, or another caller changed its status
                first.
        """
        target = _value(target)
        current = _value(record.status)
        if not self.can_transition(current, target):
            raise ConflictError(
                f"{self.name} {record.id} is {current} and cannot become {target}"
            )

        updated = store.compare_and_set(
            record, 'status', self.sources_for(target), status=target, **values
        )
        if not updated:
            raise ConflictError(
                f"{self.name} {record.id} was modified concurrently; "
                f"reload it before trying again"
            )
        return record


JOIN_REQUEST_STATES = RequestStateMachine('JoinRequest', {
    JoinRequestStatus.PENDING: {JoinRequestStatus.APPROVED, JoinRequestStatus.REJECTED},
})

BOOKING_STATES = RequestStateMachine('Booking', {
    BookingStatus.PENDING: {BookingStatus.APPROVED, BookingStatus.REJECTED, BookingStatus.CANCELLED},
    BookingStatus.APPROVED: {BookingStatus.CANCELLED},
})

GAME_STATES = RequestStateMachine('Game', {
    GameStatus.OPEN: {GameStatus.FULL, GameStatus.CANCELLED},
    GameStatus.FULL: {GameStatus.OPEN, GameStatus.CANCELLED},
})
