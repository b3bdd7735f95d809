# Utility functions shared by the turf, booking and game workflows

from datetime import date, datetime, time
from decimal import Decimal, ROUND_HALF_UP

from flask import current_app
from flask_login import current_user

from turfbook.audit import audit_log_security_event
from turfbook.exceptions import AuthorizationError
from turfbook.identity import Identity


def ranges_overlap(start_a: time, end_a: time, start_b: time, end_b: time) -> bool:
    """
    Half-open interval overlap: [start_a, end_a) and [start_b, end_b) share
    at least one instant. Back-to-back ranges (end_a == start_b) do not overlap.
    """
    return start_a < end_b and start_b < end_a


def duration_hours(start: time, end: time) -> Decimal:
    """Length of [start, end) in hours as an exact Decimal."""
    anchor = date.min
    delta = datetime.combine(anchor, end) - datetime.combine(anchor, start)
    return Decimal(int(delta.total_seconds())) / Decimal(3600)


def quantize_amount(amount: Decimal) -> Decimal:
    quantum = Decimal(current_app.config.get('CURRENCY_QUANTUM', '0.01'))
    return amount.quantize(quantum, rounding=ROUND_HALF_UP)


def require_turf_owner(identity: Identity, turf, action: str):
    """Raise AuthorizationError unless `identity` owns `turf`."""
    if not identity.is_owner_of(turf):
        audit_log_security_event(
            'ACCESS_DENIED',
            f'Attempted to {action} on Turf {turf.id} owned by member {turf.owner_id}',
            actor=identity,
        )
        raise AuthorizationError(f"Only the owner of turf {turf.id} can {action}")


def require_game_organizer(identity: Identity, game, action: str):
    """Raise AuthorizationError unless `identity` organizes `game`."""
    if not identity.is_organizer_of(game):
        audit_log_security_event(
            'ACCESS_DENIED',
            f'Attempted to {action} on Game {game.id} organized by member {game.organizer_id}',
            actor=identity,
        )
        raise AuthorizationError(f"Only the organizer of game {game.id} can {action}")


def current_identity() -> Identity:
    """Identity of the logged-in member for the current request."""
    return Identity.from_member(current_user)
