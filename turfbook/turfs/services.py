"""
Turf registry: create, update, retire and look up bookable turfs.
"""

from decimal import Decimal, InvalidOperation

from flask import current_app

from turfbook.audit import audit_log_create, audit_log_update, audit_log_security_event, get_model_changes
from turfbook.clock import get_clock
from turfbook.exceptions import AuthorizationError, NotFoundError, ValidationError
from turfbook.models import Turf
from turfbook.store import SqlAlchemyStore
from turfbook.utils import require_turf_owner

# Fields an owner may change after registration
UPDATABLE_FIELDS = (
    'name', 'location', 'description', 'price_per_hour',
    'open_time', 'close_time', 'sports', 'amenities',
)


def validate_turf_fields(fields, allowed_sports):
    """
    Check the invariants of a complete set of turf fields.

    Raises ValidationError naming the first violated field.
    """
    if not (fields.get('name') or '').strip():
        raise ValidationError('Turf name is required', field='name')

    try:
        price = Decimal(str(fields.get('price_per_hour')))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError('Price per hour must be a number', field='price_per_hour')
    if not price.is_finite() or price <= 0:
        raise ValidationError('Price per hour must be greater than 0', field='price_per_hour')

    open_time, close_time = fields.get('open_time'), fields.get('close_time')
    if open_time is None or close_time is None:
        raise ValidationError('Opening and closing times are required', field='operating_hours')
    if open_time >= close_time:
        raise ValidationError('Closing time must be after opening time', field='operating_hours')

    sports = fields.get('sports') or []
    if not sports:
        raise ValidationError('Select at least one sport', field='sports')
    unknown = [sport for sport in sports if sport not in allowed_sports]
    if unknown:
        raise ValidationError(f"Unsupported sports: {', '.join(unknown)}", field='sports')

    return price


class TurfRegistry:
    """Owns turf records. Never cascades into bookings."""

    def __init__(self, store=None, clock=None, sports=None):
        self.store = store or SqlAlchemyStore()
        self.clock = clock or get_clock()
        self.sports = sports if sports is not None else current_app.config.get('SPORTS', [])

    def get(self, turf_id) -> Turf:
        turf = self.store.find_by_id(Turf, turf_id)
        if turf is None:
            raise NotFoundError('Turf', turf_id)
        return turf

    def list_available(self, sport=None):
        turfs = self.store.find_where(Turf, Turf.is_available.is_(True), order_by=Turf.name)
        if sport:
            turfs = [turf for turf in turfs if turf.supports(sport)]
        return turfs

    def owned_by(self, owner_id):
        return self.store.find_where(Turf, Turf.owner_id == owner_id, order_by=Turf.name)

    def register(self, owner, name, price_per_hour, open_time, close_time, sports,
                 location='', description=None, amenities=None) -> Turf:
        """
        Register a new available turf for `owner`.

        Raises:
            AuthorizationError: the owner's role may not list turfs
            ValidationError: a turf invariant is violated
        """
        if not owner.can_own_turfs():
            audit_log_security_event('ACCESS_DENIED', 'Attempted to register a turf', actor=owner)
            raise AuthorizationError('Only turf owners can register turfs')

        fields = {
            'name': name,
            'price_per_hour': price_per_hour,
            'open_time': open_time,
            'close_time': close_time,
            'sports': list(sports or []),
        }
        price = validate_turf_fields(fields, self.sports)

        now = self.clock.utcnow()
        with self.store.transaction():
            turf = Turf(
                owner_id=owner.user_id,
                name=name.strip(),
                location=(location or '').strip(),
                description=description,
                price_per_hour=price,
                open_time=open_time,
                close_time=close_time,
                sports=list(sports),
                amenities=list(amenities or []),
                is_available=True,
                created_at=now,
                updated_at=now,
            )
            self.store.save(turf)

        audit_log_create('Turf', turf.id, f'Registered turf: {turf.name}', actor=owner)
        return turf

    def update(self, turf_id, actor, patch) -> Turf:
        """
        Merge `patch` into the turf after re-validating the merged record.

        Nothing is written if any invariant would break.
        """
        turf = self.get(turf_id)
        require_turf_owner(actor, turf, 'update the turf')

        unknown = sorted(set(patch) - set(UPDATABLE_FIELDS))
        if unknown:
            raise ValidationError(f"Fields cannot be updated: {', '.join(unknown)}", field=unknown[0])

        merged = {field: getattr(turf, field) for field in UPDATABLE_FIELDS}
        merged.update(patch)
        merged['price_per_hour'] = validate_turf_fields(merged, self.sports)
        if 'name' in patch:
            merged['name'] = merged['name'].strip()

        changes = get_model_changes(turf, {field: merged[field] for field in patch})
        with self.store.transaction():
            for field in patch:
                setattr(turf, field, merged[field])
            turf.updated_at = self.clock.utcnow()
            self.store.save(turf)

        audit_log_update('Turf', turf.id, f'Updated turf: {turf.name}', changes, actor=actor)
        return turf

    def retire(self, turf_id, actor) -> Turf:
        """Mark a turf unavailable. Approved bookings on it stay valid."""
        turf = self.get(turf_id)
        require_turf_owner(actor, turf, 'retire the turf')
        if not turf.is_available:
            return turf

        with self.store.transaction():
            turf.is_available = False
            turf.updated_at = self.clock.utcnow()
            self.store.save(turf)

        audit_log_update('Turf', turf.id, f'Retired turf: {turf.name}', {'is_available': 'True'}, actor=actor)
        return turf
