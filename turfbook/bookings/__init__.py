"""
Bookings blueprint: time-slot reservations against a turf.

- Requesting a slot (pending until the owner decides)
- Owner approval and rejection
- Payment status tracking and requester cancellation
"""

from flask import Blueprint

bp = Blueprint('bookings', __name__)

from turfbook.bookings import routes
