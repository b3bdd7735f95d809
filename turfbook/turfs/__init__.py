"""
Turfs blueprint: the registry of bookable turfs.

- Turf registration by turf owners
- Updates re-validated against the turf invariants
- Retirement (turfs are never deleted)
"""

from flask import Blueprint

bp = Blueprint('turfs', __name__)

from turfbook.turfs import routes
