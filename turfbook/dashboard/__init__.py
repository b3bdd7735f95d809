"""
Dashboard blueprint: read-only statistics for turf owners and game organizers.
"""

from flask import Blueprint

bp = Blueprint('dashboard', __name__)

from turfbook.dashboard import routes
