"""
Games blueprint: capacity-bounded pickup games.

- Game creation with the organizer as first participant
- Join requests approved or rejected by the organizer
- Leaving and cancellation
"""

from flask import Blueprint

bp = Blueprint('games', __name__)

from turfbook.games import routes
