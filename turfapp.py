import sqlalchemy as sa
import sqlalchemy.orm as so
from turfbook import create_app, db
from turfbook.models import Member, Turf, Booking, Game, JoinRequest
import os

app = create_app(os.getenv('FLASK_CONFIG') or 'development')

@app.shell_context_processor
def make_shell_context():
    return {
        'sa': sa,
        'so': so,
        'db': db,
        'Member': Member,
        'Turf': Turf,
        'Booking': Booking,
        'Game': Game,
        'JoinRequest': JoinRequest,
    }

if __name__ == '__main__':
    app.run(debug=True)
