"""
Game-related forms for the JSON API.
"""

from flask import current_app
from flask_wtf import FlaskForm
from wtforms import StringField, TextAreaField, SelectField, DateField, TimeField, IntegerField, DecimalField
from wtforms.validators import InputRequired, Optional, Length, NumberRange


class GameForm(FlaskForm):
    class Meta:
        csrf = False

    sport = SelectField('Sport', choices=[], validators=[InputRequired()])
    game_date = DateField('Date', validators=[InputRequired()])
    start_time = TimeField('Start Time', validators=[InputRequired()])
    end_time = TimeField('End Time', validators=[InputRequired()])
    turf_name = StringField('Turf Name', validators=[InputRequired(), Length(max=128)])
    turf_location = StringField('Turf Location', validators=[InputRequired(), Length(max=255)])
    max_players = IntegerField('Max Players', validators=[InputRequired()])
    required_players = IntegerField('Players Needed', default=0, validators=[Optional(), NumberRange(min=0)])
    per_head_contribution = DecimalField('Per Head Contribution', validators=[Optional()])
    description = TextAreaField('Description', validators=[Optional(), Length(max=1000)])

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        # Populate the sport choices dynamically from the app config
        self.sport.choices = [
            (sport, sport.title()) for sport in current_app.config.get('MAX_PLAYERS_OPTIONS', {})
        ]


class JoinRequestForm(FlaskForm):
    class Meta:
        csrf = False

    note = TextAreaField('Message to the organizer', validators=[Optional(), Length(max=500)])
