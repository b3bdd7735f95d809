"""
Turf-related forms for the JSON API.
"""

from flask import current_app
from flask_wtf import FlaskForm
from wtforms import StringField, TextAreaField, DecimalField, TimeField, SelectMultipleField
from wtforms.validators import InputRequired, Optional, Length


class TurfForm(FlaskForm):
    class Meta:
        csrf = False

    name = StringField('Turf Name', validators=[InputRequired(), Length(max=128)])
    location = StringField('Location', validators=[Optional(), Length(max=255)])
    description = TextAreaField('Description', validators=[Optional()])
    price_per_hour = DecimalField('Price per Hour', validators=[InputRequired()])
    open_time = TimeField('Opens At', validators=[InputRequired()])
    close_time = TimeField('Closes At', validators=[InputRequired()])
    sports = SelectMultipleField('Sports', choices=[], validators=[InputRequired()])
    amenities = SelectMultipleField('Amenities', choices=[], validators=[Optional()])

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        # Populate the choices dynamically from the app config
        self.sports.choices = [(sport, sport.title()) for sport in current_app.config.get('SPORTS', [])]
        self.amenities.choices = [(amenity, amenity) for amenity in current_app.config.get('AMENITIES', [])]


class TurfUpdateForm(TurfForm):
    """Every field optional; only the keys present in the request are applied."""

    name = StringField('Turf Name', validators=[Optional(), Length(max=128)])
    price_per_hour = DecimalField('Price per Hour', validators=[Optional()])
    open_time = TimeField('Opens At', validators=[Optional()])
    close_time = TimeField('Closes At', validators=[Optional()])
    sports = SelectMultipleField('Sports', choices=[], validators=[Optional()])
