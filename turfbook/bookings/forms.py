"""
Booking-related forms for the JSON API.
"""

from flask_wtf import FlaskForm
from wtforms import IntegerField, DateField, TimeField, TextAreaField, SelectField
from wtforms.validators import InputRequired, Optional, Length

from turfbook.models import PaymentStatus


class BookingRequestForm(FlaskForm):
    class Meta:
        csrf = False

    turf_id = IntegerField('Turf', validators=[InputRequired()])
    booking_date = DateField('Booking Date', validators=[InputRequired()])
    start_time = TimeField('Start Time', validators=[InputRequired()])
    end_time = TimeField('End Time', validators=[InputRequired()])
    note = TextAreaField('Note', validators=[Optional(), Length(max=500)])


class PaymentStatusForm(FlaskForm):
    class Meta:
        csrf = False

    payment_status = SelectField(
        'Payment Status',
        choices=[(status.value, status.value.title()) for status in PaymentStatus],
        validators=[InputRequired()]
    )
