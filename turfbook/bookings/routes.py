from flask import jsonify, request, abort
from flask_login import login_required

from turfbook.bookings import bp
from turfbook.bookings.forms import BookingRequestForm, PaymentStatusForm
from turfbook.bookings.services import BookingWorkflow
from turfbook.turfs.services import TurfRegistry
from turfbook.utils import current_identity, require_turf_owner


def _form_errors(form):
    return jsonify({
        'success': False,
        'error': 'Invalid booking data',
        'errors': form.errors
    }), 400


def _booking_response(booking, status_code=200):
    return jsonify({'success': True, 'booking': booking.to_dict()}), status_code


@bp.route('', methods=['POST'])
@login_required
def request_slot():
    """
    Request a time slot on a turf. The booking stays pending until the owner decides.
    """
    form = BookingRequestForm()
    if not form.validate_on_submit():
        return _form_errors(form)

    booking = BookingWorkflow().request_slot(
        form.turf_id.data,
        current_identity(),
        booking_date=form.booking_date.data,
        start_time=form.start_time.data,
        end_time=form.end_time.data,
        note=form.note.data,
    )
    return _booking_response(booking, 201)


@bp.route('/mine', methods=['GET'])
@login_required
def my_bookings():
    identity = current_identity()
    bookings = BookingWorkflow().for_requester(identity.user_id)
    return jsonify({
        'success': True,
        'bookings': [booking.to_dict() for booking in bookings]
    })


@bp.route('/pending', methods=['GET'])
@login_required
def pending_requests():
    """
    Pending booking requests across every turf the current member owns
    """
    identity = current_identity()
    bookings = BookingWorkflow().pending_for_owner(identity.user_id)
    return jsonify({
        'success': True,
        'bookings': [booking.to_dict() for booking in bookings]
    })


@bp.route('/turf/<int:turf_id>', methods=['GET'])
@login_required
def turf_bookings(turf_id):
    """
    Bookings on one turf, optionally filtered by ?status= (owner only)
    """
    turf = TurfRegistry().get(turf_id)
    require_turf_owner(current_identity(), turf, 'view bookings')
    bookings = BookingWorkflow().for_turf(turf.id, status=request.args.get('status'))
    return jsonify({
        'success': True,
        'bookings': [booking.to_dict() for booking in bookings]
    })


@bp.route('/<int:booking_id>', methods=['GET'])
@login_required
def get_booking(booking_id):
    identity = current_identity()
    booking = BookingWorkflow().get(booking_id)
    if booking.requester_id != identity.user_id and not identity.is_owner_of(booking.turf):
        abort(403)
    return _booking_response(booking)


@bp.route('/<int:booking_id>/approve', methods=['POST'])
@login_required
def approve_booking(booking_id):
    booking = BookingWorkflow().approve(booking_id, current_identity())
    return _booking_response(booking)


@bp.route('/<int:booking_id>/reject', methods=['POST'])
@login_required
def reject_booking(booking_id):
    booking = BookingWorkflow().reject(booking_id, current_identity())
    return _booking_response(booking)


@bp.route('/<int:booking_id>/cancel', methods=['POST'])
@login_required
def cancel_booking(booking_id):
    booking = BookingWorkflow().cancel(booking_id, current_identity())
    return _booking_response(booking)


@bp.route('/<int:booking_id>/payment', methods=['POST'])
@login_required
def update_payment_status(booking_id):
    """
    Update the payment flag of an approved booking (turf owner only)
    """
    form = PaymentStatusForm()
    if not form.validate_on_submit():
        return _form_errors(form)

    booking = BookingWorkflow().update_payment_status(
        booking_id, form.payment_status.data, actor=current_identity()
    )
    return _booking_response(booking)
