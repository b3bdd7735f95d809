from flask import jsonify, request
from flask_login import login_required

from turfbook.turfs import bp
from turfbook.turfs.forms import TurfForm, TurfUpdateForm
from turfbook.turfs.services import TurfRegistry, UPDATABLE_FIELDS
from turfbook.utils import current_identity


def _form_errors(form):
    return jsonify({
        'success': False,
        'error': 'Invalid turf data',
        'errors': form.errors
    }), 400


@bp.route('', methods=['GET'])
def list_turfs():
    """
    List available turfs, optionally filtered by ?sport=
    """
    turfs = TurfRegistry().list_available(sport=request.args.get('sport'))
    return jsonify({
        'success': True,
        'turfs': [turf.to_dict() for turf in turfs]
    })


@bp.route('/mine', methods=['GET'])
@login_required
def my_turfs():
    """
    List every turf owned by the current member, retired ones included
    """
    identity = current_identity()
    turfs = TurfRegistry().owned_by(identity.user_id)
    return jsonify({
        'success': True,
        'turfs': [turf.to_dict() for turf in turfs]
    })


@bp.route('/<int:turf_id>', methods=['GET'])
def get_turf(turf_id):
    turf = TurfRegistry().get(turf_id)
    return jsonify({'success': True, 'turf': turf.to_dict()})


@bp.route('', methods=['POST'])
@login_required
def register_turf():
    """
    Register a new turf for the current member
    """
    form = TurfForm()
    if not form.validate_on_submit():
        return _form_errors(form)

    turf = TurfRegistry().register(
        current_identity(),
        name=form.name.data,
        location=form.location.data,
        description=form.description.data,
        price_per_hour=form.price_per_hour.data,
        open_time=form.open_time.data,
        close_time=form.close_time.data,
        sports=form.sports.data,
        amenities=form.amenities.data,
    )
    return jsonify({'success': True, 'turf': turf.to_dict()}), 201


@bp.route('/<int:turf_id>', methods=['PATCH'])
@login_required
def update_turf(turf_id):
    """
    Apply a partial update to a turf (owner only)
    """
    form = TurfUpdateForm()
    if not form.validate_on_submit():
        return _form_errors(form)

    payload = request.get_json(silent=True) or {}
    patch = {
        key: (form[key].data if key in UPDATABLE_FIELDS else value)
        for key, value in payload.items()
    }
    turf = TurfRegistry().update(turf_id, current_identity(), patch)
    return jsonify({'success': True, 'turf': turf.to_dict()})


@bp.route('/<int:turf_id>/retire', methods=['POST'])
@login_required
def retire_turf(turf_id):
    """
    Mark a turf unavailable for new bookings (owner only)
    """
    turf = TurfRegistry().retire(turf_id, current_identity())
    return jsonify({'success': True, 'turf': turf.to_dict()})
