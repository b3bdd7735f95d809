from flask import jsonify
from flask_login import login_required

from turfbook.dashboard import bp
from turfbook.dashboard.services import DashboardStats
from turfbook.utils import current_identity


@bp.route('/owner', methods=['GET'])
@login_required
def owner_dashboard():
    """
    Revenue, today's bookings and pending requests for the current turf owner
    """
    identity = current_identity()
    stats = DashboardStats()
    summary = stats.owner_summary(identity.user_id)
    summary['total_revenue'] = str(summary['total_revenue'])
    return jsonify({
        'success': True,
        'stats': summary,
        'todays_bookings': [booking.to_dict() for booking in stats.todays_bookings(identity.user_id)],
    })


@bp.route('/organizer', methods=['GET'])
@login_required
def organizer_dashboard():
    identity = current_identity()
    return jsonify({
        'success': True,
        'pending_join_requests': DashboardStats().pending_join_count(identity.user_id),
    })
