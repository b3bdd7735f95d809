from flask import jsonify, request
from flask_login import login_required

from turfbook.games import bp
from turfbook.games.forms import GameForm, JoinRequestForm
from turfbook.games.services import GameWorkflow
from turfbook.utils import current_identity


def _form_errors(form):
    return jsonify({
        'success': False,
        'error': 'Invalid game data',
        'errors': form.errors
    }), 400


def _game_response(game, status_code=200):
    return jsonify({'success': True, 'game': game.to_dict()}), status_code


def _join_request_response(join_request, status_code=200):
    return jsonify({'success': True, 'join_request': join_request.to_dict()}), status_code


@bp.route('', methods=['GET'])
def list_games():
    """
    Upcoming games with free seats, optionally filtered by ?sport=
    """
    games = GameWorkflow().list_open(sport=request.args.get('sport'))
    return jsonify({
        'success': True,
        'games': [game.to_dict() for game in games]
    })


@bp.route('/<int:game_id>', methods=['GET'])
def get_game(game_id):
    return _game_response(GameWorkflow().get(game_id))


@bp.route('', methods=['POST'])
@login_required
def create_game():
    form = GameForm()
    if not form.validate_on_submit():
        return _form_errors(form)

    game = GameWorkflow().create_game(
        current_identity(),
        sport=form.sport.data,
        game_date=form.game_date.data,
        start_time=form.start_time.data,
        end_time=form.end_time.data,
        turf_name=form.turf_name.data,
        turf_location=form.turf_location.data,
        max_players=form.max_players.data,
        required_players=form.required_players.data or 0,
        per_head_contribution=form.per_head_contribution.data,
        description=form.description.data,
    )
    return _game_response(game, 201)


@bp.route('/<int:game_id>/join', methods=['POST'])
@login_required
def request_to_join(game_id):
    form = JoinRequestForm()
    if not form.validate_on_submit():
        return _form_errors(form)

    join_request = GameWorkflow().request_to_join(game_id, current_identity(), note=form.note.data)
    return _join_request_response(join_request, 201)


@bp.route('/<int:game_id>/leave', methods=['POST'])
@login_required
def leave_game(game_id):
    return _game_response(GameWorkflow().leave_game(game_id, current_identity()))


@bp.route('/<int:game_id>/cancel', methods=['POST'])
@login_required
def cancel_game(game_id):
    return _game_response(GameWorkflow().cancel_game(game_id, current_identity()))


@bp.route('/<int:game_id>/requests', methods=['GET'])
@login_required
def list_join_requests(game_id):
    """
    Join requests for a game, optionally filtered by ?status= (organizer only)
    """
    join_requests = GameWorkflow().join_requests(
        game_id, current_identity(), status=request.args.get('status')
    )
    return jsonify({
        'success': True,
        'join_requests': [join_request.to_dict() for join_request in join_requests]
    })


@bp.route('/<int:game_id>/requests/<int:request_id>/approve', methods=['POST'])
@login_required
def approve_join_request(game_id, request_id):
    join_request = GameWorkflow().approve_join(game_id, request_id, current_identity())
    return _join_request_response(join_request)


@bp.route('/<int:game_id>/requests/<int:request_id>/reject', methods=['POST'])
@login_required
def reject_join_request(game_id, request_id):
    join_request = GameWorkflow().reject_join(game_id, request_id, current_identity())
    return _join_request_response(join_request)
