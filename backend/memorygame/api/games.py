from flask import Blueprint, jsonify, request, current_app
from flask_login import current_user
from sqlalchemy.exc import SQLAlchemyError
from memorygame.services.games.difficulty import ConfigurationError
from memorygame.services.games.registry import get_registry
from memorygame.services.leaderboard import (
    ResultValidationError,
    store_submission,
    submission_from_result,
)


games = Blueprint('games', __name__)


def _events_payload(events):
    out = []
    for e in events:
        item = {'name': e.name}
        item.update(e.to_dict())
        out.append(item)
    return out


def _session_or_404(game_code):
    session = get_registry(current_app).get(game_code)
    if session is None:
        return None, (jsonify({'error': 'Game not found'}), 404)
    return session, None


@games.route('/create', methods=['POST'])
def create_game():
    data = request.get_json(silent=True) or {}
    difficulty = data.get('difficulty') or 'easy'
    try:
        code, session = get_registry(current_app).start(difficulty)
    except ConfigurationError as exc:
        return jsonify({'error': str(exc)}), 400
    return jsonify({
        'message': 'New game created!',
        'game_code': code,
        'state': session.snapshot(),
    }), 201


@games.route('/<string:game_code>/state', methods=['GET'])
def get_game_state(game_code):
    session, error = _session_or_404(game_code)
    if error:
        return error
    payload = session.snapshot()
    payload['game_code'] = game_code.upper()
    payload['settle_ms'] = int(current_app.config.get('MISMATCH_SETTLE_MS', 1000))
    return jsonify(payload)


@games.route('/<string:game_code>/flip', methods=['POST'])
def flip_card(game_code):
    session, error = _session_or_404(game_code)
    if error:
        return error
    data = request.get_json(silent=True) or {}
    index = data.get('index')
    if isinstance(index, bool) or not isinstance(index, int):
        return jsonify({'error': 'index must be an integer'}), 400
    # Illegal flips are ignored, not rejected
    events = session.flip(index)
    return jsonify({'events': _events_payload(events), 'state': session.snapshot()})


@games.route('/<string:game_code>/settle', methods=['POST'])
def settle_mismatch(game_code):
    session, error = _session_or_404(game_code)
    if error:
        return error
    events = session.settle()
    return jsonify({'events': _events_payload(events), 'state': session.snapshot()})


@games.route('/<string:game_code>/restart', methods=['POST'])
def restart_game(game_code):
    registry = get_registry(current_app)
    previous = registry.get(game_code)
    if previous is None:
        return jsonify({'error': 'Game not found'}), 404
    data = request.get_json(silent=True) or {}
    difficulty = data.get('difficulty') or previous.difficulty
    try:
        code, session = registry.start(difficulty, game_code=game_code)
    except ConfigurationError as exc:
        return jsonify({'error': str(exc)}), 400
    return jsonify({'game_code': code, 'state': session.snapshot()})


@games.route('/<string:game_code>', methods=['DELETE'])
def end_game(game_code):
    if not get_registry(current_app).end(game_code):
        return jsonify({'error': 'Game not found'}), 404
    return jsonify({'message': 'Game ended'})


@games.route('/<string:game_code>/submit', methods=['POST'])
def submit_result(game_code):
    """Records a finished session's result in the ranking and the player's history."""
    registry = get_registry(current_app)
    session, error = _session_or_404(game_code)
    if error:
        return error
    if not session.complete or session.result is None:
        return jsonify({'error': 'Game is not finished'}), 400

    data = request.get_json(silent=True) or {}
    user = current_user if current_user.is_authenticated else None
    if user is None and current_app.config.get('REQUIRE_LOGIN_FOR_RANKING'):
        return jsonify({'error': 'Login required'}), 401
    player_name = user.username if user is not None else data.get('playerName')

    try:
        fields = submission_from_result(session.result, player_name)
    except ResultValidationError as exc:
        return jsonify({'error': str(exc)}), 400

    if not registry.mark_submitted(game_code):
        return jsonify({'error': 'Result already submitted'}), 409

    try:
        entry = store_submission(fields, user=user)
    except SQLAlchemyError:
        registry.release_submission(game_code)
        current_app.logger.exception(f"[ranking-error] game={game_code.upper()}")
        return jsonify({'error': 'Could not save result'}), 500

    return jsonify({'message': 'Score saved', 'ranking': entry.to_dict()}), 201
