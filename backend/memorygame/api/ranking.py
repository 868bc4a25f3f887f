from flask import Blueprint, jsonify, request, current_app
from flask_login import current_user
from sqlalchemy.exc import SQLAlchemyError
from memorygame.services.leaderboard import (
    ResultValidationError,
    player_history,
    player_rankings,
    store_submission,
    top_rankings,
    validate_submission,
)


ranking = Blueprint('ranking', __name__)


@ranking.route('/global', methods=['GET'])
def global_ranking():
    limit = request.args.get('limit', type=int)
    try:
        rows = top_rankings(limit)
    except SQLAlchemyError:
        current_app.logger.exception('[ranking-error] global query failed')
        return jsonify({'error': 'Could not load global ranking'}), 500
    return jsonify([r.to_dict() for r in rows])


@ranking.route('/player/<string:player_name>', methods=['GET'])
def ranking_for_player(player_name):
    try:
        rows = player_rankings(player_name)
    except SQLAlchemyError:
        current_app.logger.exception(f'[ranking-error] player query failed name={player_name}')
        return jsonify({'error': 'Could not load player ranking'}), 500
    return jsonify([r.to_dict() for r in rows])


@ranking.route('', methods=['POST'])
@ranking.route('/', methods=['POST'])
def submit_ranking():
    data = request.get_json(silent=True)
    user = current_user if current_user.is_authenticated else None
    if user is None and current_app.config.get('REQUIRE_LOGIN_FOR_RANKING'):
        return jsonify({'error': 'Login required'}), 401
    if user is not None and isinstance(data, dict):
        data = dict(data, playerName=user.username)
    try:
        fields = validate_submission(data)
    except ResultValidationError as exc:
        return jsonify({'error': str(exc)}), 400
    try:
        store_submission(fields, user=user)
    except SQLAlchemyError:
        current_app.logger.exception('[ranking-error] save failed')
        return jsonify({'error': 'Could not save score'}), 500
    return jsonify({'message': 'Score saved'}), 201


@ranking.route('/history/<string:player_name>', methods=['GET'])
def history_for_player(player_name):
    rows = player_history(player_name)
    return jsonify([h.to_dict() for h in rows])
