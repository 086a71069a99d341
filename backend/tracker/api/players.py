import math

from flask import Blueprint, jsonify, request, current_app

from tracker.errors import TransientFetchError
from tracker.services.wynn import Rejected

players = Blueprint('players', __name__)


@players.route('/<string:player_name>/stats', methods=['GET'])
def player_stats(player_name):
    force_reload = request.args.get('force', '0') in ('1', 'true', 'yes')
    wynn_api = current_app.extensions['wynn_api']
    try:
        # A user is waiting on the other end and can retry later
        result = wynn_api.get_player_statistics(player_name, can_wait=True, force_reload=force_reload)
    except TransientFetchError as exc:
        current_app.logger.warning(f"[player-stats] {player_name}: {exc}")
        return jsonify({'error': f'Failed to retrieve statistics of {player_name}'}), 502
    if isinstance(result, Rejected):
        response = jsonify({'error': result.message, 'backoff_sec': result.backoff})
        response.headers['Retry-After'] = str(max(1, math.ceil(result.backoff)))
        return response, 429
    return jsonify(result)
