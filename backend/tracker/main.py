from flask import Blueprint, jsonify, current_app

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Territory tracker is running.'})

@main.route('/status')
def status():
    tracker = current_app.extensions['territory_tracker']
    wynn_api = current_app.extensions['wynn_api']
    return jsonify({
        'tracker': tracker.status(),
        'rate_limits': wynn_api.rate_limiter.snapshot(),
        'player_cache_size': len(wynn_api.player_cache),
    })
