from flask import Blueprint, jsonify, request, current_app

from tracker.services.territories.tracker import STATUS_SKIPPED

territories = Blueprint('territories', __name__)


def _tracker():
    return current_app.extensions['territory_tracker']


@territories.route('', methods=['GET'])
def list_territories():
    store = _tracker().store
    return jsonify([t.to_dict() for t in store.all_territories()])


@territories.route('/guilds', methods=['GET'])
def guild_numbers():
    store = _tracker().store
    ranking = []
    rank = 0
    previous = None
    for idx, (name, count) in enumerate(store.guild_territory_numbers(), start=1):
        # Guilds with the same count share a rank
        if count != previous:
            rank, previous = idx, count
        ranking.append({'rank': rank, 'guild_name': name, 'territories': count})
    return jsonify(ranking)


@territories.route('/guilds/<string:guild_name>', methods=['GET'])
def guild_detail(guild_name):
    store = _tracker().store
    count = store.count_guild_territories(guild_name)
    if count == 0:
        return jsonify({'error': f'Guild {guild_name} does not hold any territory'}), 404
    return jsonify({
        'guild_name': guild_name,
        'territories': count,
        'rank': store.guild_ranking(guild_name),
    })


@territories.route('/logs', methods=['GET'])
def list_logs():
    try:
        after = int(request.args.get('after', 0))
        limit = min(max(int(request.args.get('limit', 50)), 1), 500)
    except ValueError:
        return jsonify({'error': 'after and limit must be integers'}), 400
    logs = _tracker().store.find_logs_after(after, limit)
    return jsonify([log.to_dict() for log in logs])


@territories.route('/refresh', methods=['POST'])
def refresh():
    result = _tracker().run_cycle()
    if result.status == STATUS_SKIPPED:
        return jsonify({'error': 'A tracking cycle is already running', **result.to_dict()}), 409
    return jsonify(result.to_dict())
