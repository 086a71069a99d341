from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from flask import Blueprint, jsonify, request, current_app

from tracker import db
from tracker.models import ChannelFormat

tracks = Blueprint('tracks', __name__)


def _subscriptions():
    return current_app.extensions['territory_tracker'].subscriptions


def _track_args(data):
    """Pull (type, guild_id, channel_id, guild_name) out of a request payload."""
    track_type = data.get('type')
    guild_name = data.get('guild_name') or None
    try:
        guild_id = int(data.get('guild_id'))
        channel_id = int(data.get('channel_id'))
    except (TypeError, ValueError):
        return None
    return track_type, guild_id, channel_id, guild_name


@tracks.route('', methods=['GET'])
def list_tracks():
    try:
        guild_id = int(request.args['guild_id'])
        channel_id = int(request.args['channel_id'])
    except (KeyError, ValueError):
        return jsonify({'error': 'guild_id and channel_id are required'}), 400
    return jsonify([t.to_dict() for t in _subscriptions().find_all_of(guild_id, channel_id)])


@tracks.route('', methods=['POST'])
def create_track():
    args = _track_args(request.get_json(silent=True) or {})
    if args is None:
        return jsonify({'error': 'guild_id and channel_id are required'}), 400
    try:
        created = _subscriptions().create(*args)
    except ValueError as exc:
        return jsonify({'error': str(exc)}), 400
    if not created:
        return jsonify({'error': 'This channel already has the same tracking enabled'}), 409
    return jsonify({'message': 'Tracking enabled'}), 201


@tracks.route('', methods=['DELETE'])
def delete_track():
    args = _track_args(request.get_json(silent=True) or {})
    if args is None:
        return jsonify({'error': 'guild_id and channel_id are required'}), 400
    if not _subscriptions().delete(*args):
        return jsonify({'error': 'No such tracking in this channel'}), 404
    return jsonify({'message': 'Tracking disabled'})


@tracks.route('/format', methods=['PUT'])
def set_format():
    data = request.get_json(silent=True) or {}
    try:
        guild_id = int(data.get('guild_id'))
        channel_id = int(data['channel_id']) if data.get('channel_id') is not None else None
    except (TypeError, ValueError):
        return jsonify({'error': 'guild_id is required, channel_id must be an integer'}), 400
    tz_name = data.get('timezone') or None
    date_format = data.get('date_format') or None
    if tz_name:
        try:
            ZoneInfo(tz_name)
        except (ZoneInfoNotFoundError, ValueError):
            return jsonify({'error': f'Unknown time zone {tz_name}'}), 400

    row = ChannelFormat.find(guild_id, channel_id)
    if row is None:
        row = ChannelFormat(guild_id=guild_id, channel_id=channel_id)
    row.timezone = tz_name
    row.date_format = date_format
    db.session.add(row)
    db.session.commit()
    return jsonify(row.to_dict())
