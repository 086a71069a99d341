from flask_socketio import join_room, leave_room, emit
from tracker import socketio
from tracker.services.territories.notifications import WS_NAMESPACE, channel_room


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def _room_from(data):
    try:
        return channel_room(int(data['guild_id']), int(data['channel_id']))
    except (KeyError, TypeError, ValueError):
        return None


def handle_join_channel(data):
    # Sink consumers join the room of every channel they deliver for
    room = _room_from(data or {})
    if room is None:
        emit('error', {'message': 'guild_id and channel_id are required'})
        return
    join_room(room)
    emit('joined', {'room': room})


def handle_leave_channel(data):
    room = _room_from(data or {})
    if room is None:
        emit('error', {'message': 'guild_id and channel_id are required'})
        return
    leave_room(room)
    emit('left', {'room': room})


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    namespaces = [WS_NAMESPACE, '/'] if testing else [WS_NAMESPACE]
    for namespace in namespaces:
        socketio.on_event('connect', handle_connect, namespace=namespace)
        socketio.on_event('join_channel', handle_join_channel, namespace=namespace)
        socketio.on_event('leave_channel', handle_leave_channel, namespace=namespace)
        socketio.on_event('ping', handle_ping, namespace=namespace)
