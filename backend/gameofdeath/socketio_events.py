from flask_socketio import emit
from gameofdeath import get_scheduler


def handle_connect(auth=None):
    # Observers get nothing they missed while away, so send the current
    # snapshot to the connecting client only
    scheduler = get_scheduler()
    snap = scheduler.phase_snapshot()
    emit('connected', {'message': 'Connected to /ws'})
    emit('phaseUpdated', {'phase': snap['phase'], 'timeLeft': snap['timeLeft']})
    emit('boardUpdated', list(scheduler.current_board()))


def handle_disconnect(*args):
    pass


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Wire the observer events (connect snapshot, ping) onto '/ws'.

    Under TESTING the same handlers also answer on '/', since the Flask-SocketIO
    test client may connect there first.
    """
    from gameofdeath import socketio

    socketio.on_event('connect', handle_connect, namespace='/ws')
    socketio.on_event('disconnect', handle_disconnect, namespace='/ws')
    socketio.on_event('ping', handle_ping, namespace='/ws')

    if testing:
        # Observers connecting without a namespace in tests
        socketio.on_event('connect', handle_connect, namespace='/')
        socketio.on_event('disconnect', handle_disconnect, namespace='/')
        socketio.on_event('ping', handle_ping, namespace='/')
