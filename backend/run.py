from gameofdeath import create_app, get_scheduler, socketio
from gameofdeath.services.game.scheduler import start_scheduler

app = create_app()

if __name__ == '__main__':
    with app.app_context():
        start_scheduler(app, socketio, get_scheduler())
    # The reloader would fork a second process with its own tick loop
    socketio.run(app, debug=True, use_reloader=False)
