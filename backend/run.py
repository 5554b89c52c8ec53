import os
import signal
import sys
import threading

from scoreboard import create_app, db, socketio
from scoreboard.services.scheduler import start_background_services, stop_background_services

app = create_app()

_shutting_down = threading.Event()


def shutdown(signum=None, frame=None):
    """Stop background services, close the server and the database, then exit.

    A watchdog forces the exit if closing hangs past SHUTDOWN_TIMEOUT_SEC.
    """
    if _shutting_down.is_set():
        return
    _shutting_down.set()
    app.logger.info(f"[shutdown] signal={signum} closing server")

    timeout = int(app.config.get('SHUTDOWN_TIMEOUT_SEC', 10))

    def _force_exit():
        app.logger.error("[shutdown] close timed out, forcing exit")
        os._exit(1)

    watchdog = threading.Timer(timeout, _force_exit)
    watchdog.daemon = True
    watchdog.start()

    stop_background_services(app)
    try:
        socketio.stop()
    except RuntimeError:
        # Raised when called outside a running server (e.g. before it started)
        pass
    with app.app_context():
        db.session.remove()
        db.engine.dispose()
    app.logger.info("[shutdown] server closed")
    sys.exit(0)


if __name__ == '__main__':
    with app.app_context():
        # Cannot open storage: fail at startup rather than on the first request
        db.create_all()
    app.extensions['scoreboard']['storage'].ensure_folder()
    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)
    start_background_services(app)
    socketio.run(
        app,
        host=os.environ.get('HOST', '0.0.0.0'),
        port=int(os.environ.get('PORT', '3000')),
        debug=os.environ.get('FLASK_DEBUG') == '1',
        allow_unsafe_werkzeug=True,
    )
