import threading
from abc import ABC, abstractmethod
from typing import Optional

from scoreboard import db, socketio
from .matches import MATCHES, any_playing
from .registries import purge_expired


class PeriodicTask(ABC):
    """Runs ``job`` every ``interval`` seconds on a Socket.IO background task.

    - ``start`` is idempotent: a second call while running is ignored
    - ``stop`` lets the worker exit at its next wake-up
    - every run happens inside an app context; failures are logged and the
      loop keeps going
    """

    name = 'task'

    def __init__(self, app, interval: float, run_at_start: bool = False):
        self.app = app
        self.interval = interval
        self.run_at_start = run_at_start
        self._lock = threading.Lock()
        self._generation = 0
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    @abstractmethod
    def job(self):
        """One run of the task, called inside an app context."""

    def start(self) -> bool:
        with self._lock:
            if self._running:
                self.app.logger.info(f"[{self.name}-skip] already running")
                return False
            self._running = True
            self._generation += 1
            generation = self._generation
        self.app.logger.info(f"[{self.name}-start] interval={self.interval}s")
        socketio.start_background_task(self._worker, generation)
        return True

    def stop(self) -> None:
        with self._lock:
            if not self._running:
                return
            self._running = False
            self._generation += 1
        self.app.logger.info(f"[{self.name}-stop]")

    def _is_current(self, generation: int) -> bool:
        with self._lock:
            return self._running and self._generation == generation

    def run_once(self):
        with self.app.app_context():
            try:
                return self.job()
            except Exception:
                db.session.rollback()
                self.app.logger.exception(f"[{self.name}-error] run failed")
                return None

    def _worker(self, generation: int) -> None:
        if self.run_at_start and self._is_current(generation):
            self.run_once()
        while self._is_current(generation):
            socketio.sleep(self.interval)
            if not self._is_current(generation):
                break
            self.run_once()


class LiveTicker(PeriodicTask):
    """Re-broadcasts matches every tick while any match is playing."""

    name = 'ticker'

    def __init__(self, app, broadcaster, interval: Optional[float] = None):
        super().__init__(app, interval if interval is not None else app.config.get('LIVE_TICK_SEC', 1))
        self.broadcaster = broadcaster

    def job(self) -> bool:
        if not any_playing():
            return False
        self.broadcaster.publish(MATCHES)
        return True


class RetentionSweeper(PeriodicTask):
    """Purges old comments and fixtures at start and then once per interval."""

    name = 'sweep'

    def __init__(self, app, storage, broadcaster, interval: Optional[float] = None):
        super().__init__(
            app,
            interval if interval is not None else app.config.get('RETENTION_SWEEP_SEC', 24 * 60 * 60),
            run_at_start=True,
        )
        self.storage = storage
        self.broadcaster = broadcaster

    def job(self) -> dict:
        return purge_expired(
            self.storage,
            self.broadcaster,
            retention_days=int(self.app.config.get('RETENTION_DAYS', 30)),
        )


def start_background_services(app) -> bool:
    """Start the live ticker and the retention sweeper.

    No-ops in TESTING mode unless ENABLE_SCHEDULER_IN_TESTS is set.
    """
    if app.config.get('TESTING') and not app.config.get('ENABLE_SCHEDULER_IN_TESTS'):
        return False
    services = app.extensions['scoreboard']
    services['ticker'].start()
    services['sweeper'].start()
    return True


def stop_background_services(app) -> None:
    services = app.extensions['scoreboard']
    services['ticker'].stop()
    services['sweeper'].stop()
