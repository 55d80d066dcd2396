"""Fixed-cadence position polling for one tracked flight.

A ``PositionPoller`` owns at most one ``PollingTask``. Each task runs its ticks
on a single timer thread, so fetches for a session never overlap. Results are
applied under the task lock, which is also taken by ``cancel()``: once
``cancel()`` (or ``PositionPoller.stop()``) returns, ``on_update`` is never
called again.
"""

import logging
import threading
from time import monotonic

from flight_tracker.errors import FlightDataError, ValidationError

LOGGER = logging.getLogger("flight_tracker.poller")

STOP_JOIN_TIMEOUT_SECONDS = 5.0


class RepeatingTimer:
    """Call ``callback`` every ``interval_seconds`` on a daemon thread until cancelled.

    Ticks are scheduled on fixed boundaries measured from ``start()``. A tick
    that overruns skips the boundaries it missed instead of firing a burst.
    """

    def __init__(self, interval_seconds: float, callback, clock_fn=None, name: str = "position-poller"):
        self.interval_seconds = float(interval_seconds)
        self.callback = callback
        self.clock_fn = clock_fn or monotonic
        self._cancelled = threading.Event()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)

    def start(self) -> None:
        self._thread.start()

    def cancel(self) -> None:
        self._cancelled.set()

    def join(self, timeout: float | None = None) -> None:
        """Wait for the timer thread to finish its current tick. A no-op from inside a tick."""
        if self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join(timeout)

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def _run(self) -> None:
        next_at = self.clock_fn() + self.interval_seconds
        while not self._cancelled.wait(max(0.0, next_at - self.clock_fn())):
            self.callback()
            now = self.clock_fn()
            next_at += self.interval_seconds
            while next_at <= now:
                next_at += self.interval_seconds


class PollingTask:
    """Cancelable handle for one recurring position refresh."""

    def __init__(self, flight_id: str, interval_seconds: float, fetch_position, on_update, active: bool = True, timer_fn=None):
        self.flight_id = flight_id
        self.interval_seconds = interval_seconds
        self._fetch_position = fetch_position
        self._on_update = on_update
        self._active = bool(active)
        self._cancelled = False
        self._lock = threading.RLock()
        self._scheduled_seq = 0
        self._applied_seq = 0
        self._timer = (timer_fn or RepeatingTimer)(interval_seconds, self.tick)

    @property
    def active(self) -> bool:
        return self._active

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def start(self):
        self._timer.start()
        return self

    def pause(self) -> None:
        with self._lock:
            self._active = False

    def resume(self) -> None:
        with self._lock:
            self._active = True

    def cancel(self) -> None:
        """Stop the task and wait for a tick already in progress to finish."""
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
            self._timer.cancel()
        LOGGER.info("Stopped position updates for %s.", self.flight_id)
        self.join()

    def join(self, timeout: float = STOP_JOIN_TIMEOUT_SECONDS) -> None:
        # Never called under self._lock: the tick being waited on may need it.
        self._timer.join(timeout)

    def tick(self) -> bool:
        """Run one poll. Returns True when an update was delivered."""
        with self._lock:
            if self._cancelled or not self._active:
                return False
            self._scheduled_seq += 1
            seq = self._scheduled_seq

        try:
            update = self._fetch_position(self.flight_id)
        except (FlightDataError, ValidationError) as exc:
            LOGGER.warning("Position update for %s failed (%s); keeping last known position.", self.flight_id, exc)
            return False
        except Exception:
            LOGGER.exception("Unexpected error fetching position for %s; keeping last known position.", self.flight_id)
            return False

        with self._lock:
            if self._cancelled or not self._active:
                LOGGER.debug("Dropping position for %s; tracking no longer active.", self.flight_id)
                return False
            if seq <= self._applied_seq:
                LOGGER.debug("Dropping stale position #%s for %s (already applied #%s).", seq, self.flight_id, self._applied_seq)
                return False
            self._applied_seq = seq
            try:
                self._on_update(update)
            except Exception:
                LOGGER.exception("Position update handler failed for %s.", self.flight_id)
                return False
        return True


class PositionPoller:
    """Owns the single recurring position task of a tracking session."""

    def __init__(self, fetch_position, timer_fn=None):
        self._fetch_position = fetch_position
        self._timer_fn = timer_fn
        self._task = None
        self._lock = threading.Lock()

    @property
    def task(self) -> PollingTask | None:
        return self._task

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.cancelled

    @property
    def is_active(self) -> bool:
        return self.is_running and self._task.active

    def start(self, flight_id: str, interval_seconds: float, on_update, active: bool = True) -> PollingTask:
        if not str(flight_id or "").strip():
            raise ValidationError("flight_id must be a non-empty string.")
        try:
            interval = float(interval_seconds)
        except (TypeError, ValueError) as exc:
            raise ValidationError("interval_seconds must be a number.") from exc
        if not interval > 0:
            raise ValidationError("interval_seconds must be > 0.")

        # Task locks are never taken while holding self._lock, so a handler may call stop().
        with self._lock:
            previous, self._task = self._task, None
        if previous is not None:
            previous.cancel()

        task = PollingTask(
            flight_id,
            interval,
            self._fetch_position,
            on_update,
            active=active,
            timer_fn=self._timer_fn,
        )
        task.start()
        with self._lock:
            stale, self._task = self._task, task
        if stale is not None:
            stale.cancel()
        LOGGER.info("Started position updates for %s every %ss.", flight_id, interval)
        return task

    def pause(self) -> None:
        if self._task is not None:
            self._task.pause()

    def resume(self) -> None:
        if self._task is not None:
            self._task.resume()

    def stop(self) -> None:
        with self._lock:
            task, self._task = self._task, None
        if task is not None:
            task.cancel()
