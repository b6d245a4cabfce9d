import asyncio
import functools
import logging
from collections import deque
from typing import Awaitable, Callable, Coroutine, Deque, List, Optional, Set

from .runner import MotionRunner
from .state import (
    AuthorizationState,
    ConnectionState,
    ErrorKind,
    SessionError,
    SessionSnapshot,
    UpdateState,
)
from ..acquisition import SourceUpdate
from ..configs import SessionSettings
from ..controllers.base import MotionDeviceController
from ..models import GestureEvent, MotionSample
from ..pipeline.distributor import Distributor
from ..processing import MotionDataProcessor, SessionStatistics


logger = logging.getLogger(__name__)


def backoff_delay(retry_count: int, max_delay_s: float = 30.0) -> float:
    """Delay before retry number `retry_count` (1-based): 2, 4, 8, ... capped."""
    return min(2.0 ** retry_count, max_delay_s)


class HeadMotionManager:
    """
    The Headless Core of the head motion pipeline.

    Owns the session state machine (authorization, connection, update
    state), the retry and calibration timers, and the processor that turns
    raw samples into filtered samples and gestures. Results are delivered
    through three channels: `samples`, `events` and `states`.

    Everything runs on one asyncio loop. Timers are tasks recorded here so
    that `stop()` and `start()` can cancel them deterministically.
    """
    def __init__(
        self,
        controller: MotionDeviceController,
        settings: Optional[SessionSettings] = None,
        processor: Optional[MotionDataProcessor] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.controller = controller
        self.settings: SessionSettings = settings or SessionSettings()
        self.processor: MotionDataProcessor = processor or MotionDataProcessor()
        self._sleep = sleep

        self.authorization_state: AuthorizationState = controller.authorization_status()
        self.connection_state: ConnectionState = ConnectionState.DISCONNECTED
        self.update_state: UpdateState = UpdateState.STOPPED
        self.error: Optional[SessionError] = None
        self.retry_count: int = 0
        self.last_retry_delay: Optional[float] = None
        self.is_calibrating: bool = False

        self.latest_sample: Optional[MotionSample] = None
        self._last_raw: Optional[MotionSample] = None
        self._recent: Deque[MotionSample] = deque(maxlen=self.settings.buffer_size)
        self.session_stats = SessionStatistics()

        self._runner: Optional[MotionRunner] = None
        self._session_id = 0
        self._retry_task: Optional[asyncio.Task] = None
        self._calibration_task: Optional[asyncio.Task] = None
        self._background: Set[asyncio.Task] = set()

        self.samples: Distributor[MotionSample] = Distributor("samples")
        self.events: Distributor[GestureEvent] = Distributor("events")
        self.states: Distributor[SessionSnapshot] = Distributor("states")

        self._remove_route_listener = controller.add_route_listener(self._on_route_change)
        self.refresh_connection_state(publish=False)

    @property
    def max_retry_count(self) -> int:
        return self.settings.max_retry_count

    @property
    def is_running(self) -> bool:
        return self._runner is not None

    @property
    def is_retry_pending(self) -> bool:
        return self._retry_task is not None and not self._retry_task.done()

    @property
    def recent_samples(self) -> List[MotionSample]:
        return list(self._recent)

    def snapshot(self) -> SessionSnapshot:
        stats = self.processor.stats
        return SessionSnapshot(
            authorization=self.authorization_state,
            connection=self.connection_state,
            update_state=self.update_state,
            error=self.error,
            retry_count=self.retry_count,
            is_calibrating=self.is_calibrating,
            is_calibrated=self.processor.calibration.is_set,
            average_processing_time=stats.average_processing_time,
            max_processing_time=stats.max_processing_time,
            total_samples=self.session_stats.total_samples,
            average_update_rate=self.session_stats.average_update_rate,
            event_counts=dict(self.session_stats.event_counts),
        )

    # --- Actions ---

    async def start(self) -> bool:
        """
        Starts motion updates.
        Returns: True if the stream is active (or already was).
        """
        self._cancel_retry()

        if self._runner is not None:
            logger.warning("Motion updates already running.")
            return True

        if self.authorization_state is AuthorizationState.NOT_DETERMINED:
            logger.info("Requesting motion permission...")
            self.authorization_state = await self.controller.request_authorization()

            # Another start may have gone ahead while the prompt was open
            if self._runner is not None:
                logger.debug("Motion updates started while awaiting permission.")
                return True

        self.refresh_connection_state(publish=False)
        self.retry_count = 0

        if not self._can_start():
            self._handle_error(self._start_blocker())
            return False

        self.processor.reset_filters()
        self._last_raw = None
        self.session_stats.start_session()
        self.error = None
        self._set_update_state(UpdateState.STARTING)
        return await self._perform_start()

    async def stop(self, error: Optional[SessionError] = None) -> None:
        """
        Halts acquisition, cancels pending timers and clears buffered samples.
        `error` is kept as the reason the session ended, if given.
        """
        self._cancel_retry()
        self._cancel_calibration()

        runner, self._runner = self._runner, None
        self._session_id += 1
        if runner is not None:
            logger.info("Stopping motion updates...")
            await runner.stop()

        self.latest_sample = None
        self._last_raw = None
        self._recent.clear()
        self.session_stats.end_session()
        self.error = error
        if error is not None:
            logger.warning("Session ended: %s", error.message)
        self._set_update_state(UpdateState.STOPPED)

    def calibrate_zero_position(self) -> bool:
        """
        Requests that the current head pose becomes the zero pose.

        The offset is committed from whatever sample is current once
        `calibration_settle_s` has elapsed. Returns False if the request was
        ignored (no sample yet, or a calibration already in flight).
        """
        if self._last_raw is None:
            logger.info("Calibration ignored: no motion sample received yet.")
            return False
        if self.is_calibrating:
            logger.info("Calibration ignored: one is already in progress.")
            return False

        self.is_calibrating = True
        self._calibration_task = asyncio.create_task(self._commit_calibration())
        self._publish_state()
        return True

    def clear_history(self) -> None:
        """Forgets filter memory, gesture history, calibration and session counters."""
        self._cancel_calibration()
        self.processor.reset_filters()
        self.processor.clear_calibration()
        self.session_stats.reset()
        self._recent.clear()
        self._publish_state()

    def refresh_authorization_state(self) -> AuthorizationState:
        state = self.controller.authorization_status()
        if state is not self.authorization_state:
            logger.info("Authorization changed: %s -> %s", self.authorization_state.name, state.name)
            self.authorization_state = state
            self._publish_state()
        return state

    def refresh_connection_state(self, publish: bool = True) -> ConnectionState:
        c = self.controller
        if c.device_connected and c.device_motion_capable:
            state = (
                ConnectionState.CONNECTED_MOTION_AVAILABLE
                if c.is_device_motion_available
                else ConnectionState.CONNECTED_UNSUPPORTED
            )
        elif c.device_connected:
            state = ConnectionState.CONNECTED_UNSUPPORTED
        else:
            state = ConnectionState.DISCONNECTED

        if state is not self.connection_state:
            logger.info("Connection changed: %s -> %s", self.connection_state.name, state.name)
            self.connection_state = state
            if publish:
                self._publish_state()
        return state

    async def close(self) -> None:
        """
        Graceful cleanup before application exit.
        """
        await self.stop()
        self._remove_route_listener()
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)
        self.controller.shutdown()

    # --- Start / retry ---

    def _can_start(self) -> bool:
        if self.authorization_state is AuthorizationState.DENIED:
            return False
        if not (self.connection_state.is_motion_available or self.settings.relax_connection_check):
            return False
        return True

    def _start_blocker(self) -> SessionError:
        if self.authorization_state is AuthorizationState.DENIED:
            return SessionError.of(ErrorKind.PERMISSION_DENIED)
        return SessionError.of(ErrorKind.NOT_AVAILABLE, self.connection_state.name.lower())

    async def _perform_start(self) -> bool:
        self._session_id += 1
        handler = functools.partial(self._handle_update, self._session_id)
        runner = MotionRunner(self.controller.create_source(), handler)
        self._runner = runner
        await runner.start()

        # Give the source a moment to report that it is streaming
        await self._sleep(self.settings.start_grace_s)

        if self._runner is not runner:
            # Stopped or failed while we were waiting
            return False

        if runner.is_active:
            self.retry_count = 0
            self.error = None
            self._set_update_state(UpdateState.ACTIVE)
            logger.info(f"Motion updates active on {self.controller.device_name}.")
            return True

        self._runner = None
        self._session_id += 1
        await runner.stop()
        self._handle_error(SessionError.of(ErrorKind.START_FAILED))
        return False

    def _handle_error(self, error: SessionError) -> None:
        self.error = error
        self._set_update_state(UpdateState.ERROR)
        logger.error("Motion session error: %s", error.message)

        if not error.kind.is_retryable:
            logger.warning("%s is not retried; user action required.", error.kind.name)
            return

        if self.retry_count < self.max_retry_count:
            self._schedule_retry()
        else:
            logger.error("Giving up after %d retries; an explicit restart is required.", self.retry_count)

    def _schedule_retry(self) -> None:
        self._cancel_retry()
        self.retry_count += 1
        delay = backoff_delay(self.retry_count, self.settings.max_retry_delay_s)
        self.last_retry_delay = delay
        logger.info(f"Retrying motion start in {delay:.0f}s (attempt {self.retry_count}/{self.max_retry_count}).")
        self._retry_task = asyncio.create_task(self._retry_after(delay))
        self._publish_state()

    async def _retry_after(self, delay: float) -> None:
        await self._sleep(delay)

        if self._retry_task is asyncio.current_task():
            self._retry_task = None

        if self._runner is not None:
            logger.debug("Retry skipped: a session is already active.")
            return

        self.authorization_state = self.controller.authorization_status()
        self.refresh_connection_state(publish=False)

        if self.connection_state is ConnectionState.DISCONNECTED:
            await self.stop(error=SessionError.of(ErrorKind.CONNECTION_LOST))
            return

        if not self._can_start():
            self._handle_error(self._start_blocker())
            return

        self._set_update_state(UpdateState.STARTING)
        await self._perform_start()

    def _cancel_retry(self) -> None:
        if self._retry_task is not None and not self._retry_task.done():
            self._retry_task.cancel()
            logger.debug("Pending retry cancelled.")
        self._retry_task = None

    # --- Sample path ---

    def _handle_update(self, session_id: int, update: SourceUpdate) -> None:
        if session_id != self._session_id or self._runner is None:
            return

        if update.error is not None:
            self._fail_session(SessionError.of(ErrorKind.NOT_AVAILABLE, str(update.error)))
            return

        if update.sample is None:
            self._fail_session(SessionError.of(ErrorKind.NO_DATA))
            return

        raw = update.sample
        if raw.delta_time is None and self._last_raw is not None:
            raw = raw.with_changes(delta_time=raw.timestamp - self._last_raw.timestamp)

        filtered, events = self.processor.process(raw)

        self._last_raw = raw
        self.latest_sample = filtered
        self._recent.append(filtered)
        self.session_stats.add_sample()

        self.samples.publish(filtered)
        for event in events:
            self.session_stats.add_event(event)
            self.events.publish(event)

    def _fail_session(self, error: SessionError) -> None:
        runner, self._runner = self._runner, None
        self._session_id += 1
        if runner is not None:
            self._spawn(runner.stop())
        self._handle_error(error)

    # --- Calibration ---

    async def _commit_calibration(self) -> None:
        try:
            await self._sleep(self.settings.calibration_settle_s)
            reference = self._last_raw
            if reference is None:
                logger.warning("Calibration aborted: the stream stopped while settling.")
                return
            self.processor.calibrate(reference.attitude)
        finally:
            self.is_calibrating = False
            if self._calibration_task is asyncio.current_task():
                self._calibration_task = None
            self._publish_state()

    def _cancel_calibration(self) -> None:
        if self._calibration_task is not None and not self._calibration_task.done():
            self._calibration_task.cancel()
        self._calibration_task = None
        self.is_calibrating = False

    # --- Connection ---

    def _on_route_change(self) -> None:
        self.refresh_connection_state()
        if self.connection_state is not ConnectionState.DISCONNECTED:
            return
        if self._runner is not None or self.is_retry_pending:
            logger.warning("Device disconnected; stopping motion updates.")
            self._spawn(self.stop(error=SessionError.of(ErrorKind.CONNECTION_LOST)))

    # --- Helpers ---

    def _set_update_state(self, state: UpdateState) -> None:
        if state is not self.update_state:
            logger.debug("Update state: %s -> %s", self.update_state.name, state.name)
        self.update_state = state
        self._publish_state()

    def _publish_state(self) -> None:
        self.states.publish(self.snapshot())

    def _spawn(self, coro: Coroutine) -> asyncio.Task:
        """
        Runs `coro` in the background and makes sure its errors are never silent.
        """
        task = asyncio.create_task(coro)
        self._background.add(task)

        def _on_complete(fut: asyncio.Task) -> None:
            self._background.discard(fut)
            if fut.cancelled():
                return
            exc = fut.exception()
            if exc is not None:
                logger.error("Background task crashed: %s", exc, exc_info=exc)

        task.add_done_callback(_on_complete)
        return task
