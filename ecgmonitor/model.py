import logging
from enum import Enum
from typing import Optional
from PySide6.QtCore import QObject, Signal, Slot
from ecgmonitor.buffers import DisplayBuffer, AnalysisWindow
from ecgmonitor.events import Connecting, Opened, Closed, Errored, SampleReceived
from ecgmonitor.filters import SampleFilter
from ecgmonitor.metrics import MetricsSnapshot, evaluate
from ecgmonitor.utils import NamedSignal, valid_sample
from ecgmonitor.config import (
    window_duration,
    DISCONNECT_SENTINEL,
    METRICS_CADENCE,
    MIN_ANALYSIS_SAMPLES,
    SAMPLE_INTERVAL_MS,
)


logger = logging.getLogger(__name__)


class StreamState(Enum):
    IDLE = "idle"
    ACTIVE = "active"
    PAUSED = "paused"


class ConnectionStatus(str, Enum):
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    ERROR = "error"


class StreamSession:
    """Mutable state of one monitoring session."""

    def __init__(self):
        self.filter = SampleFilter()
        self.display = DisplayBuffer()
        self.window = AnalysisWindow()
        self.accepted_samples: int = 0

    def admit(self, raw: int) -> int:
        smoothed = self.filter.admit(raw)
        self.display.push(smoothed)
        self.window.push(smoothed)
        self.accepted_samples += 1
        return smoothed

    def metrics_due(self) -> bool:
        return self.accepted_samples > 0 and self.accepted_samples % METRICS_CADENCE == 0

    def invalidate_window(self):
        self.window.reset()
        self.accepted_samples = 0

    def reset(self):
        self.filter.reset()
        self.display.reset()
        self.invalidate_window()


class StreamController(QObject):
    """Turn a stream of raw samples into a smoothed trace and vital-sign metrics.

    The controller reacts to transport events (see `ecgmonitor.events`) and
    to the pause / reset / disconnect controls. All processing happens
    synchronously in the thread that delivers the events.
    """

    display_buffer_update = Signal(NamedSignal)
    metrics_update = Signal(NamedSignal)
    status_update = Signal(object)
    state_update = Signal(object)
    warning_update = Signal(str)
    close_requested = Signal()

    def __init__(self, sample_interval_ms: float = SAMPLE_INTERVAL_MS):
        super().__init__()
        if sample_interval_ms <= 0:
            raise ValueError(
                f"Sample interval must be positive, got {sample_interval_ms}."
            )
        self.session = StreamSession()
        self.window_duration: float = window_duration(
            sample_interval_ms, self.session.window.size
        )
        self._state: StreamState = StreamState.IDLE
        self._status: ConnectionStatus = ConnectionStatus.DISCONNECTED
        self._metrics: Optional[MetricsSnapshot] = None

    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def status(self) -> ConnectionStatus:
        return self._status

    @property
    def metrics(self) -> Optional[MetricsSnapshot]:
        """Last published metrics, None if nothing was published since reset."""
        return self._metrics

    @Slot(object)
    def handle_event(self, event):
        if isinstance(event, SampleReceived):
            self.handle_sample(event.raw)
        elif isinstance(event, Connecting):
            logger.info(f"Connecting to {event.url or 'device'}.")
            self._set_status(ConnectionStatus.CONNECTING)
        elif isinstance(event, Opened):
            if self._state is StreamState.IDLE:
                self._set_state(StreamState.ACTIVE)
            self._set_status(ConnectionStatus.CONNECTED)
        elif isinstance(event, Closed):
            self._end_connection()
            self._set_status(ConnectionStatus.DISCONNECTED)
        elif isinstance(event, Errored):
            logger.warning(f"Connection error: {event.message}")
            self._end_connection()
            self._set_status(ConnectionStatus.ERROR)
        else:
            raise TypeError(f"Unknown stream event: {event!r}")

    @Slot(object)
    def handle_sample(self, raw):
        if self._state is not StreamState.ACTIVE:
            logger.debug(f"Discarding sample {raw!r} while {self._state.value}.")
            return
        if not valid_sample(raw):
            msg = f"Discarding invalid sample: {raw!r}."
            logger.warning(msg)
            self.warning_update.emit(msg)
            return
        if raw == DISCONNECT_SENTINEL:
            self._set_status(ConnectionStatus.DISCONNECTED)
            return
        self._set_status(ConnectionStatus.CONNECTED)

        self.session.admit(raw)
        self.display_buffer_update.emit(
            NamedSignal("DisplayBuffer", self.session.display.snapshot_in_order())
        )
        if self.session.metrics_due():
            self.update_metrics()

    def update_metrics(self):
        window = self.session.window
        if len(window) < MIN_ANALYSIS_SAMPLES:
            logger.debug(
                f"Skipping metrics, {len(window)} of {MIN_ANALYSIS_SAMPLES} samples."
            )
            return
        self._metrics = evaluate(window.snapshot_in_order(), self.window_duration)
        logger.info(
            f"HR {self._metrics.heart_rate} BPM, amplitude {self._metrics.amplitude},"
            f" quality {self._metrics.quality.value}."
        )
        self.metrics_update.emit(NamedSignal("Metrics", self._metrics))

    @Slot()
    def toggle_pause(self):
        if self._state is StreamState.ACTIVE:
            self._set_state(StreamState.PAUSED)
        elif self._state is StreamState.PAUSED:
            self._set_state(StreamState.ACTIVE)
        else:
            logger.debug("Nothing to pause, not connected.")

    @Slot()
    def reset(self):
        self.session.reset()
        self._metrics = None
        self.display_buffer_update.emit(
            NamedSignal("DisplayBuffer", self.session.display.snapshot_in_order())
        )
        self.disconnect_stream()

    @Slot()
    def disconnect_stream(self):
        if self._state is StreamState.IDLE:
            return
        self._end_connection()
        self.close_requested.emit()

    def _end_connection(self):
        # Windowed state must not leak into the next connection.
        self.session.invalidate_window()
        self._set_state(StreamState.IDLE)

    def _set_state(self, state: StreamState):
        if state is self._state:
            return
        logger.info(f"Stream {self._state.value} -> {state.value}.")
        self._state = state
        self.state_update.emit(state)

    def _set_status(self, status: ConnectionStatus):
        if status is self._status:
            return
        self._status = status
        self.status_update.emit(status)
