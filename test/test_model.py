"""Tests for the stream controller state machine."""

from itertools import islice
import pytest
from ecgmonitor.events import Connecting, Opened, Closed, Errored, SampleReceived
from ecgmonitor.metrics import MetricsSnapshot, SignalQuality
from ecgmonitor.mock import synthetic_ecg
from ecgmonitor.model import StreamController, StreamState, ConnectionStatus


class Recorder:
    """Collect everything a controller emits."""

    def __init__(self, model):
        self.displays = []
        self.metrics = []
        self.statuses = []
        self.states = []
        self.warnings = []
        self.close_requests = 0
        model.display_buffer_update.connect(self.displays.append)
        model.metrics_update.connect(self.metrics.append)
        model.status_update.connect(self.statuses.append)
        model.state_update.connect(self.states.append)
        model.warning_update.connect(self.warnings.append)
        model.close_requested.connect(self._count_close_request)

    def _count_close_request(self):
        self.close_requests += 1


def feed(model, samples):
    for raw in samples:
        model.handle_event(SampleReceived(raw))


def session_state(model):
    session = model.session
    return (
        session.filter.history,
        session.display.snapshot_in_order(),
        session.window.snapshot_in_order(),
        session.accepted_samples,
    )


@pytest.fixture
def model():
    return StreamController()


@pytest.fixture
def recorder(model):
    return Recorder(model)


@pytest.fixture
def active_model(model):
    model.handle_event(Opened())
    return model


class TestConnectionLifecycle:
    def test_initial_state(self, model):
        assert model.state is StreamState.IDLE
        assert model.status is ConnectionStatus.DISCONNECTED
        assert model.metrics is None

    def test_connecting(self, model, recorder):
        model.handle_event(Connecting("ws://192.168.4.1:81"))
        assert model.state is StreamState.IDLE
        assert recorder.statuses == [ConnectionStatus.CONNECTING]

    def test_open(self, model, recorder):
        model.handle_event(Opened())
        assert model.state is StreamState.ACTIVE
        assert recorder.states == [StreamState.ACTIVE]
        assert recorder.statuses == [ConnectionStatus.CONNECTED]

    def test_close(self, active_model, recorder):
        feed(active_model, [600] * 10)
        active_model.handle_event(Closed())
        assert active_model.state is StreamState.IDLE
        assert active_model.status is ConnectionStatus.DISCONNECTED
        assert len(active_model.session.window) == 0
        assert active_model.session.display.snapshot_in_order()[-1] == 600

    def test_error(self, active_model, recorder):
        active_model.handle_event(Errored("Connection refused"))
        assert active_model.state is StreamState.IDLE
        assert recorder.statuses == [ConnectionStatus.ERROR]

    def test_close_while_paused(self, active_model):
        active_model.toggle_pause()
        active_model.handle_event(Closed())
        assert active_model.state is StreamState.IDLE

    def test_unknown_event(self, model):
        with pytest.raises(TypeError):
            model.handle_event("512")

    def test_explicit_disconnect(self, active_model, recorder):
        active_model.disconnect_stream()
        assert active_model.state is StreamState.IDLE
        assert recorder.close_requests == 1

    def test_disconnect_while_idle(self, model, recorder):
        model.disconnect_stream()
        assert recorder.close_requests == 0

    def test_samples_ignored_while_idle(self, model, recorder):
        before = session_state(model)
        feed(model, [600] * 5)
        assert session_state(model) == before
        assert recorder.displays == []


class TestPause:
    def test_toggle(self, active_model, recorder):
        active_model.toggle_pause()
        assert active_model.state is StreamState.PAUSED
        active_model.toggle_pause()
        assert active_model.state is StreamState.ACTIVE
        assert recorder.states == [StreamState.PAUSED, StreamState.ACTIVE]

    def test_toggle_while_idle(self, model):
        model.toggle_pause()
        assert model.state is StreamState.IDLE

    def test_samples_discarded_while_paused(self, active_model, recorder):
        feed(active_model, [600] * 5)
        active_model.toggle_pause()
        before = session_state(active_model)
        feed(active_model, [700, 0, 2000])
        assert session_state(active_model) == before
        assert len(recorder.displays) == 5
        assert recorder.warnings == []


class TestSamples:
    def test_accepted_sample(self, active_model, recorder):
        feed(active_model, [500])
        assert active_model.session.filter.history == [0, 0, 0, 0, 500]
        assert active_model.session.window.snapshot_in_order() == [100]
        name, display = recorder.displays[-1]
        assert name == "DisplayBuffer"
        assert len(display) == 250
        assert display[-1] == 100

    def test_disconnect_sentinel(self, active_model, recorder):
        feed(active_model, [600] * 8)
        before = session_state(active_model)
        feed(active_model, [0])
        assert session_state(active_model) == before
        assert active_model.status is ConnectionStatus.DISCONNECTED
        assert active_model.state is StreamState.ACTIVE
        assert len(recorder.displays) == 8

    def test_signal_resumes_after_sentinel(self, active_model, recorder):
        feed(active_model, [600, 0, 600])
        assert active_model.status is ConnectionStatus.CONNECTED
        assert recorder.statuses == [
            ConnectionStatus.DISCONNECTED,
            ConnectionStatus.CONNECTED,
        ]
        assert active_model.session.filter.history == [0, 0, 0, 600, 600]

    @pytest.mark.parametrize("raw", [-1, 1024, "600", None, 600.5])
    def test_invalid_sample(self, active_model, recorder, raw):
        feed(active_model, [600] * 3)
        before = session_state(active_model)
        feed(active_model, [raw])
        assert session_state(active_model) == before
        assert len(recorder.warnings) == 1
        assert active_model.status is ConnectionStatus.CONNECTED


class TestMetricsCadence:
    def test_no_metrics_before_enough_samples(self, active_model, recorder):
        feed(active_model, [600] * 39)
        assert recorder.metrics == []
        assert active_model.metrics is None

    def test_metrics_every_twenty_samples(self, active_model, recorder):
        feed(active_model, [600] * 40)
        assert len(recorder.metrics) == 1
        feed(active_model, [600] * 80)
        assert len(recorder.metrics) == 5
        assert len(active_model.session.window) == 100

    def test_flat_signal(self, active_model, recorder):
        feed(active_model, [512] * 140)
        name, metrics = recorder.metrics[-1]
        assert name == "Metrics"
        assert metrics == MetricsSnapshot(0, 0, SignalQuality.LOW)
        assert active_model.metrics == metrics

    def test_pulsing_signal(self, active_model, recorder):
        feed(active_model, islice(synthetic_ecg(seed=1), 100))
        _, metrics = recorder.metrics[-1]
        assert metrics.quality is SignalQuality.GOOD
        assert metrics.amplitude >= 100
        assert metrics.heart_rate > 0

    def test_sample_interval(self):
        model = StreamController(sample_interval_ms=25)
        recorder = Recorder(model)
        model.handle_event(Opened())
        feed(model, islice(synthetic_ecg(seed=1), 100))
        reference = StreamController()
        reference_recorder = Recorder(reference)
        reference.handle_event(Opened())
        feed(reference, islice(synthetic_ecg(seed=1), 100))
        assert model.window_duration == 2.5
        assert (
            recorder.metrics[-1].value.heart_rate
            == 2 * reference_recorder.metrics[-1].value.heart_rate
        )

    def test_sentinel_does_not_advance_cadence(self, active_model, recorder):
        feed(active_model, [600] * 39 + [0])
        assert recorder.metrics == []
        feed(active_model, [600])
        assert len(recorder.metrics) == 1


class TestReset:
    def test_reset_mid_stream(self, active_model, recorder):
        feed(active_model, islice(synthetic_ecg(seed=2), 55))
        assert active_model.metrics is not None
        active_model.reset()
        assert active_model.session.display.snapshot_in_order() == [512] * 250
        assert active_model.session.window.snapshot_in_order() == []
        assert active_model.session.filter.history == [0] * 5
        assert active_model.metrics is None
        assert active_model.state is StreamState.IDLE
        assert recorder.close_requests == 1
        assert recorder.displays[-1].value == [512] * 250

    def test_cadence_restarts_after_reset(self, active_model, recorder):
        feed(active_model, [600] * 50)
        published = len(recorder.metrics)
        active_model.reset()
        active_model.handle_event(Opened())
        feed(active_model, [600] * 39)
        assert len(recorder.metrics) == published
        feed(active_model, [600])
        assert len(recorder.metrics) == published + 1

    def test_reset_while_idle(self, model, recorder):
        model.reset()
        assert recorder.close_requests == 0
        assert model.session.display.snapshot_in_order() == [512] * 250


@pytest.mark.parametrize("sample_interval_ms", [0, -50])
def test_invalid_sample_interval(sample_interval_ms):
    with pytest.raises(ValueError):
        StreamController(sample_interval_ms=sample_interval_ms)
