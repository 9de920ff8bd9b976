import random
from typing import Iterator, Optional
from PySide6.QtCore import QObject, Signal, QTimer
from ecgmonitor.events import Connecting, Opened, Closed, SampleReceived
from ecgmonitor.utils import ws_url
from ecgmonitor.config import DISCONNECT_SENTINEL, SAMPLE_INTERVAL_MS, SAMPLE_MAX

# Relative height of the QRS complex and the T wave, by sample position
# within one beat.
BEAT_SHAPE = {0: 0.4, 1: 1.0, 2: 0.9, 3: 0.3, 6: 0.1, 7: 0.15, 8: 0.1}


def synthetic_ecg(
    period: int = 16,
    baseline: int = 400,
    peak_height: int = 400,
    noise: int = 4,
    seed: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> Iterator[int]:
    """Endless ECG-like raw samples with one beat every `period` samples.

    Samples never equal the disconnect sentinel.
    """
    if rng is None:
        rng = random.Random(seed)
    i = 0
    while True:
        value = baseline + peak_height * BEAT_SHAPE.get(i % period, 0.0)
        value += rng.randint(-noise, noise)
        yield min(SAMPLE_MAX, max(DISCONNECT_SENTINEL + 1, round(value)))
        i += 1


class MockSensorClient(QObject):
    event_update = Signal(object)
    status_update = Signal(str)

    def __init__(
        self, sample_interval_ms: float = SAMPLE_INTERVAL_MS, seed: Optional[int] = None
    ):
        super().__init__()
        self.rng = random.Random(seed)
        self.samples = synthetic_ecg(rng=self.rng)
        # Every now and then an electrode comes loose for a couple of samples.
        self.dropout_probability = 0.005
        self.dropout_length = 10
        self._dropout_left = 0
        self.timer = QTimer()
        self.timer.setInterval(int(sample_interval_ms))
        self.timer.timeout.connect(self.simulate_sample)

    def connect_client(self, host: str, port: int):
        url = ws_url(host, port)
        self.status_update.emit(f"Connecting to mock device at {url}.")
        self.event_update.emit(Connecting(url))
        self.event_update.emit(Opened())
        self.timer.start()

    def disconnect_client(self):
        if not self.timer.isActive():
            return
        self.status_update.emit("Disconnecting from mock device.")
        self.timer.stop()
        self.event_update.emit(Closed())

    def simulate_sample(self):
        if not self._dropout_left and self.rng.random() < self.dropout_probability:
            self._dropout_left = self.dropout_length
        if self._dropout_left:
            self._dropout_left -= 1
            self.event_update.emit(SampleReceived(DISCONNECT_SENTINEL))
            return
        self.event_update.emit(SampleReceived(next(self.samples)))
