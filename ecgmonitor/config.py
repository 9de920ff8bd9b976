from typing import Final


SAMPLE_MIN: Final[int] = 0
SAMPLE_MAX: Final[int] = 1023
DISCONNECT_SENTINEL: Final[int] = 0  # electrodes off
BASELINE: Final[int] = (SAMPLE_MAX + 1) // 2

FILTER_SIZE: Final[int] = 5  # samples
DISPLAY_BUFFER_SIZE: Final[int] = 250  # samples
ANALYSIS_WINDOW_SIZE: Final[int] = 100  # samples
MIN_ANALYSIS_SAMPLES: Final[int] = 30  # samples
METRICS_CADENCE: Final[int] = 20  # accepted samples between evaluations

PEAK_THRESHOLD_RATIO: Final[float] = 0.6  # fraction of amplitude above min
LOW_AMPLITUDE: Final[int] = 100

# The device pushes one sample about every 50 msec. Heart rate accuracy
# depends entirely on this matching the real device rate.
SAMPLE_INTERVAL_MS: Final[int] = 50

DEFAULT_HOST: Final[str] = "192.168.4.1"
DEFAULT_PORT: Final[int] = 81

ZOOM_STEP: Final[float] = 1.2


def window_duration(
    sample_interval_ms: float = SAMPLE_INTERVAL_MS,
    window_size: int = ANALYSIS_WINDOW_SIZE,
) -> float:
    return window_size * sample_interval_ms / 1000  # seconds


WINDOW_DURATION: Final[float] = window_duration()
