from enum import Enum
from typing import NamedTuple, Sequence
import numpy as np
from ecgmonitor.utils import round_half_up
from ecgmonitor.config import PEAK_THRESHOLD_RATIO, LOW_AMPLITUDE, WINDOW_DURATION


class SignalQuality(str, Enum):
    GOOD = "Good"
    LOW = "Low"
    NO_PULSE = "NoPulseDetected"


class MetricsSnapshot(NamedTuple):
    """Vital-sign metrics derived from one analysis window"""

    amplitude: int
    heart_rate: int  # beats per minute
    quality: SignalQuality


def count_peaks(window: Sequence[int], threshold: float) -> int:
    """Count rising edges through `threshold`.

    A peak starts at the first sample strictly above the threshold and ends
    at the first sample strictly below it. Samples equal to the threshold
    keep the current state, so noise sitting right at the threshold isn't
    counted twice.
    """
    peaks = 0
    above_threshold = False
    for value in window:
        if not above_threshold and value > threshold:
            above_threshold = True
            peaks += 1
        elif above_threshold and value < threshold:
            above_threshold = False

    return peaks


def estimate_heart_rate(peaks: int, window_duration: float = WINDOW_DURATION) -> int:
    """Scale the peak count of a window lasting `window_duration` seconds to
    beats per minute.

    This is a coarse estimate which assumes roughly periodic peaks and a
    fixed sampling rate.
    """
    if window_duration <= 0:
        raise ValueError(f"Window duration must be positive, got {window_duration}.")
    return round_half_up(peaks * (60 / window_duration))


def classify_quality(amplitude: int, peaks: int) -> SignalQuality:
    # Amplitude takes precedence: a flat signal has no trustworthy peaks.
    if amplitude < LOW_AMPLITUDE:
        return SignalQuality.LOW
    if peaks == 0:
        return SignalQuality.NO_PULSE
    return SignalQuality.GOOD


def evaluate(
    window: Sequence[int], window_duration: float = WINDOW_DURATION
) -> MetricsSnapshot:
    if not len(window):
        raise ValueError("Cannot evaluate an empty window.")
    samples = np.asarray(window, dtype=np.int64)
    lowest = int(samples.min())
    amplitude = int(samples.max()) - lowest
    threshold = lowest + amplitude * PEAK_THRESHOLD_RATIO
    peaks = count_peaks(samples.tolist(), threshold)

    return MetricsSnapshot(
        amplitude=amplitude,
        heart_rate=estimate_heart_rate(peaks, window_duration),
        quality=classify_quality(amplitude, peaks),
    )
