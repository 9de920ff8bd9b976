from collections import deque
from ecgmonitor.config import BASELINE, DISPLAY_BUFFER_SIZE, ANALYSIS_WINDOW_SIZE


class DisplayBuffer:
    """The most recent smoothed samples for plotting.

    Always holds exactly `size` values. Until enough samples arrived the
    oldest values are the baseline, so a plot starts out as a flat line.
    """

    def __init__(self, size: int = DISPLAY_BUFFER_SIZE, baseline: int = BASELINE):
        self.size = size
        self.baseline = baseline
        self._values: deque[int] = deque([baseline] * size, size)

    def __len__(self) -> int:
        return len(self._values)

    def push(self, value: int):
        self._values.append(value)

    def reset(self):
        self._values = deque([self.baseline] * self.size, self.size)

    def snapshot_in_order(self) -> list[int]:
        """Oldest to newest."""
        return list(self._values)


class AnalysisWindow:
    """The most recent smoothed samples used for metric estimation.

    Grows from empty up to `size`, then drops the oldest value for every
    new one.
    """

    def __init__(self, size: int = ANALYSIS_WINDOW_SIZE):
        self.size = size
        self._values: deque[int] = deque(maxlen=size)

    def __len__(self) -> int:
        return len(self._values)

    def push(self, value: int):
        self._values.append(value)

    def reset(self):
        self._values.clear()

    def snapshot_in_order(self) -> list[int]:
        return list(self._values)
