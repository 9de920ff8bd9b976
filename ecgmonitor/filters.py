from collections import deque
from ecgmonitor.config import FILTER_SIZE
from ecgmonitor.utils import round_half_up


class SampleFilter:
    """Moving average over the last `size` raw samples.

    The history starts out as `size` zeros, so the first few outputs are
    pulled towards zero until the history has been filled with real
    samples.
    """

    def __init__(self, size: int = FILTER_SIZE):
        if size < 1:
            raise ValueError(f"Filter size must be positive, got {size}.")
        self.size = size
        # Once a bounded length deque is full, appending discards the
        # oldest item.
        self._history: deque[int] = deque([0] * size, size)
        self._sum: int = 0

    @property
    def history(self) -> list[int]:
        return list(self._history)

    def admit(self, raw: int) -> int:
        self._sum += raw - self._history[0]
        self._history.append(raw)
        return round_half_up(self._sum / self.size)

    def reset(self):
        self._history = deque([0] * self.size, self.size)
        self._sum = 0
