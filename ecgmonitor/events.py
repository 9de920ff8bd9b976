"""Events delivered by a transport to the StreamController.

The transport may be callback driven, threaded or async; the controller only
ever sees these values, one at a time and in arrival order.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Connecting:
    url: str = ""


@dataclass(frozen=True)
class Opened:
    pass


@dataclass(frozen=True)
class Closed:
    pass


@dataclass(frozen=True)
class Errored:
    message: str = ""


@dataclass(frozen=True)
class SampleReceived:
    raw: int
