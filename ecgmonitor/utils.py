import re
import math
import numbers
import ipaddress
from collections import namedtuple
from ecgmonitor.config import BASELINE, SAMPLE_MIN, SAMPLE_MAX


NamedSignal = namedtuple("NamedSignal", "name value")


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves towards +infinity.

    Samples and heart rates are never negative, so this is the same as
    rounding halves away from zero. Python's `round` rounds halves to even,
    which would make a mean of 512.5 alternate between 512 and 513
    depending on the integer part.
    """
    return math.floor(value + 0.5)


def valid_sample(raw) -> bool:
    """Make sure that raw is an integer within the device range."""
    if isinstance(raw, bool) or not isinstance(raw, numbers.Integral):
        return False
    return SAMPLE_MIN <= raw <= SAMPLE_MAX


def valid_host(host: str) -> bool:
    """Make sure that host is an IPv4/IPv6 address or a hostname."""
    try:
        ipaddress.ip_address(host)
        return True
    except ValueError:
        pass
    if not host or len(host) > 253:
        return False
    label = re.compile(r"(?!-)[a-z0-9-]{1,63}(?<!-)$")

    return all(label.match(part) for part in host.lower().rstrip(".").split("."))


def valid_port(port: int) -> bool:
    return 0 < port < 65536


def ws_url(host: str, port: int) -> str:
    if ":" in host:  # bare IPv6 literal
        host = f"[{host}]"
    return f"ws://{host}:{port}"


def zoom_range(scale: float) -> tuple[int, int]:
    """Return (min, max) of the y-axis for zoom factor `scale`.

    The visible range is centered on the baseline and clipped to the
    device range. A scale of 1 shows the full range.
    """
    half_range = BASELINE / scale
    lower = max(SAMPLE_MIN, BASELINE - half_range)
    upper = min(SAMPLE_MAX, BASELINE + half_range)

    return (math.floor(lower), math.ceil(upper))
