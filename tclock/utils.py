import math
import re

_DURATION_RE = re.compile(
    r"^\s*(?:(?P<h>\d+(?:\.\d+)?)h)?\s*(?:(?P<m>\d+(?:\.\d+)?)m)?\s*(?:(?P<s>\d+(?:\.\d+)?)s)?\s*$",
    re.IGNORECASE,
)


def parse_duration(text: str) -> float:
    """Parse '90', '1.5', '5m', '1h30m', '2m 10s' into seconds.

    Raises ValueError on anything else, including an empty string.
    """
    if text is None:
        raise ValueError("duration is required")
    s = str(text).strip()
    if not s:
        raise ValueError("duration is required")
    try:
        value = float(s)
    except ValueError:
        pass
    else:
        if not math.isfinite(value):
            raise ValueError(f"not a duration: {text!r}")
        return value

    m = _DURATION_RE.match(s)
    if not m or not any(m.group(k) for k in ("h", "m", "s")):
        raise ValueError(f"not a duration: {text!r} (try 90, 5m or 1h2m3s)")
    hours = float(m.group("h") or 0)
    minutes = float(m.group("m") or 0)
    seconds = float(m.group("s") or 0)
    return hours * 3600 + minutes * 60 + seconds


def format_duration(seconds: float) -> str:
    """Short human form: 0s, 45s, 1m 5s, 2h 0m 3s (whole seconds, floored)."""
    total = max(0, int(math.floor(seconds + 1e-9)))
    h, rest = divmod(total, 3600)
    m, s = divmod(rest, 60)
    if h:
        return f"{h}h {m}m {s}s"
    if m:
        return f"{m}m {s}s"
    return f"{s}s"


def split_hms(total_seconds: int) -> tuple[int, int, int]:
    """Split whole seconds into (hours, minutes, seconds); hours may exceed 23."""
    total_seconds = max(0, int(total_seconds))
    h = total_seconds // 3600
    m = (total_seconds % 3600) // 60
    s = total_seconds % 60
    return h, m, s
