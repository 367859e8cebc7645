from __future__ import annotations

import math
import time
from datetime import datetime, timezone
from typing import Any, Optional


def season_of(token_id: int, season_size: int) -> int:
    return (token_id - 1) // season_size + 1


def now_ms() -> int:
    return time.time_ns() // 1_000_000


def ms_to_utc_str(ms: int) -> str:
    return datetime.fromtimestamp(ms / 1000.0, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def to_float(v: Any, default: float = 0.0) -> float:
    """
    Lenient numeric coercion for provider fields ("0.12", 0.12, None, "").
    NaN and infinities fall back to the default.
    """
    if v is None or v == "":
        return default
    try:
        f = float(v)
    except (TypeError, ValueError):
        return default
    return f if math.isfinite(f) else default


def to_int(v: Any, default: int = 0) -> int:
    if v is None or v == "":
        return default
    try:
        if isinstance(v, str) and v.lower().startswith("0x"):
            return int(v, 16)
        return int(float(v))
    except (TypeError, ValueError, OverflowError):
        return default


def parse_token_id(v: Any) -> Optional[int]:
    """
    Token ids arrive as ints, decimal strings or (Alchemy) 0x-hex strings.
    Returns None when the value is not an integer id at all.
    """
    if v is None or isinstance(v, bool):
        return None
    if isinstance(v, int):
        return v
    if isinstance(v, str):
        s = v.strip()
        try:
            if s.lower().startswith("0x"):
                return int(s, 16)
            return int(s)
        except ValueError:
            return None
    return None


def shorten_address(address: str) -> str:
    if len(address) <= 10:
        return address
    return f"{address[:6]}...{address[-4:]}"
