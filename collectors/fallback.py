"""
Provider fallback sequencing.

Tries an ordered list of data-source attempts for one logical query and
returns the first usable result. Attempts run strictly one after another,
each bounded by its own timeout; they are never raced. A failed attempt is
logged and the next one is tried; nothing is retried here.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Optional, Sequence, Tuple, TypeVar

from venues.errors import InvalidInput

log = logging.getLogger(__name__)

T = TypeVar("T")

# (source name, zero-arg coroutine factory)
Attempt = Tuple[str, Callable[[], Awaitable[Optional[T]]]]


@dataclass(frozen=True)
class FallbackResult(Generic[T]):
    """
    value/source are None when every attempt failed.
    failures lists (source, reason) for each attempt that did not win.
    """
    value: Optional[T]
    source: Optional[str]
    failures: Tuple[Tuple[str, str], ...] = ()

    @property
    def ok(self) -> bool:
        return self.source is not None


async def first_success(
    attempts: Sequence[Attempt],
    *,
    timeout: float,
    label: str = "query",
    validate: Optional[Callable[[Any], bool]] = None,
) -> FallbackResult:
    """
    Run attempts in order and return the first valid result.

    An attempt fails when it raises, exceeds `timeout` (it is cancelled and
    any late result is discarded), returns None, or is rejected by
    `validate`. InvalidInput is a caller error and propagates unchanged.
    """
    failures = []

    for source, attempt in attempts:
        try:
            value = await asyncio.wait_for(attempt(), timeout=timeout)
        except InvalidInput:
            raise
        except asyncio.TimeoutError:
            reason = f"timeout after {timeout}s"
        except Exception as exc:
            reason = f"{type(exc).__name__}: {exc}"
        else:
            if value is None:
                reason = "no result"
            elif validate is not None and not validate(value):
                reason = "rejected by validator"
            else:
                if failures:
                    log.info("[FALLBACK] %s answered by %s after %d failed attempt(s)", label, source, len(failures))
                return FallbackResult(value=value, source=source, failures=tuple(failures))

        failures.append((source, reason))
        log.warning("[FALLBACK][WARN] %s attempt failed source=%s reason=%s", label, source, reason)

    if attempts:
        log.warning("[FALLBACK][WARN] %s: all %d attempts failed", label, len(attempts))
    return FallbackResult(value=None, source=None, failures=tuple(failures))
