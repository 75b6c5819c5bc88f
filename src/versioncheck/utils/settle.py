"""Fan out awaitables, wait for all of them, keep every outcome."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Generic, Iterable, TypeVar

T = TypeVar("T")
K = TypeVar("K")


@dataclass
class Outcome(Generic[T]):
    value: T | None = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def settle_all(awaitables: Iterable[Awaitable[T]]) -> list[Outcome[T]]:
    """Await everything concurrently; a failure never cancels its siblings."""
    results: list[Any] = await asyncio.gather(*awaitables, return_exceptions=True)
    outcomes: list[Outcome[T]] = []
    for result in results:
        if isinstance(result, asyncio.CancelledError):
            raise result
        if isinstance(result, BaseException):
            outcomes.append(Outcome(error=result))
        else:
            outcomes.append(Outcome(value=result))
    return outcomes


def partition(
    keys: Iterable[K], outcomes: Iterable[Outcome[T]]
) -> tuple[dict[K, T], dict[K, BaseException]]:
    """Split keyed outcomes into successes and failures, keeping key order."""
    succeeded: dict[K, T] = {}
    failed: dict[K, BaseException] = {}
    for key, outcome in zip(keys, outcomes):
        if outcome.ok:
            succeeded[key] = outcome.value  # type: ignore[assignment]
        else:
            failed[key] = outcome.error  # type: ignore[assignment]
    return succeeded, failed
