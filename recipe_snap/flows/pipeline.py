"""Sequential stage pipeline.

A Pipeline runs a fixed list of stages, feeding each stage's output to the
next. The first failing stage stops the run: later stages never start and
no partial result is returned.

Failures reaching the caller are always FlowError subclasses. Anything else a
stage raises is logged with its traceback and re-raised as Unavailable.
"""

import asyncio
import time
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Optional, Sequence, TypeVar

from recipe_snap.models.errors import FlowError, Unavailable
from recipe_snap.utils.logger import logger


T = TypeVar("T")


async def guarded(operation: str, awaitable: Awaitable[T]) -> T:
    """Await a capability call, converting unexpected exceptions into Unavailable."""
    try:
        return await awaitable
    except FlowError:
        raise
    except Exception as e:
        logger.error(f"{operation} failed unexpectedly: {e}", exc_info=True, extra={"operation": operation})
        raise Unavailable(f"{operation} failed: {e}") from e


async def with_timeout(operation: str, awaitable: Awaitable[T], timeout_seconds: Optional[float]) -> T:
    """Bound a whole flow in time; expiry fails the request with Unavailable."""
    if timeout_seconds is None:
        return await awaitable
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout_seconds)
    except asyncio.TimeoutError as e:
        logger.warning(f"{operation} timed out after {timeout_seconds}s", extra={"operation": operation})
        raise Unavailable(f"{operation} timed out after {timeout_seconds:g}s.") from e


class Stage(ABC):
    """One step of a pipeline."""

    name = "stage"

    @abstractmethod
    async def run(self, value: Any) -> Any:
        ...


class Pipeline:
    def __init__(self, name: str, stages: Sequence[Stage]) -> None:
        if not stages:
            raise ValueError("Pipeline needs at least one stage")
        self.name = name
        self.stages = list(stages)

    async def run(self, value: Any) -> Any:
        for index, stage in enumerate(self.stages, start=1):
            started = time.perf_counter()
            logger.debug(
                f"{self.name}: stage {index}/{len(self.stages)} '{stage.name}' started",
                extra={"operation": self.name},
            )
            try:
                value = await guarded(f"{self.name}.{stage.name}", stage.run(value))
            except FlowError as e:
                logger.info(
                    f"{self.name}: stage '{stage.name}' failed with {e.code}: {e.message}",
                    extra={"operation": self.name},
                )
                raise
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.debug(
                f"{self.name}: stage '{stage.name}' finished in {elapsed_ms:.0f}ms",
                extra={"operation": self.name},
            )
        return value
