"""Async context manager for timing and logging workflow steps."""

import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from src.config.constants import VerificationStep
from src.infrastructure.logging.logger import StructuredLogger


class StepContext:
    """Mutable context for a timed workflow step."""

    def __init__(self) -> None:
        self.result: Any = None

    def set_result(self, result: Any) -> None:
        self.result = result


@asynccontextmanager
async def timed_step(
    step: VerificationStep,
    logger: StructuredLogger,
    **state: Any,
) -> AsyncGenerator[StepContext, None]:
    """Time a workflow step; log its result, or the error before re-raising it."""
    ctx = StepContext()
    start = time.perf_counter()
    try:
        yield ctx
    except Exception as e:
        logger.log_error(step.value, e, context=state or None)
        raise
    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.log_step(step.value, {**state, "result": ctx.result}, duration_ms=elapsed_ms)
