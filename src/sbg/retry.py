"""Retry with exponential backoff around remote calls."""

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, List, Optional, TypeVar

from .config import Config, config as default_config
from .errors import RemoteError

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


class RetryExecutor:
    """Uniform retry policy for every remote call in the pipeline.

    Only RemoteErrors whose kind is transient or quota are retried. Anything
    else (content blocks, malformed payloads, programming errors) propagates
    on the first occurrence.
    """

    DEFAULT_MAX_ATTEMPTS = 5
    DEFAULT_BASE_DELAY = 5.0

    def __init__(
        self,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        base_delay: float = DEFAULT_BASE_DELAY,
        sleep: Optional[Sleep] = None,
    ) -> None:
        """Initialize the executor.

        Args:
            max_attempts: Total attempts per call, including the first.
            base_delay: Delay before the first retry; doubles on each retry.
            sleep: Awaitable sleep function. Defaults to asyncio.sleep.
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._max_attempts = max_attempts
        self._base_delay = base_delay
        self._sleep = sleep or asyncio.sleep

    @classmethod
    def from_config(cls, cfg: Optional[Config] = None, sleep: Optional[Sleep] = None) -> "RetryExecutor":
        cfg = cfg or default_config
        return cls(
            max_attempts=cfg.retry_max_attempts,
            base_delay=cfg.retry_base_delay,
            sleep=sleep,
        )

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    def schedule(self) -> List[float]:
        """Return the delays that precede each retry, in order."""
        return [self._base_delay * (2 ** n) for n in range(self._max_attempts - 1)]

    async def call(
        self,
        fn: Callable[..., Any],
        *args: Any,
        description: str = "remote call",
        **kwargs: Any,
    ) -> Any:
        """Invoke fn, retrying retryable RemoteErrors with backoff.

        Synchronous callables run in a worker thread so the event loop stays
        free; coroutine functions are awaited directly.

        Raises:
            RemoteError: The last error once attempts are exhausted, or the
                first terminal error.
        """
        for attempt in range(1, self._max_attempts + 1):
            try:
                if inspect.iscoroutinefunction(fn):
                    return await fn(*args, **kwargs)
                return await asyncio.to_thread(fn, *args, **kwargs)

            except RemoteError as e:
                if not e.retryable:
                    logger.error(f"{description} failed ({e.kind.value}): {e}")
                    raise

                if attempt == self._max_attempts:
                    logger.error(
                        f"{description} failed after {attempt} attempts "
                        f"({e.kind.value}): {e}"
                    )
                    raise

                delay = self._base_delay * (2 ** (attempt - 1))
                logger.warning(
                    f"{description} hit {e.kind.value} error "
                    f"(attempt {attempt}/{self._max_attempts}). Retrying in {delay:.1f}s..."
                )
                await self._sleep(delay)

        # Unreachable: the loop either returns or raises
        raise RuntimeError("retry loop exited without a result")
