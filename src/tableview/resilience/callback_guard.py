"""
Callback Guard - Failure Policy for User Callbacks.

Every user-supplied callback (row id, sort value extractor, tokenizer,
column filter predicate, filter callback) is invoked through a guard so
a single policy decides what a raising callback does to a pipeline run:

    - PROPAGATE: the run aborts with CallbackError chained to the cause
    - ISOLATE: the failure is logged and recorded, a fallback is returned

Callbacks are expected to be pure and synchronous; this is not checked.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Set, TypeVar

from tableview.config.models import CallbackPolicy

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CallbackError(Exception):
    """Raised when a user callback fails under the PROPAGATE policy."""

    def __init__(self, callback_name: str, cause: BaseException) -> None:
        super().__init__(f"{callback_name} callback failed: {cause!r}")
        self.callback_name = callback_name
        self.cause = cause


@dataclass
class CallbackFailure:
    """A callback failure recorded under the ISOLATE policy."""

    callback_name: str
    error: Exception


class CallbackGuard:
    """Invokes user callbacks according to a CallbackPolicy."""

    def __init__(self, policy: CallbackPolicy = CallbackPolicy.PROPAGATE) -> None:
        self.policy = policy
        self._failures: List[CallbackFailure] = []
        self._warned: Set[str] = set()

    def call(
        self,
        func: Callable[..., T],
        *args: Any,
        name: str,
        fallback: Any = None,
    ) -> T:
        """
        Invoke a callback.

        Args:
            func: The user callback
            *args: Positional arguments for the callback
            name: Callback name for errors and logs
            fallback: Value returned on failure under ISOLATE

        Returns:
            The callback's result, or the fallback after an isolated failure

        Raises:
            CallbackError: If the callback raises under PROPAGATE
        """
        try:
            return func(*args)
        except Exception as e:
            if self.policy == CallbackPolicy.PROPAGATE:
                raise CallbackError(name, e) from e
            self._record(name, e)
            return fallback

    def _record(self, name: str, error: Exception) -> None:
        self._failures.append(CallbackFailure(callback_name=name, error=error))
        if name not in self._warned:
            self._warned.add(name)
            logger.warning(f"{name} callback failed, using fallback value: {error!r}")
        else:
            logger.debug(f"{name} callback failed again: {error!r}")

    @property
    def failures(self) -> List[CallbackFailure]:
        return list(self._failures)

    @property
    def failure_count(self) -> int:
        return len(self._failures)

    def reset(self) -> None:
        """Start a new run: forget failures and re-arm the once-per-name warning."""
        self._failures.clear()
        self._warned.clear()
