"""
Resilience Module - User Callback Failure Handling.

Components:
    - CallbackGuard: Invokes callbacks under a propagate/isolate policy
    - CallbackError: Raised when a callback fails under PROPAGATE
    - CallbackFailure: Failure record kept under ISOLATE
"""

from tableview.resilience.callback_guard import (
    CallbackError,
    CallbackFailure,
    CallbackGuard,
)

__all__ = [
    "CallbackError",
    "CallbackFailure",
    "CallbackGuard",
]
