from .cache import EntityCache
from .client import BelimunoClient
from .exceptions import (
    ApiError, InvalidStateTransition, InvalidPaymentState, BreakdownMismatch, AlreadyResolved,
    InvalidPartialAmount, InvalidProgress, ConcurrentModification, ValidationFailed, NotAuthenticated,
    PermissionDenied, NotFound, ServerError, TransportError,
)

__all__ = [
    'BelimunoClient', 'EntityCache', 'ApiError', 'InvalidStateTransition', 'InvalidPaymentState',
    'BreakdownMismatch', 'AlreadyResolved', 'InvalidPartialAmount', 'InvalidProgress',
    'ConcurrentModification', 'ValidationFailed', 'NotAuthenticated', 'PermissionDenied', 'NotFound',
    'ServerError', 'TransportError',
]
