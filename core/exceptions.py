import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class BelimunoError(Exception):
    """Base class for state machine errors surfaced to API callers."""
    code = 'belimuno_error'
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = 'The request could not be applied.'

    def __init__(self, message=None, **details):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def as_dict(self):
        data = {"error": self.message, "code": self.code}
        data.update(self.details)
        return data


class InvalidStateTransition(BelimunoError):
    code = 'invalid_state_transition'

    def __init__(self, current, attempted, message=None):
        message = message or f"Cannot move job from '{current}' to '{attempted}'."
        super().__init__(message, current=current, attempted=attempted)
        self.current = current
        self.attempted = attempted


class InvalidPaymentState(BelimunoError):
    code = 'invalid_payment_state'
    default_message = 'Payment is not in a state that allows this action.'


class BreakdownMismatch(BelimunoError):
    code = 'breakdown_mismatch'
    default_message = 'Net amount must equal gross minus fees and tax.'


class AlreadyResolved(BelimunoError):
    code = 'already_resolved'
    default_message = 'Payment is already in the requested state.'


class InvalidPartialAmount(BelimunoError):
    code = 'invalid_partial_amount'
    default_message = 'Partial amount must be greater than 0 and less than the gross amount.'


class InvalidProgress(BelimunoError):
    code = 'invalid_progress'
    default_message = 'Progress must be between the current value and 100.'


class ConcurrentModification(BelimunoError):
    code = 'concurrent_modification'
    status_code = status.HTTP_409_CONFLICT
    default_message = 'The record was changed by someone else. Reload and try again.'


def belimuno_exception_handler(exc, context):
    if isinstance(exc, BelimunoError):
        view = context.get('view')
        logger.info(f"{exc.code} in {view.__class__.__name__ if view else 'unknown view'}: {exc.message}")
        return Response(exc.as_dict(), status=exc.status_code)
    return exception_handler(exc, context)
