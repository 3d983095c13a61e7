class ApiError(Exception):
    """Error response from the Belimuno API.

    ``code`` matches the ``code`` field the server puts on domain errors.
    Domain errors are never retryable; only transport and 5xx failures are.
    """
    code = None
    retryable = False

    def __init__(self, message, status_code=None, code=None, details=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code or self.code
        self.details = details or {}


class InvalidStateTransition(ApiError):
    code = 'invalid_state_transition'


class InvalidPaymentState(ApiError):
    code = 'invalid_payment_state'


class BreakdownMismatch(ApiError):
    code = 'breakdown_mismatch'


class AlreadyResolved(ApiError):
    code = 'already_resolved'


class InvalidPartialAmount(ApiError):
    code = 'invalid_partial_amount'


class InvalidProgress(ApiError):
    code = 'invalid_progress'


class ConcurrentModification(ApiError):
    code = 'concurrent_modification'


class ValidationFailed(ApiError):
    code = 'validation_failed'


class NotAuthenticated(ApiError):
    code = 'not_authenticated'


class PermissionDenied(ApiError):
    code = 'permission_denied'


class NotFound(ApiError):
    code = 'not_found'


class ServerError(ApiError):
    code = 'server_error'
    retryable = True


class TransportError(ApiError):
    code = 'transport_error'
    retryable = True


ERRORS_BY_CODE = {
    cls.code: cls for cls in (
        InvalidStateTransition, InvalidPaymentState, BreakdownMismatch, AlreadyResolved,
        InvalidPartialAmount, InvalidProgress, ConcurrentModification,
    )
}

ERRORS_BY_STATUS = {
    400: ValidationFailed,
    401: NotAuthenticated,
    403: PermissionDenied,
    404: NotFound,
    409: ConcurrentModification,
}


def error_from_response(response):
    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {'detail': body}

    code = body.get('code')
    if code in ERRORS_BY_CODE:
        error_class = ERRORS_BY_CODE[code]
    elif response.status_code >= 500:
        error_class = ServerError
    else:
        error_class = ERRORS_BY_STATUS.get(response.status_code, ApiError)

    message = body.get('error') or body.get('detail') or response.reason or f"HTTP {response.status_code}"
    details = {key: value for key, value in body.items() if key not in ('error', 'code')}
    return error_class(str(message), status_code=response.status_code, code=code, details=details)
