"""Error classes for kitchen-linode."""


class KitchenLinodeError(Exception):
    """Base exception for kitchen-linode errors."""


class ConfigurationError(KitchenLinodeError):
    """Raised for invalid or unresolvable configuration (non-retryable)."""


class ActionFailed(KitchenLinodeError):
    """Raised when a driver action fails because of the provider or transport."""


class ReadinessTimeout(KitchenLinodeError):
    """Raised when an instance does not become ready in time."""

    def __init__(self, instance_id, timeout: float, status: str = None):
        self.instance_id = instance_id
        self.timeout = timeout
        self.status = status
        super().__init__(
            f"Linode <{instance_id}> not ready after {timeout}s (last status: {status})"
        )


class RemoteCommandError(KitchenLinodeError):
    """Raised when a remote bootstrap command exits non-zero."""

    def __init__(self, command: str, exit_status: int, stderr: str = ""):
        self.command = command
        self.exit_status = exit_status
        self.stderr = stderr
        message = f"Remote command exited {exit_status}: {command}"
        if stderr:
            message += f" ({stderr.strip()})"
        super().__init__(message)


class LinodeAPIError(KitchenLinodeError):
    """Raised when the Linode API returns an error response."""

    def __init__(self, message: str, status_code: int = None, field: str = None):
        self.status_code = status_code
        self.field = field
        super().__init__(message)


class InvalidFieldError(LinodeAPIError):
    """Raised when the API rejects a request field taken from user configuration."""


class RateLimitError(LinodeAPIError):
    """Raised when an API request is rate limited."""

    def __init__(self, message: str = "Rate limited", retry_after: int = None):
        self.retry_after = retry_after
        super().__init__(message, status_code=429)


# Request fields that come straight from user configuration
CONFIGURATION_FIELDS = {
    "image",
    "kernel",
    "label",
    "region",
    "root_pass",
    "type",
}


def _error_message(errors: list[dict]) -> str:
    parts = []
    for error in errors:
        reason = error.get("reason", "")
        field = error.get("field")
        parts.append(f"{field}: {reason}" if field else reason)
    return "; ".join(p for p in parts if p)


def classify_api_error(
    error_response: dict,
    status_code: int = None,
    retry_after: int = None,
) -> KitchenLinodeError:
    """Classify a Linode API error response into the appropriate exception type.

    Parameters
    ----------
    error_response : dict
        The error body from the Linode API, typically ``{"errors": [{"reason": ..., "field": ...}]}``.
    status_code : int, optional
        HTTP status code of the response.
    retry_after : int, optional
        Value of the ``Retry-After`` header, if present.

    Returns
    -------
    KitchenLinodeError
        The appropriate exception type for the error.
    """
    errors = error_response.get("errors") or []
    message = _error_message(errors) or str(error_response)

    if status_code == 429:
        return RateLimitError(message, retry_after)

    fields = {e.get("field") for e in errors if e.get("field")}
    error_class = LinodeAPIError
    if status_code == 400 and fields & CONFIGURATION_FIELDS:
        error_class = InvalidFieldError

    return error_class(
        message,
        status_code=status_code,
        field=next(iter(sorted(fields)), None),
    )
