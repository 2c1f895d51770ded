"""
Exception types for the forecast dashboard.

    ForecastError (base)
    |
    +-- ConfigurationError   connection settings missing or invalid
    +-- ForecastApiError     server call failed (transport or HTTP status)
    +-- PayloadError         server answered with an unexpected shape
"""


class ForecastError(Exception):
    """Base class for every error raised by the forecast modules."""

    code = "FORECAST_ERROR"


class ConfigurationError(ForecastError):
    code = "CONFIGURATION_ERROR"


class ForecastApiError(ForecastError):
    """A server operation failed. `message` is the best text we could extract."""

    code = "API_ERROR"

    def __init__(self, operation, message, status_code=None):
        self.operation = operation
        self.message = message
        self.status_code = status_code
        status = f" (HTTP {status_code})" if status_code is not None else ""
        super().__init__(f"{operation} failed{status}: {message}")


class PayloadError(ForecastError):
    """Response shape check failed for one field of one operation."""

    code = "PAYLOAD_ERROR"

    def __init__(self, operation, field, problem):
        self.operation = operation
        self.field = field
        self.problem = problem
        super().__init__(f"{operation}: field '{field}' {problem}")
