class ErrorCodes:
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    INVALID_REQUEST = "INVALID_REQUEST"
    PERSISTENCE_ERROR = "PERSISTENCE_ERROR"
    INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"
    USER_NOT_FOUND = "USER_NOT_FOUND"


class SpinError(Exception):
    def __init__(self, error_code, status_message, status_code, details=None):
        super().__init__(status_message)
        self.error_code = error_code
        self.status_message = status_message
        self.status_code = status_code
        self.details = details if details is not None else {}


class ConfigurationError(SpinError):
    def __init__(self, status_message="Invalid symbol configuration", details=None):
        super().__init__(
            error_code=ErrorCodes.CONFIGURATION_ERROR,
            status_message=status_message,
            status_code=500,
            details=details,
        )


class InvalidRequestError(SpinError):
    def __init__(self, status_message="Invalid bet request", details=None):
        super().__init__(
            error_code=ErrorCodes.INVALID_REQUEST,
            status_message=status_message,
            status_code=400,
            details=details,
        )


class PersistenceError(SpinError):
    def __init__(self, status_message="Balance store failure", details=None):
        super().__init__(
            error_code=ErrorCodes.PERSISTENCE_ERROR,
            status_message=status_message,
            status_code=500,
            details=details,
        )


class InsufficientFundsError(SpinError):
    def __init__(self, status_message="Insufficient funds", details=None):
        super().__init__(
            error_code=ErrorCodes.INSUFFICIENT_FUNDS,
            status_message=status_message,
            status_code=400,
            details=details,
        )


class UserNotFoundError(SpinError):
    def __init__(self, status_message="User not found", details=None):
        super().__init__(
            error_code=ErrorCodes.USER_NOT_FOUND,
            status_message=status_message,
            status_code=404,
            details=details,
        )
