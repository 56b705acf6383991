class PracticeError(Exception):
    """Base error for the practice session engine.

    ``status_code`` is the HTTP status the API layer answers with.
    """

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigValidationError(PracticeError):
    def __init__(self, missing_fields: list[str]):
        self.missing_fields = list(missing_fields)
        super().__init__(f"Missing required fields: {', '.join(self.missing_fields)}")


class QuestionGenerationError(PracticeError):
    status_code = 502


class DeviceAccessError(PracticeError):
    status_code = 503


class OutOfRangeError(PracticeError):
    status_code = 400


class SessionFinalizedError(PracticeError):
    status_code = 409


class PersistenceError(PracticeError):
    status_code = 502


class NoActiveSessionError(PracticeError):
    status_code = 404


class InvalidTransitionError(NoActiveSessionError):
    status_code = 409

    def __init__(self, action: str, status: str):
        self.action = action
        self.status = status
        super().__init__(f"Cannot {action} a session that is {status}")


class SessionAlreadyActiveError(PracticeError):
    status_code = 409
