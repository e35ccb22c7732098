class QuizError(Exception):
    """Base error for the quiz service. Carries the HTTP status it maps to."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(QuizError):
    """Malformed or missing input."""
    status_code = 400


class NoQuestionsAvailable(QuizError):
    """The candidate pool for a quiz is empty."""
    status_code = 400

    def __init__(self, message: str = "No questions available"):
        super().__init__(message)


class Unauthorized(QuizError):
    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class NotFound(QuizError):
    status_code = 404


class Conflict(QuizError):
    status_code = 409


class StorageError(QuizError):
    """The underlying store failed."""
    status_code = 500
