"""Error types raised by scoreboard services.

Each error carries the HTTP status it maps to so HTTP routes and socket
handlers can surface it without re-classifying.
"""


class ScoreboardError(Exception):
    """Base error with a client-facing message."""

    status_code = 500

    def __init__(self, message: str = 'Internal server error'):
        super().__init__(message)
        self.message = message


class ValidationError(ScoreboardError):
    """Malformed input: empty fields, duplicate teams, bad comment text."""

    status_code = 400

    def __init__(self, message: str = 'Invalid request'):
        super().__init__(message)


class AuthError(ScoreboardError):
    """Missing or invalid admin credential."""

    status_code = 401

    def __init__(self, message: str = 'Authentication required'):
        super().__init__(message)


class NotFoundError(ScoreboardError):
    status_code = 404

    def __init__(self, message: str = 'Resource not found'):
        super().__init__(message)


class StorageError(ScoreboardError):
    """A read or write against the database failed."""

    status_code = 500

    def __init__(self, message: str = 'Storage error'):
        super().__init__(message)
