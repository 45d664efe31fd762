"""Error taxonomy raised by services and rendered as {"error": message} by the API."""


class PortalError(Exception):
    """Base error. `message` is the generic, user-visible text; `cause` is kept for logs."""

    status_code = 400

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        self.message = message
        self.cause = cause
        super().__init__(message)


class UnauthorizedError(PortalError):
    """Session present but its role (or ownership) does not permit the action."""

    status_code = 403

    def __init__(self, message: str = "Unauthorized", cause: Exception | None = None) -> None:
        super().__init__(message, cause)


class NotAuthenticatedError(UnauthorizedError):
    """No session, or the session token is invalid or expired."""

    status_code = 401


class NotFoundError(PortalError):
    """Referenced entity does not exist."""

    status_code = 404


class InputValidationError(PortalError):
    """Input rejected before any write (e.g. hours outside [0, 24])."""

    status_code = 422


class PersistenceError(PortalError):
    """A database call failed; the transaction was rolled back."""

    status_code = 500


class RateLimitedError(PortalError):
    """Too many attempts from the same client within the window."""

    status_code = 429
