"""Provides exceptions occurring with external services."""


class InfrastructureError(RuntimeError):
    """A backing service (database, session store, mail relay) failed."""


class SessionCreationFailed(InfrastructureError):
    """Failed to create a session in the session store."""


class SessionDeletionFailed(InfrastructureError):
    """Failed to delete a session in the session store."""


class MailDeliveryFailed(InfrastructureError):
    """The mail relay did not accept a message."""


class UnknownSession(RuntimeError):
    """Failed to locate a session in the session store."""


class InvalidToken(RuntimeError):
    """A session record is malformed or its signature does not check out."""


class ExpiredToken(RuntimeError):
    """The session has expired."""


class UserExists(RuntimeError):
    """The database rejected a new user as a duplicate."""
