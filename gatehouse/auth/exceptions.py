"""Exceptions."""


class AuthenticationFailed(RuntimeError):
    """Failed to authenticate user with provided credentials."""
