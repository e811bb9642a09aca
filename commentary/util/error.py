"""Utility layer errors."""


class UtilError(Exception):
    """Base utility error."""

    pass


class DependencyInjectionError(UtilError):
    """Raised when the container cannot be assembled.

    Typically a component has no implementation of the requested kind.
    """

    pass
