"""Base service class for domain services."""


class Service:
    """Base class for all domain services.

    Services hold the thread rules that span a comment and its replies:
    numbering, reply counts and the deletion policy. They work only through
    the repository interface.
    """

    pass
