"""Domain layer errors."""


class DomainError(Exception):
    """Base domain error."""

    pass


class ValidationError(DomainError):
    """Raised when required input is missing or malformed."""

    pass


class NotFoundError(DomainError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} not found: {identifier}")


class DuplicateKeyError(DomainError):
    """Raised when a create collides with an existing identifier."""

    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} already exists: {identifier}")


class ConflictError(DomainError):
    """Raised when a document changed between read and save.

    The caller should re-read and retry the operation.
    """

    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} was modified concurrently: {identifier}")


class StorageError(DomainError):
    """Generic storage adapter failure."""

    pass


class StorageConnectionError(StorageError):
    """Raised when the storage backend cannot be reached."""

    pass
