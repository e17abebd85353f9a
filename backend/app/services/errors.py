"""Service-layer errors mapped to HTTP statuses by the endpoints."""


class NotFoundError(ValueError):
    """A referenced row does not exist or belongs to another user."""


class ConflictError(ValueError):
    """The requested change clashes with existing state."""
