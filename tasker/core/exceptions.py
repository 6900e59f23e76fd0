class TaskerError(Exception):
    """Base class for errors raised by the task service."""


class ValidationError(TaskerError):
    """Bad input. Raised before any store access."""


class StoreError(TaskerError):
    """Connectivity, constraint or transaction failure in the persistent store."""


class CacheUnavailable(TaskerError):
    """
    The cache backend could not be reached.

    Never reported to callers of the service: the aggregate controller
    downgrades it to a miss (reads) or a no-op (invalidation).
    """
