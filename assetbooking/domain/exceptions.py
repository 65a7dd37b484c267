"""
Domain-specific exception hierarchy for the asset booking application.
"""


class AssetBookingError(Exception):
    """Base class for all application-level errors."""


class StoreError(AssetBookingError):
    """Base class for failures raised by a booking store."""


class StoreUnavailable(StoreError):
    """Raised when a store cannot be reached or its data cannot be read."""


class WriteFailed(StoreError):
    """Raised when a store rejects an insert or update."""


class SlotConflict(WriteFailed):
    """Raised when a booking overlaps one already stored for the asset."""


class AssetNotFound(AssetBookingError):
    """Raised when no asset record matches the requested id."""
