"""
Domain exceptions shared by the schedule operations and the API layer.
"""


class ScheduleValidationError(ValueError):
    """Schedule request is malformed or fails validation. Nothing was persisted."""
    pass


class ProductResolutionError(Exception):
    """A variant's owning product could not be resolved. Nothing was persisted."""

    def __init__(self, variant_id: str, message: str = ""):
        self.variant_id = variant_id
        super().__init__(message or f"Could not resolve product for variant {variant_id}")


class ScheduleExecutionError(Exception):
    """A due schedule could not be applied to the catalog."""
    pass


class InventoryUpdateError(Exception):
    """Catalog rejected an inventory quantity change."""

    def __init__(self, message: str, user_errors=None):
        self.user_errors = user_errors or []
        super().__init__(message)
