"""Error taxonomy for hierarchy operations.

The HTTP layer maps these to response codes; services only raise them.
"""


class HierarchyError(Exception):
    code = "hierarchy_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(HierarchyError):
    """Required input (company, project name or data) is missing."""
    code = "validation_error"


class NotFoundError(HierarchyError):
    """A referenced metadata record (or its data snapshot) does not exist."""
    code = "not_found"


class StoreError(HierarchyError):
    """The persistence layer failed; the original error is chained as __cause__."""
    code = "store_error"
