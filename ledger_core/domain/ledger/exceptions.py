"""
Typed errors raised by the ledger services.

Every error carries a machine-readable ``code`` so the route layer can map
it to a response without parsing messages:

    LedgerError
    +-- ValidationError     malformed input, cross-tenant references
    +-- NotFoundError       entity absent in the tenant
    +-- InvalidStateError   entity exists but is in the wrong status
"""

from typing import Any


class LedgerError(Exception):
    """Base class for ledger errors."""

    code: str = "LEDGER_ERROR"

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, **self.details}


class ValidationError(LedgerError, ValueError):
    """Input rejected before anything was persisted."""

    code = "VALIDATION_ERROR"


class NotFoundError(LedgerError):
    """Entity does not exist in the tenant."""

    code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(f"{entity} {entity_id} not found", entity=entity, entity_id=str(entity_id))
        self.entity = entity
        self.entity_id = entity_id


class InvalidStateError(LedgerError):
    """Operation attempted against an entity in the wrong status."""

    code = "INVALID_STATE"

    def __init__(self, entity: str, entity_id: Any, current: Any, expected: Any):
        current_value = getattr(current, "value", current)
        expected_value = getattr(expected, "value", expected)
        super().__init__(
            f"{entity} {entity_id} is {current_value}, expected {expected_value}",
            entity=entity,
            entity_id=str(entity_id),
            current_status=current_value,
            expected_status=expected_value,
        )
        self.entity = entity
        self.entity_id = entity_id
        self.current = current
        self.expected = expected
