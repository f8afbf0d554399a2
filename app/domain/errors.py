from __future__ import annotations

from typing import Any, Dict, Optional


class DomainError(Exception):
    """
    Base for all errors the quotation core raises.

    - code: stable UPPER_SNAKE identifier for clients
    - message: human readable
    - meta: diagnostics payload (ids, offending values)
    - status_code: what the HTTP layer should answer with
    """

    status_code: int = 400
    default_code: str = "DOMAIN_ERROR"

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        meta: Optional[Dict[str, Any]] = None,
    ):
        self.code = str(code or self.default_code)
        self.message = str(message)
        self.meta = meta or {}
        super().__init__(f"{self.code}: {self.message}")


class ValidationError(DomainError):
    """Malformed input, raised before any persistence call."""

    status_code = 400
    default_code = "VALIDATION_ERROR"


class NotFoundError(DomainError):
    status_code = 404
    default_code = "NOT_FOUND"


class InvalidTransitionError(DomainError):
    status_code = 409
    default_code = "INVALID_STATUS_TRANSITION"

    def __init__(self, current: str, target: str, *, entity: str = "quotation"):
        self.current = str(current)
        self.target = str(target)
        super().__init__(
            f"Cannot transition {entity} from {self.current} to {self.target}",
            meta={"current": self.current, "target": self.target},
        )


class InternalInconsistencyError(DomainError):
    """Rate card data and the candidate filter disagree. Indicates a bug, not a user error."""

    status_code = 500
    default_code = "INTERNAL_INCONSISTENCY"
