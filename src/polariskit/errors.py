"""
Exception hierarchy for polariskit.

Transport failures are recovered locally by the tree resolver and the access
aggregator. Grant validation errors are always raised to the caller before any
network call is made.
"""

from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from polariskit.executors.grant_executor import RevocationResult


class PolarisError(Exception):
    """Base class for all polariskit errors."""


# =============================================================================
# TRANSPORT
# =============================================================================

class TransportError(PolarisError):
    """Raised when a call to the catalog service fails (network or HTTP status)."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        method: Optional[str] = None,
        url: Optional[str] = None,
    ):
        self.status_code = status_code
        self.method = method
        self.url = url
        super().__init__(message)

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404

    def __str__(self) -> str:
        message = super().__str__()
        if self.status_code is None:
            return message
        return f"[{self.status_code}] {message}"


# =============================================================================
# GRANT VALIDATION
# =============================================================================

class GrantValidationError(PolarisError):
    """Raised when a grant violates an entity/privilege constraint."""


class InvalidPrivilegeForEntity(GrantValidationError):
    """Raised when a privilege is not in the allowed vocabulary of a grant type."""

    def __init__(self, grant_type: Any, privilege: Any):
        self.grant_type = getattr(grant_type, "value", grant_type)
        self.privilege = getattr(privilege, "value", privilege)
        super().__init__(
            f"Privilege '{self.privilege}' cannot be granted on a {self.grant_type} entity"
        )


class MissingEntityName(GrantValidationError):
    """Raised when a table, view or policy grant is built without an entity name."""

    def __init__(self, grant_type: Any):
        self.grant_type = getattr(grant_type, "value", grant_type)
        super().__init__(f"A {self.grant_type} grant requires an entity name")


# =============================================================================
# REVOCATION
# =============================================================================

class PartialCascadeFailure(PolarisError):
    """
    Raised when a cascading revoke removed the root grant but not every descendant.

    The attached result enumerates exactly which grants were removed and which
    were not.
    """

    def __init__(self, result: "RevocationResult"):
        self.result = result
        failed = len(result.failed)
        total = len(result.outcomes)
        super().__init__(
            f"Cascading revoke on {result.catalog}/{result.catalog_role} left "
            f"{failed} of {total} grants in place"
        )


# =============================================================================
# STALE RESPONSES
# =============================================================================

class StaleResponse(PolarisError):
    """A completed request no longer matches the current expansion state."""

    def __init__(self, node_id: str, generation: int):
        self.node_id = node_id
        self.generation = generation
        super().__init__(f"Discarding stale response for {node_id!r} (generation {generation})")
