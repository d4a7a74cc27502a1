"""
Base executor for catalog service mutations.

Provides common functionality for all executors including error handling,
dry-run support and result collection.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from polariskit.client.base import CatalogBackend
from polariskit.errors import TransportError
from polariskit.models.grants import Grant

logger = logging.getLogger(__name__)


class OperationType(str, Enum):
    """Types of operations that can be performed."""
    GRANT = "GRANT"
    REVOKE = "REVOKE"
    ASSIGN = "ASSIGN"
    UNASSIGN = "UNASSIGN"
    NO_OP = "NO_OP"
    SKIPPED = "SKIPPED"


@dataclass
class ExecutionResult:
    """Result of an execution operation."""

    success: bool
    operation: OperationType
    resource_type: str
    resource_name: str
    message: str = ""
    error: Optional[Exception] = None
    duration_seconds: float = 0.0
    grant: Optional[Grant] = None
    changes: Dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        """String representation of the result."""
        status = "✅" if self.success else "❌"
        return (
            f"{status} {self.operation.value} {self.resource_type} "
            f"{self.resource_name}: {self.message}"
        )


class BaseExecutor:
    """
    Base class for executors that mutate the catalog service.

    Provides:
    - Dry-run mode (log intended operations, send nothing)
    - Uniform error messages for transport failures
    - A running list of results
    """

    def __init__(
        self,
        backend: CatalogBackend,
        dry_run: bool = False,
        continue_on_error: bool = False,
    ):
        """
        Initialize the executor.

        Args:
            backend: Catalog service backend
            dry_run: If True, only log what would be done
            continue_on_error: Return failed results instead of raising
        """
        self.backend = backend
        self.dry_run = dry_run
        self.continue_on_error = continue_on_error
        self.results: List[ExecutionResult] = []

    def _record(self, result: ExecutionResult) -> ExecutionResult:
        self.results.append(result)
        return result

    def _describe_error(self, error: Exception) -> str:
        """Human-readable message for a failed call."""
        if not isinstance(error, TransportError) or error.status_code is None:
            return str(error)
        code = error.status_code
        if code == 401:
            return f"Authentication failed: {error}. Check the access token and realm."
        if code == 403:
            return f"Permission denied: {error}. The caller needs CATALOG_MANAGE_ACCESS or service admin rights."
        if code == 404:
            return f"Resource not found: {error}"
        if code == 409:
            return f"Conflict: {error}"
        if code == 400:
            return f"Invalid request: {error}"
        if code >= 500:
            return f"Service error: {error}. Try again later."
        return str(error)

    def _handle_error(
        self,
        operation: OperationType,
        resource_type: str,
        resource_name: str,
        error: Exception,
        duration: float = 0.0,
        grant: Optional[Grant] = None,
    ) -> ExecutionResult:
        """
        Handle an error during execution.

        Args:
            operation: The operation that failed
            resource_type: Kind of resource
            resource_name: Name of the resource
            error: The exception that occurred
            duration: Seconds spent before failing
            grant: The grant involved, if any

        Returns:
            ExecutionResult with error details

        Raises:
            Exception: The original error, unless continue_on_error is set
        """
        result = self._record(ExecutionResult(
            success=False,
            operation=operation,
            resource_type=resource_type,
            resource_name=resource_name,
            message=self._describe_error(error),
            error=error,
            duration_seconds=duration,
            grant=grant,
        ))
        logger.error(f"Operation failed: {result}")

        if not self.continue_on_error:
            raise error

        return result

    def get_summary(self) -> Dict[str, int]:
        """Counts of recorded results by outcome."""
        return {
            "total": len(self.results),
            "succeeded": sum(1 for r in self.results if r.success),
            "failed": sum(1 for r in self.results if not r.success),
        }
