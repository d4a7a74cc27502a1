"""
Grant executor for catalog role privilege management.

Handles granting and revoking privileges, including cascading revokes, and
the role-assignment edges of the authorization graph. Every successful
mutation invalidates the aggregator queries it may have changed.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from polariskit.access.access_map import AccessMap
from polariskit.access.aggregator import AccessGraphAggregator
from polariskit.access.cascade import cascade_targets
from polariskit.client.base import CatalogBackend
from polariskit.errors import PartialCascadeFailure, TransportError
from polariskit.models.grants import Grant, describe_grant, parse_grant

from .base import BaseExecutor, ExecutionResult, OperationType

logger = logging.getLogger(__name__)

GRANT_RESOURCE = "GRANT"
PRINCIPAL_ROLE_RESOURCE = "PRINCIPAL_ROLE"
CATALOG_ROLE_RESOURCE = "CATALOG_ROLE"


class RevocationStatus(str, Enum):
    """Overall outcome of a revoke."""
    SUCCESS = "SUCCESS"
    PARTIAL = "PARTIAL"  # Root removed, some descendants left in place
    FAILED = "FAILED"    # Root not removed


@dataclass
class RevocationResult:
    """
    Outcome of revoking one grant, with or without cascade.

    ``outcomes[0]`` is always the root grant; the rest are its cascade
    descendants in the order they were processed.
    """

    catalog: str
    catalog_role: str
    root: Grant
    cascade: bool
    outcomes: List[ExecutionResult] = field(default_factory=list)

    @property
    def root_outcome(self) -> Optional[ExecutionResult]:
        return self.outcomes[0] if self.outcomes else None

    @property
    def removed(self) -> List[Grant]:
        return [o.grant for o in self.outcomes if o.success]

    @property
    def failed(self) -> List[ExecutionResult]:
        return [o for o in self.outcomes if not o.success]

    @property
    def status(self) -> RevocationStatus:
        root = self.root_outcome
        if root is None or not root.success:
            return RevocationStatus.FAILED
        if self.failed:
            return RevocationStatus.PARTIAL
        return RevocationStatus.SUCCESS

    def raise_for_status(self) -> None:
        """
        Raise if the revoke did not fully succeed.

        Raises:
            PartialCascadeFailure: If the root was removed but some descendants were not
            Exception: The root's error if the root was not removed
        """
        status = self.status
        if status == RevocationStatus.PARTIAL:
            raise PartialCascadeFailure(self)
        if status == RevocationStatus.FAILED:
            root = self.root_outcome
            if root is not None and root.error is not None:
                raise root.error
            raise TransportError(f"Revoking {describe_grant(self.root)} failed")


class GrantExecutor(BaseExecutor):
    """Executor for grant and role-assignment operations."""

    def __init__(
        self,
        backend: CatalogBackend,
        aggregator: Optional[AccessGraphAggregator] = None,
        dry_run: bool = False,
        continue_on_error: bool = False,
        access_map: Optional[AccessMap] = None,
    ):
        """
        Initialize the grant executor.

        Args:
            backend: Catalog service backend
            aggregator: Aggregator whose caches are invalidated after mutations
            dry_run: If True, only log actions without executing
            continue_on_error: Return failed results instead of raising
                (revokes never raise; see RevocationResult.raise_for_status)
            access_map: Access map whose loaded rows are reset after mutations.
                A map not passed here keeps showing its loaded rows until
                AccessMap.invalidate is called.
        """
        super().__init__(backend, dry_run, continue_on_error)
        self.aggregator = aggregator
        self.access_map = access_map

    @staticmethod
    def _coerce(grant: Union[Grant, Dict[str, Any]]) -> Grant:
        # Validation happens here, before any call is made
        if isinstance(grant, dict):
            return parse_grant(grant)
        return grant

    # =========================================================================
    # GRANTS
    # =========================================================================

    async def grant(
        self,
        catalog: str,
        catalog_role: str,
        grant: Union[Grant, Dict[str, Any]],
    ) -> ExecutionResult:
        """
        Attach a grant to a catalog role.

        Args:
            catalog: Catalog name
            catalog_role: Catalog role name
            grant: Grant model or wire-format dict

        Returns:
            ExecutionResult indicating success or failure

        Raises:
            GrantValidationError: If a dict grant is invalid (before any call)
            TransportError: If the call fails and continue_on_error is False
        """
        grant = self._coerce(grant)
        description = f"{describe_grant(grant)} to {catalog}/{catalog_role}"

        if self.dry_run:
            logger.info(f"[DRY RUN] Would grant {description}")
            return self._record(ExecutionResult(
                success=True,
                operation=OperationType.GRANT,
                resource_type=GRANT_RESOURCE,
                resource_name=description,
                message="Would be granted (dry run)",
                grant=grant,
            ))

        start_time = time.time()
        try:
            await self.backend.add_grant(catalog, catalog_role, grant)
        except TransportError as e:
            return self._handle_error(
                OperationType.GRANT, GRANT_RESOURCE, description, e,
                duration=time.time() - start_time, grant=grant,
            )

        logger.info(f"Granted {description}")
        self._invalidate_grants(catalog, catalog_role)
        return self._record(ExecutionResult(
            success=True,
            operation=OperationType.GRANT,
            resource_type=GRANT_RESOURCE,
            resource_name=description,
            message="Granted successfully",
            duration_seconds=time.time() - start_time,
            grant=grant,
        ))

    async def revoke(
        self,
        catalog: str,
        catalog_role: str,
        grant: Union[Grant, Dict[str, Any]],
        cascade: bool = False,
    ) -> RevocationResult:
        """
        Revoke a grant, optionally with everything beneath it.

        With ``cascade`` the role's grants are listed first and the
        descendants of ``grant`` are computed from that listing. The root is
        then revoked with the backend cascade flag set, and every descendant is
        revoked individually; a descendant answering 404 was already removed
        by the backend and counts as removed.

        Args:
            catalog: Catalog name
            catalog_role: Catalog role name
            grant: Grant to revoke
            cascade: Also revoke grants on contained entities

        Returns:
            RevocationResult with one outcome per grant

        Raises:
            GrantValidationError: If a dict grant is invalid (before any call)
        """
        grant = self._coerce(grant)
        result = RevocationResult(catalog, catalog_role, grant, cascade)

        descendants: List[Grant] = []
        if cascade:
            try:
                listed = await self.backend.list_grants(catalog, catalog_role)
            except TransportError as e:
                logger.error(
                    f"Cannot plan cascading revoke on {catalog}/{catalog_role}: "
                    f"listing grants failed: {e}"
                )
                result.outcomes.append(self._revoke_failed(catalog, catalog_role, grant, e, 0.0))
                return result
            descendants = cascade_targets(grant, listed)
            logger.info(
                f"Cascading revoke of {describe_grant(grant)} covers "
                f"{len(descendants)} descendant grants"
            )

        root = await self._revoke_one(catalog, catalog_role, grant, cascade=cascade)
        result.outcomes.append(root)
        if not self.dry_run:
            # Invalidated even when the root failed
            self._invalidate_grants(catalog, catalog_role)

        if not root.success:
            for descendant in descendants:
                result.outcomes.append(self._record(ExecutionResult(
                    success=False,
                    operation=OperationType.SKIPPED,
                    resource_type=GRANT_RESOURCE,
                    resource_name=describe_grant(descendant),
                    message="Skipped because the root grant was not revoked",
                    grant=descendant,
                )))
            return result

        for descendant in descendants:
            outcome = await self._revoke_one(
                catalog, catalog_role, descendant, cascade=False, missing_ok=True
            )
            result.outcomes.append(outcome)

        if not self.dry_run and descendants:
            self._invalidate_grants(catalog, catalog_role)
        if result.status == RevocationStatus.PARTIAL:
            logger.warning(
                f"Cascading revoke on {catalog}/{catalog_role} left "
                f"{len(result.failed)} grants in place"
            )
        return result

    async def _revoke_one(
        self,
        catalog: str,
        catalog_role: str,
        grant: Grant,
        cascade: bool,
        missing_ok: bool = False,
    ) -> ExecutionResult:
        description = f"{describe_grant(grant)} from {catalog}/{catalog_role}"
        if self.dry_run:
            logger.info(f"[DRY RUN] Would revoke {description} (cascade={cascade})")
            return self._record(ExecutionResult(
                success=True,
                operation=OperationType.REVOKE,
                resource_type=GRANT_RESOURCE,
                resource_name=description,
                message="Would be revoked (dry run)",
                grant=grant,
            ))

        start_time = time.time()
        try:
            await self.backend.revoke_grant(catalog, catalog_role, grant, cascade=cascade)
        except TransportError as e:
            duration = time.time() - start_time
            if missing_ok and e.is_not_found:
                logger.debug(f"{description} was already removed")
                return self._record(ExecutionResult(
                    success=True,
                    operation=OperationType.NO_OP,
                    resource_type=GRANT_RESOURCE,
                    resource_name=description,
                    message="Already removed by cascade",
                    duration_seconds=duration,
                    grant=grant,
                ))
            return self._revoke_failed(catalog, catalog_role, grant, e, duration)

        return self._record(ExecutionResult(
            success=True,
            operation=OperationType.REVOKE,
            resource_type=GRANT_RESOURCE,
            resource_name=description,
            message="Revoked successfully",
            duration_seconds=time.time() - start_time,
            grant=grant,
        ))

    def _revoke_failed(
        self,
        catalog: str,
        catalog_role: str,
        grant: Grant,
        error: Exception,
        duration: float,
    ) -> ExecutionResult:
        result = self._record(ExecutionResult(
            success=False,
            operation=OperationType.REVOKE,
            resource_type=GRANT_RESOURCE,
            resource_name=f"{describe_grant(grant)} from {catalog}/{catalog_role}",
            message=self._describe_error(error),
            error=error,
            duration_seconds=duration,
            grant=grant,
        ))
        logger.error(f"Operation failed: {result}")
        return result

    # =========================================================================
    # ROLE ASSIGNMENTS
    # =========================================================================

    async def _edge(
        self,
        operation: OperationType,
        resource_type: str,
        description: str,
        call,
        invalidate,
    ) -> ExecutionResult:
        if self.dry_run:
            logger.info(f"[DRY RUN] Would {operation.value.lower()} {description}")
            return self._record(ExecutionResult(
                success=True,
                operation=operation,
                resource_type=resource_type,
                resource_name=description,
                message="Would be applied (dry run)",
            ))

        start_time = time.time()
        try:
            await call()
        except TransportError as e:
            return self._handle_error(
                operation, resource_type, description, e, duration=time.time() - start_time
            )

        invalidate()
        logger.info(f"{operation.value} {description}")
        return self._record(ExecutionResult(
            success=True,
            operation=operation,
            resource_type=resource_type,
            resource_name=description,
            message="Applied successfully",
            duration_seconds=time.time() - start_time,
        ))

    async def assign_principal_role(self, principal: str, principal_role: str) -> ExecutionResult:
        """Give a principal a principal role."""
        return await self._edge(
            OperationType.ASSIGN,
            PRINCIPAL_ROLE_RESOURCE,
            f"{principal_role} to {principal}",
            lambda: self.backend.assign_principal_role(principal, principal_role),
            lambda: self._invalidate_principal(principal),
        )

    async def revoke_principal_role(self, principal: str, principal_role: str) -> ExecutionResult:
        """Take a principal role away from a principal."""
        return await self._edge(
            OperationType.UNASSIGN,
            PRINCIPAL_ROLE_RESOURCE,
            f"{principal_role} from {principal}",
            lambda: self.backend.revoke_principal_role(principal, principal_role),
            lambda: self._invalidate_principal(principal),
        )

    async def assign_catalog_role(
        self, principal_role: str, catalog: str, catalog_role: str
    ) -> ExecutionResult:
        """Give a principal role a catalog role."""
        return await self._edge(
            OperationType.ASSIGN,
            CATALOG_ROLE_RESOURCE,
            f"{catalog}/{catalog_role} to {principal_role}",
            lambda: self.backend.assign_catalog_role(principal_role, catalog, catalog_role),
            lambda: self._invalidate_assignments(catalog, catalog_role),
        )

    async def revoke_catalog_role(
        self, principal_role: str, catalog: str, catalog_role: str
    ) -> ExecutionResult:
        """Take a catalog role away from a principal role."""
        return await self._edge(
            OperationType.UNASSIGN,
            CATALOG_ROLE_RESOURCE,
            f"{catalog}/{catalog_role} from {principal_role}",
            lambda: self.backend.revoke_catalog_role(principal_role, catalog, catalog_role),
            lambda: self._invalidate_assignments(catalog, catalog_role),
        )

    # =========================================================================
    # CACHE INVALIDATION
    # =========================================================================

    def _invalidate_grants(self, catalog: str, catalog_role: str) -> None:
        if self.aggregator is not None:
            self.aggregator.invalidate_grants(catalog, catalog_role)
        self._reset_access_map()

    def _invalidate_principal(self, principal: str) -> None:
        if self.aggregator is not None:
            self.aggregator.invalidate_principal_roles(principal)
        self._reset_access_map()

    def _invalidate_assignments(self, catalog: str, catalog_role: str) -> None:
        if self.aggregator is not None:
            self.aggregator.invalidate_catalog_role_assignments(catalog, catalog_role)
        self._reset_access_map()

    def _reset_access_map(self) -> None:
        if self.access_map is not None:
            self.access_map.invalidate()
