"""
polariskit - client-side building blocks for a Polaris-style table catalog.

This library reconstructs namespace trees from flat listing calls, models
catalog role grants with per-entity privilege validation, aggregates the
Principal -> Principal Role -> Catalog Role -> Grant authorization graph, and
applies grant mutations including cascading revokes.

Quick Start:
    from polariskit import (
        ConsoleSettings, PolarisRestClient, NamespaceTreeResolver,
        AccessGraphAggregator, GrantExecutor, build_grant,
    )

    settings = ConsoleSettings.from_env()
    async with PolarisRestClient(settings) as backend:
        # Browse
        resolver = NamespaceTreeResolver(backend)
        roots = await resolver.list_catalog_nodes()
        await resolver.expand(roots[0])

        # Inspect access
        aggregator = AccessGraphAggregator(backend, settings)
        grants = await aggregator.grants_for_principal("alice")

        # Mutate
        executor = GrantExecutor(backend, aggregator)
        grant = build_grant("namespace", "TABLE_READ_DATA", namespace=["sales"])
        await executor.grant("analytics", "readers", grant)
        result = await executor.revoke("analytics", "readers", grant, cascade=True)
        result.raise_for_status()
"""

__version__ = "0.1.0"

from polariskit.errors import (
    PolarisError,
    TransportError,
    GrantValidationError,
    InvalidPrivilegeForEntity,
    MissingEntityName,
    PartialCascadeFailure,
    StaleResponse,
)

from polariskit.config import ConsoleSettings, load_settings

from polariskit.models import (
    GrantType,
    TreeNodeType,
    Privilege,
    ALLOWED_PRIVILEGES,
    is_privilege_allowed,
    Namespace,
    encode_namespace,
    decode_namespace,
    format_namespace,
    Grant,
    CatalogGrant,
    NamespaceGrant,
    TableGrant,
    ViewGrant,
    PolicyGrant,
    build_grant,
    parse_grant,
    to_wire,
    grant_key,
    format_path,
    entity_name,
    entity_path,
    Catalog,
    TableIdentifier,
    Principal,
    PrincipalRole,
    CatalogRole,
    CatalogRoleRef,
)

from polariskit.client import CatalogBackend, PolarisRestClient

from polariskit.tree import (
    TreeNode,
    ExpansionState,
    NodeState,
    NodeStatus,
    NamespaceTreeResolver,
    VisibleNode,
)

from polariskit.access import (
    QueryStatus,
    QueryResult,
    EffectiveGrant,
    GrantPath,
    QueryCache,
    cascade_targets,
    AccessStatistics,
    AccessUniverse,
    SampledCount,
    reduce_statistics,
    AccessGraphAggregator,
    AccessMap,
    AccessMapRow,
)

from polariskit.executors import (
    ExecutionResult,
    OperationType,
    GrantExecutor,
    RevocationResult,
    RevocationStatus,
)

__all__ = [
    '__version__',
    # Errors
    'PolarisError',
    'TransportError',
    'GrantValidationError',
    'InvalidPrivilegeForEntity',
    'MissingEntityName',
    'PartialCascadeFailure',
    'StaleResponse',
    # Configuration
    'ConsoleSettings',
    'load_settings',
    # Models
    'GrantType',
    'TreeNodeType',
    'Privilege',
    'ALLOWED_PRIVILEGES',
    'is_privilege_allowed',
    'Namespace',
    'encode_namespace',
    'decode_namespace',
    'format_namespace',
    'Grant',
    'CatalogGrant',
    'NamespaceGrant',
    'TableGrant',
    'ViewGrant',
    'PolicyGrant',
    'build_grant',
    'parse_grant',
    'to_wire',
    'grant_key',
    'format_path',
    'entity_name',
    'entity_path',
    'Catalog',
    'TableIdentifier',
    'Principal',
    'PrincipalRole',
    'CatalogRole',
    'CatalogRoleRef',
    # Backend
    'CatalogBackend',
    'PolarisRestClient',
    # Tree
    'TreeNode',
    'ExpansionState',
    'NodeState',
    'NodeStatus',
    'NamespaceTreeResolver',
    'VisibleNode',
    # Access
    'QueryStatus',
    'QueryResult',
    'EffectiveGrant',
    'GrantPath',
    'QueryCache',
    'cascade_targets',
    'AccessStatistics',
    'AccessUniverse',
    'SampledCount',
    'reduce_statistics',
    'AccessGraphAggregator',
    'AccessMap',
    'AccessMapRow',
    # Executors
    'ExecutionResult',
    'OperationType',
    'GrantExecutor',
    'RevocationResult',
    'RevocationStatus',
]
