"""
Enum definitions for catalog governance models.

This module contains the grant entity types, the privilege vocabulary of the
catalog service, and the per-entity allowed privilege sets.
"""

from enum import Enum
from typing import Dict, FrozenSet


class GrantType(str, Enum):
    """Identifies the kind of entity a grant is attached to."""
    CATALOG = "catalog"
    NAMESPACE = "namespace"
    TABLE = "table"
    VIEW = "view"
    POLICY = "policy"


class TreeNodeType(str, Enum):
    """Kinds of nodes in the catalog explorer tree."""
    CATALOG = "catalog"
    NAMESPACE = "namespace"
    TABLE = "table"


class Privilege(str, Enum):
    """
    Complete privilege vocabulary of the catalog service.

    IMPORTANT:
    - Not every privilege is valid on every entity; see ALLOWED_PRIVILEGES
    - Privileges are ALWAYS ADDITIVE - multiple grants accumulate
    - Grants are never updated in place: revoke, then grant again
    """
    # Catalog administration
    CATALOG_MANAGE_ACCESS = "CATALOG_MANAGE_ACCESS"
    CATALOG_MANAGE_CONTENT = "CATALOG_MANAGE_CONTENT"
    CATALOG_MANAGE_METADATA = "CATALOG_MANAGE_METADATA"
    CATALOG_READ_PROPERTIES = "CATALOG_READ_PROPERTIES"
    CATALOG_WRITE_PROPERTIES = "CATALOG_WRITE_PROPERTIES"
    CATALOG_ATTACH_POLICY = "CATALOG_ATTACH_POLICY"
    CATALOG_DETACH_POLICY = "CATALOG_DETACH_POLICY"

    # Namespace privileges
    NAMESPACE_CREATE = "NAMESPACE_CREATE"
    NAMESPACE_DROP = "NAMESPACE_DROP"
    NAMESPACE_LIST = "NAMESPACE_LIST"
    NAMESPACE_READ_PROPERTIES = "NAMESPACE_READ_PROPERTIES"
    NAMESPACE_WRITE_PROPERTIES = "NAMESPACE_WRITE_PROPERTIES"
    NAMESPACE_FULL_METADATA = "NAMESPACE_FULL_METADATA"
    NAMESPACE_ATTACH_POLICY = "NAMESPACE_ATTACH_POLICY"
    NAMESPACE_DETACH_POLICY = "NAMESPACE_DETACH_POLICY"

    # Table privileges
    TABLE_CREATE = "TABLE_CREATE"
    TABLE_DROP = "TABLE_DROP"
    TABLE_LIST = "TABLE_LIST"
    TABLE_READ_PROPERTIES = "TABLE_READ_PROPERTIES"
    TABLE_WRITE_PROPERTIES = "TABLE_WRITE_PROPERTIES"
    TABLE_READ_DATA = "TABLE_READ_DATA"
    TABLE_WRITE_DATA = "TABLE_WRITE_DATA"
    TABLE_FULL_METADATA = "TABLE_FULL_METADATA"
    TABLE_ATTACH_POLICY = "TABLE_ATTACH_POLICY"
    TABLE_DETACH_POLICY = "TABLE_DETACH_POLICY"

    # Fine-grained table metadata updates
    TABLE_ASSIGN_UUID = "TABLE_ASSIGN_UUID"
    TABLE_UPGRADE_FORMAT_VERSION = "TABLE_UPGRADE_FORMAT_VERSION"
    TABLE_ADD_SCHEMA = "TABLE_ADD_SCHEMA"
    TABLE_SET_CURRENT_SCHEMA = "TABLE_SET_CURRENT_SCHEMA"
    TABLE_ADD_PARTITION_SPEC = "TABLE_ADD_PARTITION_SPEC"
    TABLE_ADD_SORT_ORDER = "TABLE_ADD_SORT_ORDER"
    TABLE_SET_DEFAULT_SORT_ORDER = "TABLE_SET_DEFAULT_SORT_ORDER"
    TABLE_ADD_SNAPSHOT = "TABLE_ADD_SNAPSHOT"
    TABLE_SET_SNAPSHOT_REF = "TABLE_SET_SNAPSHOT_REF"
    TABLE_REMOVE_SNAPSHOTS = "TABLE_REMOVE_SNAPSHOTS"
    TABLE_REMOVE_SNAPSHOT_REF = "TABLE_REMOVE_SNAPSHOT_REF"
    TABLE_SET_LOCATION = "TABLE_SET_LOCATION"
    TABLE_SET_PROPERTIES = "TABLE_SET_PROPERTIES"
    TABLE_REMOVE_PROPERTIES = "TABLE_REMOVE_PROPERTIES"
    TABLE_SET_STATISTICS = "TABLE_SET_STATISTICS"
    TABLE_REMOVE_STATISTICS = "TABLE_REMOVE_STATISTICS"
    TABLE_REMOVE_PARTITION_SPECS = "TABLE_REMOVE_PARTITION_SPECS"
    TABLE_MANAGE_STRUCTURE = "TABLE_MANAGE_STRUCTURE"

    # View privileges
    VIEW_CREATE = "VIEW_CREATE"
    VIEW_DROP = "VIEW_DROP"
    VIEW_LIST = "VIEW_LIST"
    VIEW_READ_PROPERTIES = "VIEW_READ_PROPERTIES"
    VIEW_WRITE_PROPERTIES = "VIEW_WRITE_PROPERTIES"
    VIEW_FULL_METADATA = "VIEW_FULL_METADATA"

    # Policy privileges
    POLICY_CREATE = "POLICY_CREATE"
    POLICY_READ = "POLICY_READ"
    POLICY_WRITE = "POLICY_WRITE"
    POLICY_DROP = "POLICY_DROP"
    POLICY_LIST = "POLICY_LIST"
    POLICY_FULL_METADATA = "POLICY_FULL_METADATA"
    POLICY_ATTACH = "POLICY_ATTACH"
    POLICY_DETACH = "POLICY_DETACH"


# =============================================================================
# ALLOWED PRIVILEGES PER ENTITY
# =============================================================================

# Table metadata-update privileges accepted on catalog, namespace and table
_TABLE_METADATA_PRIVILEGES: FrozenSet[Privilege] = frozenset({
    Privilege.TABLE_ASSIGN_UUID,
    Privilege.TABLE_UPGRADE_FORMAT_VERSION,
    Privilege.TABLE_ADD_SCHEMA,
    Privilege.TABLE_SET_CURRENT_SCHEMA,
    Privilege.TABLE_ADD_PARTITION_SPEC,
    Privilege.TABLE_ADD_SORT_ORDER,
    Privilege.TABLE_SET_DEFAULT_SORT_ORDER,
    Privilege.TABLE_ADD_SNAPSHOT,
    Privilege.TABLE_SET_SNAPSHOT_REF,
    Privilege.TABLE_REMOVE_SNAPSHOTS,
    Privilege.TABLE_REMOVE_SNAPSHOT_REF,
    Privilege.TABLE_SET_LOCATION,
    Privilege.TABLE_SET_PROPERTIES,
    Privilege.TABLE_REMOVE_PROPERTIES,
    Privilege.TABLE_SET_STATISTICS,
    Privilege.TABLE_REMOVE_STATISTICS,
    Privilege.TABLE_REMOVE_PARTITION_SPECS,
    Privilege.TABLE_MANAGE_STRUCTURE,
})

# Privileges valid on a catalog and on any namespace inside it
_CONTAINER_PRIVILEGES: FrozenSet[Privilege] = frozenset({
    Privilege.CATALOG_MANAGE_ACCESS,
    Privilege.CATALOG_MANAGE_CONTENT,
    Privilege.CATALOG_MANAGE_METADATA,
    Privilege.NAMESPACE_CREATE,
    Privilege.TABLE_CREATE,
    Privilege.VIEW_CREATE,
    Privilege.NAMESPACE_DROP,
    Privilege.TABLE_DROP,
    Privilege.VIEW_DROP,
    Privilege.NAMESPACE_LIST,
    Privilege.TABLE_LIST,
    Privilege.VIEW_LIST,
    Privilege.NAMESPACE_READ_PROPERTIES,
    Privilege.TABLE_READ_PROPERTIES,
    Privilege.VIEW_READ_PROPERTIES,
    Privilege.NAMESPACE_WRITE_PROPERTIES,
    Privilege.TABLE_WRITE_PROPERTIES,
    Privilege.VIEW_WRITE_PROPERTIES,
    Privilege.TABLE_READ_DATA,
    Privilege.TABLE_WRITE_DATA,
    Privilege.NAMESPACE_FULL_METADATA,
    Privilege.TABLE_FULL_METADATA,
    Privilege.VIEW_FULL_METADATA,
    Privilege.POLICY_CREATE,
    Privilege.POLICY_WRITE,
    Privilege.POLICY_READ,
    Privilege.POLICY_DROP,
    Privilege.POLICY_LIST,
    Privilege.POLICY_FULL_METADATA,
}) | _TABLE_METADATA_PRIVILEGES

CATALOG_PRIVILEGES: FrozenSet[Privilege] = _CONTAINER_PRIVILEGES | {
    Privilege.CATALOG_READ_PROPERTIES,
    Privilege.CATALOG_WRITE_PROPERTIES,
    Privilege.CATALOG_ATTACH_POLICY,
    Privilege.CATALOG_DETACH_POLICY,
}

NAMESPACE_PRIVILEGES: FrozenSet[Privilege] = _CONTAINER_PRIVILEGES | {
    Privilege.NAMESPACE_ATTACH_POLICY,
    Privilege.NAMESPACE_DETACH_POLICY,
}

TABLE_PRIVILEGES: FrozenSet[Privilege] = _TABLE_METADATA_PRIVILEGES | {
    Privilege.CATALOG_MANAGE_ACCESS,
    Privilege.TABLE_DROP,
    Privilege.TABLE_LIST,
    Privilege.TABLE_READ_PROPERTIES,
    Privilege.TABLE_WRITE_PROPERTIES,
    Privilege.TABLE_READ_DATA,
    Privilege.TABLE_WRITE_DATA,
    Privilege.TABLE_FULL_METADATA,
    Privilege.TABLE_ATTACH_POLICY,
    Privilege.TABLE_DETACH_POLICY,
}

VIEW_PRIVILEGES: FrozenSet[Privilege] = frozenset({
    Privilege.CATALOG_MANAGE_ACCESS,
    Privilege.VIEW_DROP,
    Privilege.VIEW_LIST,
    Privilege.VIEW_READ_PROPERTIES,
    Privilege.VIEW_WRITE_PROPERTIES,
    Privilege.VIEW_FULL_METADATA,
})

POLICY_PRIVILEGES: FrozenSet[Privilege] = frozenset({
    Privilege.CATALOG_MANAGE_ACCESS,
    Privilege.POLICY_READ,
    Privilege.POLICY_DROP,
    Privilege.POLICY_WRITE,
    Privilege.POLICY_LIST,
    Privilege.POLICY_FULL_METADATA,
    Privilege.POLICY_ATTACH,
    Privilege.POLICY_DETACH,
})

ALLOWED_PRIVILEGES: Dict[GrantType, FrozenSet[Privilege]] = {
    GrantType.CATALOG: CATALOG_PRIVILEGES,
    GrantType.NAMESPACE: NAMESPACE_PRIVILEGES,
    GrantType.TABLE: TABLE_PRIVILEGES,
    GrantType.VIEW: VIEW_PRIVILEGES,
    GrantType.POLICY: POLICY_PRIVILEGES,
}


def is_privilege_allowed(grant_type: GrantType, privilege: Privilege) -> bool:
    """
    Check whether a privilege may be granted on an entity kind.

    Args:
        grant_type: The kind of entity
        privilege: The privilege to check

    Returns:
        True if the privilege belongs to the entity's vocabulary
    """
    return privilege in ALLOWED_PRIVILEGES[GrantType(grant_type)]
