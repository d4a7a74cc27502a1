"""
Response-shape normalization for the catalog service.

Different server versions encode the same list responses differently. This
module is the only place that tolerates those ambiguities; everything above
the backend boundary sees one canonical shape.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from polariskit.errors import GrantValidationError
from polariskit.models.catalogs import Catalog, TableIdentifier
from polariskit.models.grants import Grant, parse_grant
from polariskit.models.namespaces import Namespace
from polariskit.models.principals import CatalogRole, Principal, PrincipalRole

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

PAGE_TOKEN_KEYS = ("next-page-token", "nextPageToken")


def _as_list(payload: Any, *keys: str) -> List[Any]:
    """Return the first list found under ``keys``, or the payload itself if it is a list."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in keys:
            value = payload.get(key)
            if isinstance(value, list):
                return value
    return []


def next_page_token(payload: Any) -> Optional[str]:
    """Extract the continuation token of a paged response, if any."""
    if not isinstance(payload, dict):
        return None
    for key in PAGE_TOKEN_KEYS:
        token = payload.get(key)
        if token:
            return token
    return None


# =============================================================================
# ROLES AND PRINCIPALS
# =============================================================================

def extract_roles(payload: Any, alternate_key: str) -> List[Dict[str, Any]]:
    """
    Extract role entries from a role listing.

    Servers answer either ``{"roles": [...]}`` or use a specific key such as
    ``catalogRoles`` / ``principalRoles``. Entries without a name are dropped.
    """
    entries = _as_list(payload, "roles", alternate_key)
    roles = []
    for entry in entries:
        if isinstance(entry, dict) and entry.get("name"):
            roles.append(entry)
        else:
            logger.debug(f"Dropping malformed role entry: {entry!r}")
    return roles


def _validate_each(model: Type[M], entries: Iterable[Any], what: str) -> List[M]:
    """Validate entries one by one, dropping the ones that do not fit ``model``."""
    valid = []
    for entry in entries:
        try:
            valid.append(model.model_validate(entry))
        except ValidationError as e:
            logger.warning(f"Skipping malformed {what} {entry!r}: {e}")
    return valid


def normalize_principal_roles(payload: Any) -> List[PrincipalRole]:
    return _validate_each(PrincipalRole, extract_roles(payload, "principalRoles"), "principal role")


def normalize_catalog_roles(payload: Any, catalog: str) -> List[CatalogRole]:
    return [
        role.model_copy(update={"catalog_name": catalog})
        for role in _validate_each(CatalogRole, extract_roles(payload, "catalogRoles"), "catalog role")
    ]


def normalize_principals(payload: Any) -> List[Principal]:
    entries = [p for p in _as_list(payload, "principals") if isinstance(p, dict) and p.get("name")]
    return _validate_each(Principal, entries, "principal")


def normalize_catalogs(payload: Any) -> List[Catalog]:
    entries = [c for c in _as_list(payload, "catalogs") if isinstance(c, dict) and c.get("name")]
    return _validate_each(Catalog, entries, "catalog")


# =============================================================================
# NAMESPACES AND TABLES
# =============================================================================

def _namespace_entry(entry: Any) -> Optional[Namespace]:
    if isinstance(entry, dict):
        entry = entry.get("namespace")
    if isinstance(entry, list) and entry and all(isinstance(s, str) for s in entry):
        return tuple(entry)
    return None


def normalize_namespaces(payload: Any) -> List[Namespace]:
    """
    Normalize a namespace listing to a list of full paths.

    Entries may be bare arrays (``["a", "b"]``) or objects
    (``{"namespace": ["a", "b"]}``); anything else is dropped.
    """
    namespaces = []
    for entry in _as_list(payload, "namespaces"):
        path = _namespace_entry(entry)
        if path is None:
            logger.debug(f"Dropping malformed namespace entry: {entry!r}")
            continue
        namespaces.append(path)
    return namespaces


def normalize_tables(payload: Any) -> List[TableIdentifier]:
    """Normalize a table listing (``{"identifiers": [{namespace, name}]}``)."""
    tables = []
    for entry in _as_list(payload, "identifiers"):
        namespace = (entry.get("namespace") or []) if isinstance(entry, dict) else None
        # A bare string namespace would otherwise split into characters
        if (
            not isinstance(entry, dict)
            or not isinstance(entry.get("name"), str)
            or not entry["name"]
            or not isinstance(namespace, list)
            or not all(isinstance(s, str) for s in namespace)
        ):
            logger.debug(f"Dropping malformed table identifier: {entry!r}")
            continue
        tables.append(TableIdentifier(namespace=tuple(namespace), name=entry["name"]))
    return tables


# =============================================================================
# GRANTS
# =============================================================================

def normalize_grants(payload: Any) -> List[Grant]:
    """
    Parse a grant listing.

    Grants of an unknown type or with an impossible privilege are dropped and
    logged; they cannot be revoked through this library anyway.
    """
    grants = []
    for entry in _as_list(payload, "grants"):
        try:
            grants.append(parse_grant(entry))
        except (ValidationError, GrantValidationError) as e:
            logger.warning(f"Skipping unparseable grant {entry!r}: {e}")
    return grants


# =============================================================================
# ERRORS
# =============================================================================

def extract_error_message(payload: Any, default: str) -> str:
    """
    Pull a human-readable message out of an error body.

    Understands ``{"error": {"message": ...}}`` and ``{"message": ...}``.
    """
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if payload.get("message"):
            return str(payload["message"])
    return default
