"""
REST implementation of CatalogBackend over httpx.

Talks to the management API (``/api/management/v1``) and the Iceberg REST
catalog API (``/api/catalog/v1``) of a Polaris-style service. Every failure,
whether an HTTP error status, a timeout or a connection problem, surfaces as
TransportError. Retries are left to the caller.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from polariskit.config import CATALOG_API_PREFIX, MANAGEMENT_API_PREFIX, ConsoleSettings
from polariskit.errors import TransportError
from polariskit.models.catalogs import Catalog, TableIdentifier
from polariskit.models.grants import Grant, describe_grant, to_wire
from polariskit.models.namespaces import Namespace, encode_namespace
from polariskit.models.principals import CatalogRole, Principal, PrincipalRole

from .base import CatalogBackend
from .normalize import (
    extract_error_message,
    next_page_token,
    normalize_catalog_roles,
    normalize_catalogs,
    normalize_grants,
    normalize_namespaces,
    normalize_principal_roles,
    normalize_principals,
    normalize_tables,
)

logger = logging.getLogger(__name__)


def _seg(value: str) -> str:
    """Percent-encode a single path segment (slashes included)."""
    return quote(value, safe="")


class PolarisRestClient(CatalogBackend):
    """
    Async client for the catalog service.

    Example:
        settings = ConsoleSettings(base_url="https://polaris.example.com",
                                   realm="default-realm", access_token=token)
        async with PolarisRestClient(settings) as client:
            catalogs = await client.list_catalogs()
    """

    def __init__(
        self,
        settings: ConsoleSettings,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the client.

        Args:
            settings: Connection settings
            client: Pre-built httpx client rooted at the service URL
                (the caller keeps ownership)
        """
        self.settings = settings
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=settings.base_url,
            timeout=httpx.Timeout(settings.timeout_seconds),
            verify=settings.verify_ssl,
            headers=self._default_headers(),
        )

    def _default_headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.settings.access_token:
            headers["Authorization"] = f"Bearer {self.settings.access_token}"
        if self.settings.realm:
            headers[self.settings.realm_header] = self.settings.realm
        return headers

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "PolarisRestClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # =========================================================================
    # TRANSPORT
    # =========================================================================

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Any] = None,
    ) -> Any:
        """
        Send one request and decode the JSON body.

        Raises:
            TransportError: On network failure, timeout or an error status
        """
        headers = None if self._owns_client else self._default_headers()
        logger.debug(f"{method} {path} params={params}")
        try:
            response = await self._client.request(
                method, path, params=params, json=json_body, headers=headers
            )
        except httpx.HTTPError as e:
            raise TransportError(
                str(e) or type(e).__name__, method=method, url=path
            ) from e

        if response.is_error:
            try:
                body = response.json()
            except ValueError:
                body = None
            message = extract_error_message(body, response.reason_phrase or "Request failed")
            raise TransportError(
                message, status_code=response.status_code, method=method, url=path
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(
                f"Invalid JSON in response: {e}",
                status_code=response.status_code,
                method=method,
                url=path,
            ) from e

    async def _get_paged(
        self, path: str, params: Optional[Dict[str, Any]], collect
    ) -> List[Any]:
        """Follow page tokens until exhausted, normalizing each page with ``collect``."""
        items: List[Any] = []
        query = dict(params or {})
        while True:
            payload = await self._request("GET", path, params=query or None)
            items.extend(collect(payload))
            token = next_page_token(payload)
            if not token:
                return items
            query["pageToken"] = token

    def _mgmt(self, path: str) -> str:
        return f"{MANAGEMENT_API_PREFIX}{path}"

    def _catalog(self, path: str) -> str:
        return f"{CATALOG_API_PREFIX}{path}"

    def _grants_path(self, catalog: str, catalog_role: str) -> str:
        return self._mgmt(f"/catalogs/{_seg(catalog)}/catalog-roles/{_seg(catalog_role)}/grants")

    # =========================================================================
    # BROWSING
    # =========================================================================

    async def list_catalogs(self) -> List[Catalog]:
        return normalize_catalogs(await self._request("GET", self._mgmt("/catalogs")))

    async def list_namespaces(
        self, catalog: str, parent: Optional[Namespace] = None
    ) -> List[Namespace]:
        params = {"parent": encode_namespace(parent)} if parent else None
        return await self._get_paged(
            self._catalog(f"/{_seg(catalog)}/namespaces"), params, normalize_namespaces
        )

    async def list_tables(self, catalog: str, namespace: Namespace) -> List[TableIdentifier]:
        path = self._catalog(
            f"/{_seg(catalog)}/namespaces/{_seg(encode_namespace(namespace))}/tables"
        )
        return await self._get_paged(path, None, normalize_tables)

    # =========================================================================
    # PRINCIPALS AND ROLES
    # =========================================================================

    async def list_principals(self) -> List[Principal]:
        return normalize_principals(await self._request("GET", self._mgmt("/principals")))

    async def list_principal_roles(self) -> List[PrincipalRole]:
        payload = await self._request("GET", self._mgmt("/principal-roles"))
        return normalize_principal_roles(payload)

    async def list_principal_roles_of(self, principal: str) -> List[PrincipalRole]:
        payload = await self._request(
            "GET", self._mgmt(f"/principals/{_seg(principal)}/principal-roles")
        )
        return normalize_principal_roles(payload)

    async def list_catalog_roles(self, catalog: str) -> List[CatalogRole]:
        payload = await self._request(
            "GET", self._mgmt(f"/catalogs/{_seg(catalog)}/catalog-roles")
        )
        return normalize_catalog_roles(payload, catalog)

    async def list_assigned_principal_roles(
        self, catalog: str, catalog_role: str
    ) -> List[PrincipalRole]:
        path = self._mgmt(
            f"/catalogs/{_seg(catalog)}/catalog-roles/{_seg(catalog_role)}/principal-roles"
        )
        return normalize_principal_roles(await self._request("GET", path))

    async def list_grants(self, catalog: str, catalog_role: str) -> List[Grant]:
        payload = await self._request("GET", self._grants_path(catalog, catalog_role))
        return normalize_grants(payload)

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    async def add_grant(self, catalog: str, catalog_role: str, grant: Grant) -> None:
        logger.info(f"Granting {describe_grant(grant)} to {catalog}/{catalog_role}")
        await self._request(
            "PUT", self._grants_path(catalog, catalog_role), json_body={"grant": to_wire(grant)}
        )

    async def revoke_grant(
        self, catalog: str, catalog_role: str, grant: Grant, cascade: bool = False
    ) -> None:
        logger.info(
            f"Revoking {describe_grant(grant)} from {catalog}/{catalog_role} (cascade={cascade})"
        )
        await self._request(
            "POST",
            self._grants_path(catalog, catalog_role),
            params={"cascade": "true" if cascade else "false"},
            json_body={"grant": to_wire(grant)},
        )

    async def assign_principal_role(self, principal: str, principal_role: str) -> None:
        logger.info(f"Assigning principal role {principal_role} to {principal}")
        await self._request(
            "PUT",
            self._mgmt(f"/principals/{_seg(principal)}/principal-roles"),
            json_body={"principalRole": {"name": principal_role}},
        )

    async def revoke_principal_role(self, principal: str, principal_role: str) -> None:
        logger.info(f"Removing principal role {principal_role} from {principal}")
        await self._request(
            "DELETE",
            self._mgmt(f"/principals/{_seg(principal)}/principal-roles/{_seg(principal_role)}"),
        )

    async def assign_catalog_role(
        self, principal_role: str, catalog: str, catalog_role: str
    ) -> None:
        logger.info(f"Assigning catalog role {catalog}/{catalog_role} to {principal_role}")
        await self._request(
            "PUT",
            self._mgmt(f"/principal-roles/{_seg(principal_role)}/catalog-roles/{_seg(catalog)}"),
            json_body={"catalogRole": {"name": catalog_role}},
        )

    async def revoke_catalog_role(
        self, principal_role: str, catalog: str, catalog_role: str
    ) -> None:
        logger.info(f"Removing catalog role {catalog}/{catalog_role} from {principal_role}")
        await self._request(
            "DELETE",
            self._mgmt(
                f"/principal-roles/{_seg(principal_role)}/catalog-roles/"
                f"{_seg(catalog)}/{_seg(catalog_role)}"
            ),
        )
