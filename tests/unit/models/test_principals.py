"""
Unit tests for principal and role models.
"""

from polariskit.models import CatalogRole, CatalogRoleRef, Principal, PrincipalRole


class TestPrincipalModels:
    """Tests for Principal, PrincipalRole and CatalogRole parsing."""

    def test_principal_client_id_alias(self) -> None:
        principal = Principal.model_validate({"name": "etl", "clientId": "abc123"})
        assert principal.client_id == "abc123"

    def test_principal_role_properties_default(self) -> None:
        assert PrincipalRole(name="analysts").properties == {}

    def test_catalog_role_catalog_name_optional(self) -> None:
        assert CatalogRole(name="readers").catalog_name is None


class TestCatalogRoleRef:
    """Tests for the (catalog, catalog role) pair."""

    def test_accepts_name_or_alias(self) -> None:
        a = CatalogRoleRef(catalog="analytics", catalog_role="readers")
        b = CatalogRoleRef.model_validate({"catalog": "analytics", "catalogRole": "readers"})
        assert a == b

    def test_usable_as_dict_key(self) -> None:
        ref = CatalogRoleRef(catalog="analytics", catalog_role="readers")
        assert {ref: 1}[CatalogRoleRef(catalog="analytics", catalog_role="readers")] == 1

    def test_str(self) -> None:
        assert str(CatalogRoleRef(catalog="analytics", catalog_role="readers")) == "analytics/readers"
