"""
Unit tests for catalog and table models.
"""

from polariskit.models import Catalog, TableIdentifier


class TestCatalog:
    """Tests for Catalog parsing."""

    def test_parses_wire_payload(self) -> None:
        catalog = Catalog.model_validate({
            "name": "analytics",
            "type": "INTERNAL",
            "properties": {"default-base-location": "s3://bucket/analytics"},
            "createTimestamp": 1700000000000,
            "storageConfigInfo": {"storageType": "S3"},
        })
        assert catalog.name == "analytics"
        assert catalog.create_timestamp == 1700000000000
        assert catalog.default_base_location == "s3://bucket/analytics"

    def test_unknown_fields_ignored(self) -> None:
        catalog = Catalog.model_validate({"name": "c", "somethingNew": 1})
        assert catalog.name == "c"


class TestTableIdentifier:
    """Tests for TableIdentifier."""

    def test_full_name(self) -> None:
        table = TableIdentifier(namespace=("sales", "emea"), name="orders")
        assert table.full_name == "sales.emea.orders"

    def test_hashable(self) -> None:
        a = TableIdentifier(namespace=["sales"], name="orders")
        b = TableIdentifier(namespace=("sales",), name="orders")
        assert a == b
        assert len({a, b}) == 1
