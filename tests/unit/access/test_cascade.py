"""
Unit tests for the cascade revoke policy.
"""

from polariskit.access.cascade import cascade_targets, is_cascade_descendant
from polariskit.models import Privilege, grant_key
from tests.fixtures import (
    make_catalog_grant,
    make_namespace_grant,
    make_policy_grant,
    make_table_grant,
    make_view_grant,
)


class TestIsCascadeDescendant:
    """Tests for is_cascade_descendant."""

    def test_namespace_covers_entities_inside(self) -> None:
        target = make_namespace_grant(("a",))
        assert is_cascade_descendant(target, make_table_grant(("a",), "t1"))
        assert is_cascade_descendant(target, make_table_grant(("a", "deep"), "t2"))
        assert is_cascade_descendant(target, make_view_grant(("a",)))
        assert is_cascade_descendant(target, make_policy_grant(("a",)))

    def test_namespace_covers_only_strictly_deeper_namespaces(self) -> None:
        target = make_namespace_grant(("a",), Privilege.NAMESPACE_LIST)
        assert is_cascade_descendant(target, make_namespace_grant(("a", "b")))
        assert not is_cascade_descendant(
            target, make_namespace_grant(("a",), Privilege.NAMESPACE_READ_PROPERTIES)
        )

    def test_namespace_ignores_siblings_and_lookalikes(self) -> None:
        target = make_namespace_grant(("a",))
        assert not is_cascade_descendant(target, make_table_grant(("b",), "t"))
        assert not is_cascade_descendant(target, make_table_grant(("ab",), "t"))
        assert not is_cascade_descendant(target, make_table_grant(("a.b",), "t"))
        assert not is_cascade_descendant(target, make_catalog_grant())

    def test_catalog_covers_everything_but_catalog_grants(self) -> None:
        target = make_catalog_grant()
        assert is_cascade_descendant(target, make_namespace_grant(("x",)))
        assert is_cascade_descendant(target, make_table_grant())
        assert not is_cascade_descendant(target, make_catalog_grant(Privilege.CATALOG_READ_PROPERTIES))

    def test_leaf_grants_have_no_descendants(self) -> None:
        target = make_table_grant(("a",), "t1")
        assert not is_cascade_descendant(target, make_table_grant(("a",), "t1", Privilege.TABLE_WRITE_DATA))


class TestCascadeTargets:
    """Tests for cascade_targets."""

    def test_namespace_cascade(self) -> None:
        """Revoking on namespace a takes a's table and leaves b's."""
        target = make_namespace_grant(("a",))
        under_a = make_table_grant(("a",), "t1")
        under_b = make_table_grant(("b",), "t2")

        assert cascade_targets(target, [target, under_a, under_b]) == [under_a]

    def test_target_excluded_and_duplicates_dropped(self) -> None:
        target = make_namespace_grant(("a",))
        child = make_table_grant(("a",), "t1")

        found = cascade_targets(target, [child, target, make_table_grant(("a",), "t1")])

        assert [grant_key(g) for g in found] == [grant_key(child)]
