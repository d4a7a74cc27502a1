"""
Unit tests for GrantExecutor.

Tests grant and revoke operations including cascading revokes, partial
cascade failures, dry-run mode and the role-assignment edges.
"""

import pytest

from polariskit.access import AccessGraphAggregator, AccessMap
from polariskit.access.access_map import principal_role_key
from polariskit.errors import GrantValidationError, PartialCascadeFailure, TransportError
from polariskit.executors import GrantExecutor, OperationType, RevocationStatus
from polariskit.models import Privilege, grant_key
from polariskit.tree import NodeStatus
from tests.fixtures import (
    FakeBackend,
    make_catalog_grant,
    make_namespace_grant,
    make_table_grant,
)


@pytest.fixture
def cascade_backend() -> FakeBackend:
    """Role c/r with a namespace grant on a and tables under a and b."""
    backend = FakeBackend()
    backend.grants[("c", "r")] = [
        make_namespace_grant(("a",)),
        make_table_grant(("a",), "t1"),
        make_table_grant(("a", "deep"), "t3"),
        make_table_grant(("b",), "t2"),
    ]
    return backend


class TestGrant:
    """Tests for adding grants."""

    @pytest.mark.asyncio
    async def test_grant(self, executor: GrantExecutor, access_backend: FakeBackend) -> None:
        grant = make_table_grant(("sales",), "refunds")

        result = await executor.grant("finance", "unused", grant)

        assert result.success
        assert result.operation == OperationType.GRANT
        assert grant_key(grant) in access_backend.held("finance", "unused")

    @pytest.mark.asyncio
    async def test_grant_from_dict(self, executor: GrantExecutor, access_backend: FakeBackend) -> None:
        result = await executor.grant("finance", "unused", {
            "type": "namespace",
            "namespace": ["sales"],
            "privilege": "NAMESPACE_LIST",
        })

        assert result.success
        assert access_backend.held("finance", "unused") == {("namespace", ("sales",), "NAMESPACE_LIST")}

    @pytest.mark.asyncio
    async def test_invalid_dict_rejected_before_any_call(
        self, executor: GrantExecutor, access_backend: FakeBackend
    ) -> None:
        with pytest.raises(GrantValidationError):
            await executor.grant("finance", "unused", {
                "type": "namespace",
                "namespace": ["sales"],
                "privilege": "CATALOG_READ_PROPERTIES",
            })

        assert access_backend.calls == []

    @pytest.mark.asyncio
    async def test_grant_invalidates_cached_grants(
        self, executor: GrantExecutor, aggregator: AccessGraphAggregator
    ) -> None:
        before = await aggregator.grants_of("finance", "unused")

        await executor.grant("finance", "unused", make_catalog_grant())
        after = await aggregator.grants_of("finance", "unused")

        assert before.data == frozenset()
        assert len(after.data) == 1

    @pytest.mark.asyncio
    async def test_failure_raises_by_default(
        self, executor: GrantExecutor, access_backend: FakeBackend
    ) -> None:
        grant = make_catalog_grant()
        access_backend.fail("add_grant", "finance", "unused", grant, status_code=403)

        with pytest.raises(TransportError):
            await executor.grant("finance", "unused", grant)

        assert executor.get_summary() == {"total": 1, "succeeded": 0, "failed": 1}

    @pytest.mark.asyncio
    async def test_continue_on_error(self, access_backend: FakeBackend) -> None:
        executor = GrantExecutor(access_backend, continue_on_error=True)
        grant = make_catalog_grant()
        access_backend.fail("add_grant", "finance", "unused", grant, status_code=403)

        result = await executor.grant("finance", "unused", grant)

        assert not result.success
        assert "Permission denied" in result.message
        assert "❌" in str(result)

    @pytest.mark.asyncio
    async def test_dry_run_sends_nothing(self, access_backend: FakeBackend) -> None:
        executor = GrantExecutor(access_backend, dry_run=True)

        result = await executor.grant("finance", "unused", make_catalog_grant())

        assert result.success
        assert "dry run" in result.message
        assert access_backend.calls == []


class TestRevoke:
    """Tests for revoking single grants."""

    @pytest.mark.asyncio
    async def test_revoke_without_cascade(self, cascade_backend: FakeBackend) -> None:
        executor = GrantExecutor(cascade_backend)

        result = await executor.revoke("c", "r", make_namespace_grant(("a",)))

        assert result.status == RevocationStatus.SUCCESS
        assert len(result.outcomes) == 1
        assert cascade_backend.count("list_grants") == 0
        assert grant_key(make_table_grant(("a",), "t1")) in cascade_backend.held("c", "r")

    @pytest.mark.asyncio
    async def test_revoke_failure_never_raises(self, cascade_backend: FakeBackend) -> None:
        executor = GrantExecutor(cascade_backend)
        root = make_namespace_grant(("a",))
        cascade_backend.fail("revoke_grant", "c", "r", root, False, status_code=403)

        result = await executor.revoke("c", "r", root)

        assert result.status == RevocationStatus.FAILED
        with pytest.raises(TransportError):
            result.raise_for_status()


class TestCascadingRevoke:
    """Tests for revoking grants with cascade."""

    @pytest.mark.asyncio
    async def test_removes_descendants_only(self, cascade_backend: FakeBackend) -> None:
        """Revoking namespace a removes grants under a and keeps those under b."""
        executor = GrantExecutor(cascade_backend)

        result = await executor.revoke("c", "r", make_namespace_grant(("a",)), cascade=True)

        assert result.status == RevocationStatus.SUCCESS
        assert cascade_backend.held("c", "r") == {grant_key(make_table_grant(("b",), "t2"))}
        assert [grant_key(g) for g in result.removed] == [
            grant_key(make_namespace_grant(("a",))),
            grant_key(make_table_grant(("a",), "t1")),
            grant_key(make_table_grant(("a", "deep"), "t3")),
        ]
        result.raise_for_status()

    @pytest.mark.asyncio
    async def test_root_sent_with_cascade_flag(self, cascade_backend: FakeBackend) -> None:
        executor = GrantExecutor(cascade_backend)
        root = make_namespace_grant(("a",))

        await executor.revoke("c", "r", root, cascade=True)

        revokes = [c for c in cascade_backend.calls if c[0] == "revoke_grant"]
        assert revokes[0] == ("revoke_grant", "c", "r", root, True)
        assert all(c[4] is False for c in revokes[1:])

    @pytest.mark.asyncio
    async def test_descendant_already_removed_by_server(self, cascade_backend: FakeBackend) -> None:
        cascade_backend.server_cascades = True
        executor = GrantExecutor(cascade_backend)

        result = await executor.revoke("c", "r", make_namespace_grant(("a",)), cascade=True)

        assert result.status == RevocationStatus.SUCCESS
        assert [o.operation for o in result.outcomes[1:]] == [OperationType.NO_OP, OperationType.NO_OP]
        assert all(o.message == "Already removed by cascade" for o in result.outcomes[1:])
        assert cascade_backend.held("c", "r") == {grant_key(make_table_grant(("b",), "t2"))}

    @pytest.mark.asyncio
    async def test_partial_failure(self, cascade_backend: FakeBackend) -> None:
        stuck = make_table_grant(("a",), "t1")
        cascade_backend.fail("revoke_grant", "c", "r", stuck, False, status_code=500)
        executor = GrantExecutor(cascade_backend)

        result = await executor.revoke("c", "r", make_namespace_grant(("a",)), cascade=True)

        assert result.status == RevocationStatus.PARTIAL
        assert [o.grant for o in result.failed] == [stuck]
        assert grant_key(stuck) in cascade_backend.held("c", "r")
        assert grant_key(make_table_grant(("a", "deep"), "t3")) not in cascade_backend.held("c", "r")
        with pytest.raises(PartialCascadeFailure) as exc_info:
            result.raise_for_status()
        assert exc_info.value.result is result

    @pytest.mark.asyncio
    async def test_root_failure_skips_descendants(self, cascade_backend: FakeBackend) -> None:
        root = make_namespace_grant(("a",))
        cascade_backend.fail("revoke_grant", "c", "r", root, True, status_code=403)
        executor = GrantExecutor(cascade_backend)

        result = await executor.revoke("c", "r", root, cascade=True)

        assert result.status == RevocationStatus.FAILED
        assert [o.operation for o in result.outcomes[1:]] == [OperationType.SKIPPED, OperationType.SKIPPED]
        assert cascade_backend.count("revoke_grant") == 1
        assert len(cascade_backend.held("c", "r")) == 4

    @pytest.mark.asyncio
    async def test_listing_failure_mutates_nothing(self, cascade_backend: FakeBackend) -> None:
        cascade_backend.fail("list_grants", "c", "r")
        executor = GrantExecutor(cascade_backend)

        result = await executor.revoke("c", "r", make_namespace_grant(("a",)), cascade=True)

        assert result.status == RevocationStatus.FAILED
        assert cascade_backend.count("revoke_grant") == 0

    @pytest.mark.asyncio
    async def test_catalog_cascade(self, cascade_backend: FakeBackend) -> None:
        cascade_backend.grants[("c", "r")].append(make_catalog_grant())
        executor = GrantExecutor(cascade_backend)

        result = await executor.revoke("c", "r", make_catalog_grant(), cascade=True)

        assert result.status == RevocationStatus.SUCCESS
        assert cascade_backend.held("c", "r") == set()

    @pytest.mark.asyncio
    async def test_dry_run_only_reads(self, cascade_backend: FakeBackend) -> None:
        executor = GrantExecutor(cascade_backend, dry_run=True)

        result = await executor.revoke("c", "r", make_namespace_grant(("a",)), cascade=True)

        assert result.status == RevocationStatus.SUCCESS
        assert len(result.outcomes) == 3
        assert [c[0] for c in cascade_backend.calls] == ["list_grants"]
        assert len(cascade_backend.held("c", "r")) == 4

    @pytest.mark.asyncio
    async def test_invalidates_aggregator(self, cascade_backend: FakeBackend) -> None:
        aggregator = AccessGraphAggregator(cascade_backend)
        executor = GrantExecutor(cascade_backend, aggregator)
        await aggregator.grants_of("c", "r")

        await executor.revoke("c", "r", make_namespace_grant(("a",)), cascade=True)
        after = await aggregator.grants_of("c", "r")

        assert {grant_key(g) for g in after.data} == {grant_key(make_table_grant(("b",), "t2"))}

    @pytest.mark.asyncio
    async def test_failed_root_still_invalidates(self, cascade_backend: FakeBackend) -> None:
        aggregator = AccessGraphAggregator(cascade_backend)
        executor = GrantExecutor(cascade_backend, aggregator)
        root = make_namespace_grant(("a",))
        await aggregator.grants_of("c", "r")
        cascade_backend.fail("revoke_grant", "c", "r", root, False, status_code=500)

        await executor.revoke("c", "r", root)

        assert ("grants", "c", "r") not in aggregator.cache


class TestRoleAssignments:
    """Tests for the role-assignment edges."""

    @pytest.mark.asyncio
    async def test_assign_principal_role(
        self,
        executor: GrantExecutor,
        aggregator: AccessGraphAggregator,
        access_backend: FakeBackend,
    ) -> None:
        assert (await aggregator.roles_of("bob")).data == frozenset()

        result = await executor.assign_principal_role("bob", "analysts")

        assert result.operation == OperationType.ASSIGN
        assert (await aggregator.roles_of("bob")).data == frozenset({"analysts"})

    @pytest.mark.asyncio
    async def test_revoke_principal_role(
        self, executor: GrantExecutor, access_backend: FakeBackend
    ) -> None:
        result = await executor.revoke_principal_role("carol", "admins")

        assert result.operation == OperationType.UNASSIGN
        assert access_backend.principal_assignments["carol"] == {"analysts"}

    @pytest.mark.asyncio
    async def test_assign_catalog_role_updates_reachability(
        self, executor: GrantExecutor, aggregator: AccessGraphAggregator
    ) -> None:
        before = await aggregator.grants_for_principal("bob")
        await executor.assign_principal_role("bob", "admins")
        await executor.assign_catalog_role("admins", "marketing", "readers")

        after = await aggregator.grants_for_principal("bob")

        assert before.data == []
        assert {e.catalog for e in after.data} == {"analytics", "marketing"}

    @pytest.mark.asyncio
    async def test_revoke_catalog_role(
        self, executor: GrantExecutor, aggregator: AccessGraphAggregator
    ) -> None:
        await aggregator.catalog_roles_reachable_from("analysts")

        await executor.revoke_catalog_role("analysts", "finance", "readers")
        result = await aggregator.catalog_roles_reachable_from("analysts")

        assert {ref.catalog for ref in result.data} == {"analytics", "marketing"}

    @pytest.mark.asyncio
    async def test_revoke_resets_attached_access_map(
        self, access_backend: FakeBackend, aggregator: AccessGraphAggregator
    ) -> None:
        """An access map handed to the executor reloads rows after a mutation."""
        access_map = AccessMap(aggregator)
        executor = GrantExecutor(access_backend, aggregator, access_map=access_map)
        key = principal_role_key("alice", "analysts")
        await access_map.expand_principal("alice")
        before = await access_map.expand_principal_role("alice", "analysts")
        assert "finance" in {ref.catalog for ref in before.children}

        await executor.revoke_catalog_role("analysts", "finance", "readers")

        assert access_map.state.get(key).status == NodeStatus.IDLE
        after = await access_map.expand_principal_role("alice", "analysts")
        assert {ref.catalog for ref in after.children} == {"analytics", "marketing"}

    @pytest.mark.asyncio
    async def test_edge_dry_run(self, access_backend: FakeBackend) -> None:
        executor = GrantExecutor(access_backend, dry_run=True)

        result = await executor.assign_catalog_role("analysts", "finance", "unused")

        assert result.success
        assert access_backend.calls == []

    @pytest.mark.asyncio
    async def test_edge_failure(self, executor: GrantExecutor, access_backend: FakeBackend) -> None:
        access_backend.fail("assign_principal_role", "bob", "ghosts", status_code=404)

        with pytest.raises(TransportError) as exc_info:
            await executor.assign_principal_role("bob", "ghosts")

        assert exc_info.value.status_code == 404
