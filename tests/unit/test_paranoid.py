"""Tests for the paranoid cascade query interface decorator."""

import pytest
from conftest import RecordingQueryInterface
from sqlalchemy import Integer

from softcascade.core.types import CascadePolicy, ColumnReference, ColumnSpec
from softcascade.migration.paranoid import (
    ParanoidQueryInterface,
    paranoid_query_interface,
    resolve_cascade_parent,
)

PARANOID = CascadePolicy.PARANOID_CASCADE


class TestResolveCascadeParent:
    """Parent table and key resolution."""

    def test_no_annotation(self):
        assert resolve_cascade_parent({"type": Integer, "references": "customers"}) is None

    def test_native_cascade_ignored(self):
        spec = {"references": "customers", "onDelete": CascadePolicy.CASCADE}
        assert resolve_cascade_parent(spec) is None

    def test_annotation_without_reference(self):
        assert resolve_cascade_parent({"onDelete": PARANOID}) is None

    def test_string_reference_defaults_to_id(self):
        spec = {"references": "customers", "onDelete": PARANOID}
        assert resolve_cascade_parent(spec) == ("customers", "id")

    def test_resolver_used_when_no_explicit_key(self):
        spec = {"references": {"model": "customers"}, "onDelete": PARANOID}
        assert resolve_cascade_parent(spec, lambda table: f"{table}_pk") == (
            "customers",
            "customers_pk",
        )

    def test_explicit_key_beats_resolver(self):
        spec = ColumnSpec(
            references=ColumnReference(model="customers", key="uuid"), on_delete=PARANOID
        )
        assert resolve_cascade_parent(spec, lambda table: "ignored") == ("customers", "uuid")

    def test_snake_case_annotation(self):
        spec = {"references": "customers", "on_delete": PARANOID}
        assert resolve_cascade_parent(spec) == ("customers", "id")

    def test_bare_type_is_not_annotated(self):
        assert resolve_cascade_parent(Integer) is None

    def test_resolver_returning_none_falls_back_to_id(self):
        spec = {"references": "customers", "onDelete": "PARANOID CASCADE"}
        assert resolve_cascade_parent(spec, lambda table: None) == ("customers", "id")


class TestAddColumn:
    """Column-add interception."""

    @pytest.mark.asyncio
    async def test_annotated_column_creates_one_trigger(self, query_interface):
        qi = paranoid_query_interface(query_interface)

        await qi.add_column(
            "orders", "customer_id", {"type": Integer, "references": "customers", "onDelete": PARANOID}
        )

        assert query_interface.calls[0][:3] == ("add_column", "orders", "customer_id")
        assert len(query_interface.executed) == 1
        statement = query_interface.executed[0]
        assert "CREATE TRIGGER `on_customers_delete_update_orders`" in statement
        assert "WHERE `orders`.`customer_id` = NEW.`id`;" in statement

    @pytest.mark.asyncio
    async def test_resolver_supplies_parent_key(self, query_interface):
        qi = paranoid_query_interface(query_interface, get_primary_key=lambda table: "code")

        await qi.add_column("orders", "customer_code", {"references": "customers", "onDelete": PARANOID})

        assert len(query_interface.executed) == 1
        assert "= NEW.`code`;" in query_interface.executed[0]

    @pytest.mark.asyncio
    async def test_plain_column_creates_nothing(self, query_interface):
        qi = paranoid_query_interface(query_interface)

        await qi.add_column("orders", "note", {"type": Integer})

        assert len(query_interface.calls) == 1
        assert query_interface.executed == []

    @pytest.mark.asyncio
    async def test_trigger_runs_after_column_exists(self, query_interface):
        events: list[str] = []
        original_add = query_interface.add_column
        original_execute = query_interface.execute

        async def add_column(*args):
            await original_add(*args)
            events.append("add_column")

        async def execute(sql):
            events.append("execute")
            return await original_execute(sql)

        query_interface.add_column = add_column
        query_interface.execute = execute
        qi = paranoid_query_interface(query_interface)

        await qi.add_column("orders", "customer_id", {"references": "customers", "onDelete": PARANOID})

        assert events == ["add_column", "execute"]

    @pytest.mark.asyncio
    async def test_failed_add_column_propagates_without_trigger(self):
        inner = RecordingQueryInterface(fail_operations={"add_column"})
        qi = paranoid_query_interface(inner)

        with pytest.raises(RuntimeError, match="add_column failed"):
            await qi.add_column(
                "orders", "customer_id", {"references": "customers", "onDelete": PARANOID}
            )

        assert inner.executed == []

    @pytest.mark.parametrize("on_delete", ["cascade", "PARANOID CASCAD", 3])
    @pytest.mark.asyncio
    async def test_unannotated_spec_reaches_inner_unparsed(self, query_interface, on_delete):
        qi = paranoid_query_interface(query_interface)
        spec = {"type": Integer, "references": "customers", "onDelete": on_delete}

        await qi.add_column("orders", "customer_id", spec)

        assert query_interface.calls == [("add_column", "orders", "customer_id", spec)]
        assert query_interface.executed == []

    @pytest.mark.asyncio
    async def test_sqlite_dialect_followed(self):
        inner = RecordingQueryInterface(dialect="sqlite")
        qi = paranoid_query_interface(inner)

        await qi.add_column("orders", "customer_id", {"references": "customers", "onDelete": PARANOID})

        assert 'WHEN OLD."deletedAt" IS NULL' in inner.executed[0]

    @pytest.mark.asyncio
    async def test_custom_deleted_at_column(self, query_interface):
        qi = paranoid_query_interface(query_interface, deleted_at_column="deleted_at")

        await qi.add_column("orders", "customer_id", {"references": "customers", "onDelete": PARANOID})

        assert "OLD.`deleted_at` IS NULL" in query_interface.executed[0]


class TestCreateTable:
    """Table-create interception."""

    @pytest.mark.asyncio
    async def test_one_trigger_per_annotated_column(self, query_interface):
        qi = paranoid_query_interface(query_interface)
        columns = {
            "id": {"type": Integer, "primaryKey": True},
            "customer_id": {"type": Integer, "references": "customers", "onDelete": PARANOID},
            "warehouse_id": {
                "type": Integer,
                "references": {"model": "warehouses", "key": "code"},
                "onDelete": PARANOID,
            },
            "note_id": {"type": Integer, "references": "notes"},
        }

        await qi.create_table("orders", columns)

        assert query_interface.calls == [("create_table", "orders", columns)]
        statements = query_interface.create_statements
        assert len(statements) == 2
        assert any(
            "`on_customers_delete_update_orders`" in s and "`customer_id` = NEW.`id`" in s
            for s in statements
        )
        assert any(
            "`on_warehouses_delete_update_orders`" in s and "`warehouse_id` = NEW.`code`" in s
            for s in statements
        )

    @pytest.mark.asyncio
    async def test_triggers_run_concurrently(self, query_interface):
        qi = paranoid_query_interface(query_interface)

        await qi.create_table(
            "orders",
            {
                "customer_id": {"references": "customers", "onDelete": PARANOID},
                "warehouse_id": {"references": "warehouses", "onDelete": PARANOID},
            },
        )

        assert query_interface.max_active == 2
        assert query_interface.active == 0
        assert query_interface.triggers == {
            "on_customers_delete_update_orders",
            "on_warehouses_delete_update_orders",
        }

    @pytest.mark.asyncio
    async def test_unrecognized_policy_left_to_inner(self, query_interface):
        qi = paranoid_query_interface(query_interface)
        columns = {
            "customer_id": {"references": "customers", "onDelete": PARANOID},
            "warehouse_id": {"references": "warehouses", "on_delete": "set null"},
        }

        await qi.create_table("orders", columns)

        assert query_interface.calls == [("create_table", "orders", columns)]
        assert query_interface.triggers == {"on_customers_delete_update_orders"}

    @pytest.mark.asyncio
    async def test_no_annotations_no_triggers(self, query_interface):
        qi = paranoid_query_interface(query_interface)

        await qi.create_table("notes", {"id": {"type": Integer, "primaryKey": True}})

        assert query_interface.executed == []

    @pytest.mark.asyncio
    async def test_failed_create_table_propagates_without_trigger(self):
        inner = RecordingQueryInterface(fail_operations={"create_table"})
        qi = paranoid_query_interface(inner)

        with pytest.raises(RuntimeError, match="create_table failed"):
            await qi.create_table(
                "orders", {"customer_id": {"references": "customers", "onDelete": PARANOID}}
            )

        assert inner.executed == []

    @pytest.mark.asyncio
    async def test_trigger_failure_propagates(self):
        inner = RecordingQueryInterface(fail_triggers={"on_customers_delete_update_orders"})
        qi = paranoid_query_interface(inner)

        with pytest.raises(RuntimeError, match="cannot be created"):
            await qi.create_table(
                "orders", {"customer_id": {"references": "customers", "onDelete": PARANOID}}
            )


class TestPassThrough:
    """Everything else reaches the wrapped interface untouched."""

    @pytest.mark.asyncio
    async def test_other_operations_forwarded(self, query_interface):
        qi = paranoid_query_interface(query_interface)

        await qi.remove_column("orders", "note")
        await qi.rename_column("orders", "note", "comment")
        await qi.drop_table("notes")
        await qi.add_index("orders", ["customer_id"], name="ix_orders_customer", unique=True)
        await qi.remove_index("orders", "ix_orders_customer")
        rows = await qi.execute("SELECT 1 FROM dual WHERE 1 = '1'")

        assert query_interface.calls == [
            ("remove_column", "orders", "note"),
            ("rename_column", "orders", "note", "comment"),
            ("drop_table", "notes"),
            ("add_index", "orders", ["customer_id"], "ix_orders_customer", True),
            ("remove_index", "orders", "ix_orders_customer"),
        ]
        assert rows == []

    def test_engine_and_dialect_exposed(self, query_interface):
        qi = paranoid_query_interface(query_interface)

        assert isinstance(qi, ParanoidQueryInterface)
        assert qi.engine == "raw-engine"
        assert qi.dialect == "mysql"
