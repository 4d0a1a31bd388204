from datetime import date, datetime

import pytest

from dialectdb.dialects import OracleDialect, SQLiteDialect, SQLServerDialect
from dialectdb.exceptions import QueryError
from dialectdb.expression import raw
from dialectdb.query.builder import QueryBuilder


@pytest.fixture
def qb() -> QueryBuilder:
    return QueryBuilder(dialect=SQLiteDialect())


@pytest.fixture
def tasks(conn):
    def columns(table):
        table.id()
        table.string("status")
        table.integer("priority")
        table.date("due_date").nullable()

    conn.schema().create("tasks", columns)
    conn.table("tasks").insert([
        {"status": "pending", "priority": 0, "due_date": date(2024, 1, 1)},
        {"status": "pending", "priority": 2, "due_date": date(2024, 1, 2)},
        {"status": "pending", "priority": 5, "due_date": None},
        {"status": "done", "priority": 9, "due_date": date(2024, 1, 3)},
    ])
    return conn


class TestRendering:
    def test_where_chain_renders_in_call_order(self, qb):
        # Given
        qb.table("tasks").where("status", "=", "pending").where("priority", ">", 0)

        # Then
        assert qb.to_sql() == "SELECT * FROM tasks WHERE status = ? AND priority > ?"
        assert qb.get_bindings() == ["pending", 0]

    def test_two_argument_where_means_equals(self, qb):
        qb.table("users").where("email", "a@b.com")
        assert qb.to_sql() == "SELECT * FROM users WHERE email = ?"
        assert qb.get_bindings() == ["a@b.com"]

    def test_leading_or_is_stripped(self, qb):
        qb.table("t").or_where("a", 1).where("b", 2).or_where("c", 3)
        assert qb.to_sql() == "SELECT * FROM t WHERE a = ? AND b = ? OR c = ?"
        assert qb.get_bindings() == [1, 2, 3]

    def test_where_in_null_and_like(self, qb):
        qb.table("t").where_in("id", [1, 2, 3]).where_null("deleted_at").where("name", "like", "a%")
        assert qb.to_sql() == "SELECT * FROM t WHERE id IN (?, ?, ?) AND deleted_at IS NULL AND name LIKE ?"
        assert qb.get_bindings() == [1, 2, 3, "a%"]

    def test_empty_where_in_matches_nothing(self, qb):
        qb.table("t").where_in("id", [])
        assert qb.to_sql() == "SELECT * FROM t WHERE 0 = 1"
        assert qb.get_bindings() == []

    def test_comparison_with_none_becomes_is_null(self, qb):
        qb.table("t").where("a", None).where("b", "!=", None)
        assert qb.to_sql() == "SELECT * FROM t WHERE a IS NULL AND b IS NOT NULL"
        assert qb.get_bindings() == []

    def test_full_select(self, qb):
        (
            qb.table("orders")
            .select("users.name", raw("SUM(orders.total) AS total"))
            .join("users", "users.id", "=", "orders.user_id")
            .where("orders.status", "paid")
            .group_by("users.name")
            .having("SUM(orders.total)", ">", 100)
            .order_by("total", "desc")
            .limit(10)
            .offset(20)
        )

        assert qb.to_sql() == (
            "SELECT users.name, SUM(orders.total) AS total FROM orders "
            "INNER JOIN users ON users.id = orders.user_id "
            "WHERE orders.status = ? GROUP BY users.name HAVING SUM(orders.total) > ? "
            "ORDER BY total DESC LIMIT 10 OFFSET 20"
        )
        assert qb.get_bindings() == ["paid", 100]

    def test_update_binds_set_values_before_where(self, qb):
        qb.table("tasks").where("id", 3)
        sql, bindings = qb.compile_update({"status": "done", "priority": 1})

        assert sql == "UPDATE tasks SET status = ?, priority = ? WHERE id = ?"
        assert bindings == ["done", 1, 3]

    def test_delete_and_insert(self, qb):
        qb.table("tasks").where("status", "done")
        assert qb.compile_delete() == ("DELETE FROM tasks WHERE status = ?", ["done"])
        assert qb.compile_insert({"status": "new", "priority": 1}) == (
            "INSERT INTO tasks (status, priority) VALUES (?, ?)",
            ["new", 1],
        )

    def test_dialect_limit_syntax(self):
        sqlsrv = QueryBuilder(dialect=SQLServerDialect()).table("t").limit(5)
        assert sqlsrv.to_sql() == "SELECT * FROM t ORDER BY (SELECT NULL) OFFSET 0 ROWS FETCH NEXT 5 ROWS ONLY"

        oracle = QueryBuilder(dialect=OracleDialect()).table("t").order_by("id").offset(10)
        assert oracle.to_sql() == "SELECT * FROM t ORDER BY id ASC OFFSET 10 ROWS"

    def test_sqlserver_distinct_paging_orders_by_select_list(self):
        query = QueryBuilder(dialect=SQLServerDialect()).table("t").select("status").distinct().limit(1)
        assert query.to_sql() == "SELECT DISTINCT status FROM t ORDER BY 1 OFFSET 0 ROWS FETCH NEXT 1 ROWS ONLY"


class TestDateBinding:
    def test_date_only_columns_by_name(self, qb):
        moment = datetime(2024, 3, 4, 5, 6, 7)
        qb.table("t").where("due_date", "<", moment).where("date", moment).where("created_at", ">", moment)

        assert qb.get_bindings() == ["2024-03-04", "2024-03-04", "2024-03-04 05:06:07"]

    def test_explicit_cast(self, qb):
        moment = datetime(2024, 3, 4, 5, 6, 7)
        qb.table("t").cast("starts", "date").cast("end_date", "datetime")
        qb.where("starts", moment).where("end_date", moment)

        assert qb.get_bindings() == ["2024-03-04", "2024-03-04 05:06:07"]

    def test_plain_dates_and_strings(self, qb):
        qb.table("t").where("created_at", date(2024, 1, 2)).where("due_date", "2024-01-02 10:00:00")
        assert qb.get_bindings() == ["2024-01-02 00:00:00", "2024-01-02 10:00:00"]

    def test_plain_date_on_datetime_cast_gets_midnight(self, qb):
        qb.table("events").cast("starts_at", "datetime").where("starts_at", ">=", date(2024, 1, 2))
        qb.where("due_date", date(2024, 1, 2))

        assert qb.get_bindings() == ["2024-01-02 00:00:00", "2024-01-02"]

    def test_update_formats_set_values(self, qb):
        moment = datetime(2024, 3, 4, 5, 6, 7)
        qb.table("t").where("id", 1)
        _, bindings = qb.compile_update({"due_date": moment, "updated_at": moment})
        assert bindings == ["2024-03-04", "2024-03-04 05:06:07", 1]


class TestStateAndValidation:
    def test_table_resets_everything(self, qb):
        qb.table("a").where("x", 1).order_by("x").limit(1).cast("x", "date")
        qb.table("b")

        assert qb.to_sql() == "SELECT * FROM b"
        assert qb.get_bindings() == []
        assert qb.casts == {}

    def test_invalid_operator(self, qb):
        with pytest.raises(ValueError):
            qb.table("t").where("a", "=~", 1)

    def test_invalid_direction_and_limit(self, qb):
        with pytest.raises(ValueError):
            qb.table("t").order_by("a", "sideways")
        with pytest.raises(ValueError):
            qb.limit(-1)

    def test_missing_table(self, qb):
        with pytest.raises(ValueError):
            qb.to_sql()

    def test_terminal_call_without_connection(self, qb):
        with pytest.raises(QueryError):
            qb.table("t").get()


class TestExecution:
    def test_get_and_first(self, tasks):
        rows = tasks.table("tasks").where("status", "=", "pending").where("priority", ">", 0).order_by("priority").get()
        assert [r["priority"] for r in rows] == [2, 5]

        first = tasks.table("tasks").order_by("priority", "desc").first()
        assert first["status"] == "done"

    def test_first_does_not_change_builder(self, tasks):
        query = tasks.table("tasks").order_by("id")
        query.first()
        assert len(query.get()) == 4

    def test_count_exists_pluck(self, tasks):
        assert tasks.table("tasks").count() == 4
        assert tasks.table("tasks").where("status", "done").count() == 1
        assert tasks.table("tasks").where("status", "done").exists()
        assert not tasks.table("tasks").where("status", "archived").exists()
        assert tasks.table("tasks").where("status", "done").pluck("priority") == [9]

    def test_date_column_round_trip(self, tasks):
        rows = tasks.table("tasks").where("due_date", ">=", datetime(2024, 1, 2, 23, 59)).order_by("id").get()
        assert [r["due_date"] for r in rows] == ["2024-01-02", "2024-01-03"]

    def test_update_and_delete_return_counts(self, tasks):
        assert tasks.table("tasks").where("status", "pending").update({"status": "queued"}) == 3
        assert tasks.table("tasks").where("status", "queued").delete() == 3
        assert tasks.table("tasks").count() == 1

    def test_insert_get_id_increases(self, tasks):
        first = tasks.table("tasks").insert_get_id({"status": "new", "priority": 1})
        second = tasks.table("tasks").insert_get_id({"status": "new", "priority": 1})
        assert second > first > 4

    def test_limit_offset(self, tasks):
        rows = tasks.table("tasks").select("id").order_by("id").limit(2).offset(1).get()
        assert [r["id"] for r in rows] == [2, 3]

        rest = tasks.table("tasks").select("id").order_by("id").offset(3).get()
        assert [r["id"] for r in rest] == [4]

    def test_malformed_query_is_not_swallowed(self, tasks):
        with pytest.raises(QueryError) as info:
            tasks.table("tasks").where("nope", 1).get()
        assert info.value.sql == "SELECT * FROM tasks WHERE nope = ?"
