from decimal import Decimal
import logging
import sqlite3
from unittest.mock import MagicMock, patch

import pytest

from dialectdb.config import DatabaseConfig
from dialectdb.db.connection import Connection
from dialectdb.exceptions import ConnectionError, QueryError

from conftest import FakeRaw


class TestSQLiteConnection:
    def test_execute_select_and_insert(self, conn):
        assert conn.execute("CREATE TABLE notes (id INTEGER PRIMARY KEY AUTOINCREMENT, body TEXT)") is True

        first = conn.insert("notes", {"body": "a"})
        second = conn.insert("notes", {"body": "b"})

        assert first == 1
        assert second == 2
        assert conn.select("SELECT id, body FROM notes ORDER BY id") == [
            {"id": 1, "body": "a"},
            {"id": 2, "body": "b"},
        ]

    def test_select_one_and_statement(self, conn):
        conn.execute("CREATE TABLE notes (id INTEGER PRIMARY KEY, body TEXT)")
        assert conn.select_one("SELECT * FROM notes") is None

        conn.execute("INSERT INTO notes (body) VALUES (?)", ["x"])
        conn.execute("INSERT INTO notes (body) VALUES (?)", ["y"])

        assert conn.statement("UPDATE notes SET body = ?", ["z"]) == 2
        assert conn.select_one("SELECT COUNT(*) AS n FROM notes WHERE body = ?", ["z"]) == {"n": 2}

    def test_foreign_keys_enabled_on_open(self, conn):
        assert conn.select_one("PRAGMA foreign_keys") == {"foreign_keys": 1}

    def test_bad_sql_raises_query_error_with_context(self, conn):
        with pytest.raises(QueryError) as info:
            conn.select("SELECT * FROM missing WHERE a = ?", [1])

        err = info.value
        assert err.sql == "SELECT * FROM missing WHERE a = ?"
        assert err.bindings == [1]
        assert err.dialect == "sqlite"
        assert isinstance(err.__cause__, sqlite3.OperationalError)
        assert err.native is err.__cause__
        assert "missing" in str(err)

    def test_rollback_discards_changes(self, conn):
        conn.execute("CREATE TABLE notes (id INTEGER PRIMARY KEY, body TEXT)")

        assert conn.begin_transaction() is True
        conn.execute("INSERT INTO notes (body) VALUES (?)", ["x"])
        assert conn.rollback() is True

        assert conn.select("SELECT * FROM notes") == []
        assert conn.in_transaction is False

    def test_transaction_context_commits_and_rolls_back(self, conn):
        conn.execute("CREATE TABLE notes (id INTEGER PRIMARY KEY, body TEXT)")

        with conn.transaction():
            conn.execute("INSERT INTO notes (body) VALUES (?)", ["kept"])

        with pytest.raises(RuntimeError):
            with conn.transaction():
                conn.execute("INSERT INTO notes (body) VALUES (?)", ["dropped"])
                raise RuntimeError("boom")

        assert [r["body"] for r in conn.select("SELECT body FROM notes")] == ["kept"]

    def test_nested_begin_is_rejected(self, conn):
        conn.begin_transaction()
        with pytest.raises(QueryError):
            conn.begin_transaction()
        conn.rollback()

    def test_supports_feature(self, conn):
        assert conn.supports_feature("upsert")
        assert not conn.supports_feature("json")

    def test_file_database_is_created(self, catalog, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        cfg = DatabaseConfig(driver="sqlite", database="var/app.sqlite")

        with Connection.open(catalog.get("sqlite"), cfg) as connection:
            connection.execute("CREATE TABLE t (id INTEGER)")

        assert (tmp_path / "var" / "app.sqlite").is_file()
        assert connection.closed

    def test_close_is_idempotent(self, conn):
        conn.close()
        conn.close()
        assert conn.closed


class TestOpen:
    def test_all_targets_failing_raises_connection_error(self, catalog):
        driver = MagicMock()
        driver.connect.side_effect = Exception("Connection refused")
        cfg = DatabaseConfig(driver="mysql", database="app", username="root", password="secret")

        with patch("dialectdb.dialects.mysql.os.path.exists", return_value=False):
            with pytest.raises(ConnectionError) as info:
                Connection.open(catalog.get("mysql"), cfg, driver=driver)

        err = info.value
        assert err.dialect == "mysql"
        assert err.attempts == ["mysql:host=127.0.0.1;port=3306;dbname=app"]
        assert err.errors == ["Connection refused"]
        assert "secret" not in str(err)

    def test_socket_failure_falls_back_to_tcp(self, catalog, caplog):
        raw = FakeRaw()
        driver = MagicMock()
        driver.connect.side_effect = [Exception("no socket"), raw]
        cfg = DatabaseConfig(driver="mysql", database="app", username="root")

        with caplog.at_level(logging.WARNING, logger="dialectdb.db.connection"):
            with patch("dialectdb.dialects.mysql.os.path.exists", side_effect=lambda p: p == "/tmp/mysql.sock"):
                connection = Connection.open(catalog.get("mysql"), cfg, driver=driver)

        assert "no socket" in caplog.text
        first_call, second_call = driver.connect.call_args_list
        assert first_call.kwargs["unix_socket"] == "/tmp/mysql.sock"
        assert second_call.kwargs["host"] == "127.0.0.1"
        assert raw.sql == ["SELECT 1"]
        assert connection.dialect.name == "mysql"

    def test_session_statements_run_once(self, catalog):
        raw = FakeRaw()
        driver = MagicMock()
        driver.connect.return_value = raw
        cfg = DatabaseConfig(driver="pgsql", database="app", search_path="tenant")

        connection = Connection.open(catalog.get("pgsql"), cfg, driver=driver)
        connection.select("SELECT 1 AS one")

        assert raw.sql.count("SET search_path TO tenant") == 1
        assert raw.sql[:2] == ["SELECT 1", "SET search_path TO tenant"]

    def test_failed_verification_tries_next_target(self, catalog):
        bad, good = FakeRaw(), FakeRaw()
        bad.failures["SELECT 1"] = Exception("server has gone away")
        driver = MagicMock()
        driver.connect.side_effect = [bad, good]
        cfg = DatabaseConfig(driver="mysql", database="app")

        with patch("dialectdb.dialects.mysql.os.path.exists", side_effect=lambda p: p == "/tmp/mysql.sock"):
            connection = Connection.open(catalog.get("mysql"), cfg, driver=driver)

        assert connection.raw is good
        bad.close.assert_called_once()

    def test_missing_driver_module(self, catalog):
        cfg = DatabaseConfig(driver="generic", options={"module": "dialectdb_no_such_driver"})
        with pytest.raises(ConnectionError) as info:
            Connection.open(catalog.get("generic"), cfg)
        assert isinstance(info.value.__cause__, ImportError)


class TestDriverTranslation:
    def test_format_style_placeholders(self, make_fake_conn, fake_raw):
        connection = make_fake_conn("pgsql")

        connection.execute("UPDATE t SET a = ? WHERE b LIKE 'x%'", [1])
        connection.execute("SELECT '5%'")

        assert fake_raw.statements == [
            ("UPDATE t SET a = %s WHERE b LIKE 'x%%'", (1,)),
            ("SELECT '5%'", None),
        ]

    def test_numeric_placeholders_and_lower_cased_columns(self, make_fake_conn, fake_raw):
        connection = make_fake_conn("oracle")
        sql = "SELECT id, name FROM t WHERE a = :1 AND b = :2"
        fake_raw.results[sql] = (["ID", "NAME"], [(1, "x")])

        rows = connection.select("SELECT id, name FROM t WHERE a = ? AND b = ?", [1, 2])

        assert rows == [{"id": 1, "name": "x"}]
        assert fake_raw.statements[-1] == (sql, (1, 2))

    def test_commit_after_each_statement_outside_transaction(self, make_fake_conn, fake_raw):
        connection = make_fake_conn("mysql")

        connection.execute("DELETE FROM t")
        connection.execute("DELETE FROM u")
        assert fake_raw.commit.call_count == 2

        connection.begin_transaction()
        connection.execute("DELETE FROM v")
        assert fake_raw.commit.call_count == 2
        connection.commit()
        assert fake_raw.commit.call_count == 3

    def test_failure_outside_transaction_rolls_back(self, make_fake_conn, fake_raw):
        connection = make_fake_conn("pgsql")
        fake_raw.failures["broken"] = Exception("syntax error")

        with pytest.raises(QueryError):
            connection.execute("SELECT broken")

        fake_raw.rollback.assert_called_once()

    def test_insert_reads_id_from_returning_clause(self, make_fake_conn, fake_raw):
        connection = make_fake_conn("pgsql")
        fake_raw.results['INSERT INTO users (email) VALUES (%s) RETURNING "id"'] = (["id"], [(7,)])

        assert connection.insert("users", {"email": "a@b.com"}) == 7
        assert fake_raw.sql == ['INSERT INTO users (email) VALUES (%s) RETURNING "id"']

    def test_insert_reads_id_through_dialect_query(self, make_fake_conn, fake_raw):
        connection = make_fake_conn("sqlsrv")
        fake_raw.results["SELECT CAST(@@IDENTITY AS BIGINT)"] = (["id"], [(Decimal("12"),)])

        assert connection.insert("users", {"email": "a@b.com"}) == 12
        assert fake_raw.sql == [
            "INSERT INTO users (email) VALUES (?)",
            "SELECT CAST(@@IDENTITY AS BIGINT)",
        ]

    def test_insert_returns_none_when_id_unavailable(self, make_fake_conn, fake_raw):
        connection = make_fake_conn("oracle")
        fake_raw.failures["CURRVAL"] = Exception("ORA-08002: sequence CURRVAL is not yet defined")

        assert connection.insert("logs", {"message": "x"}) is None
