"""Tests for database schema creation and the unit of work."""

import sqlite3

import pytest

from larder.db import Database
from larder.db.schema import _SCHEMA_VERSION, ensure_schema
from larder.errors import NotFoundError, TransactionFailure


def test_ensure_schema_creates_tables(tmp_path):
    """Schema creates every table."""
    db_path = tmp_path / "test.db"
    conn = ensure_schema(db_path)

    tables = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
    ).fetchall()
    table_names = {row["name"] for row in tables}

    assert {
        "families",
        "family_members",
        "inventory_items",
        "shopping_lists",
        "list_items",
        "review_entries",
        "meal_plans",
        "meal_votes",
        "notifications",
        "recipe_ratings",
        "schema_version",
    } <= table_names

    conn.close()


def test_ensure_schema_creates_parent_dirs(tmp_path):
    """Schema creates parent directories if they don't exist."""
    db_path = tmp_path / "sub" / "dir" / "test.db"
    conn = ensure_schema(db_path)
    assert db_path.exists()
    conn.close()


def test_ensure_schema_idempotent(tmp_path):
    """Calling ensure_schema twice doesn't error."""
    db_path = tmp_path / "test.db"
    ensure_schema(db_path).close()

    conn = ensure_schema(db_path)
    row = conn.execute("SELECT version FROM schema_version").fetchone()
    assert row["version"] == _SCHEMA_VERSION
    count = conn.execute("SELECT COUNT(*) AS n FROM schema_version").fetchone()
    assert count["n"] == 1
    conn.close()


def test_ensure_schema_wal_mode(tmp_path):
    """Schema sets WAL journal mode."""
    conn = ensure_schema(tmp_path / "test.db")
    mode = conn.execute("PRAGMA journal_mode").fetchone()[0]
    assert mode == "wal"
    conn.close()


class TestTransaction:
    @pytest.fixture
    def db(self, tmp_path):
        return Database(tmp_path / "larder.db")

    def test_commit_on_success(self, db):
        with db.transaction() as tx:
            tx.inventory.add("alice", "Milk", "milk")
        with db.transaction(readonly=True) as tx:
            assert tx.inventory.count_for_owner("alice") == 1

    def test_rollback_on_domain_error(self, db):
        """Package errors roll back and propagate unchanged."""
        with pytest.raises(NotFoundError):
            with db.transaction() as tx:
                tx.inventory.add("alice", "Milk", "milk")
                raise NotFoundError("gone")
        with db.transaction(readonly=True) as tx:
            assert tx.inventory.count_for_owner("alice") == 0

    def test_sqlite_error_becomes_transaction_failure(self, db):
        with pytest.raises(TransactionFailure) as excinfo:
            with db.transaction() as tx:
                tx.inventory.add("alice", "Milk", "milk")
                tx.conn.execute("INSERT INTO no_such_table VALUES (1)")
        assert isinstance(excinfo.value.__cause__, sqlite3.OperationalError)
        with db.transaction(readonly=True) as tx:
            assert tx.inventory.count_for_owner("alice") == 0

    def test_run_returns_result(self, db):
        item = db.run(lambda tx: tx.inventory.add("alice", "Eggs", "egg"))
        assert item.canonical_name == "egg"

    def test_expands_user_path(self, tmp_path, monkeypatch):
        monkeypatch.setenv("HOME", str(tmp_path))
        db = Database("~/data/larder.db")
        assert db.path == tmp_path / "data" / "larder.db"


def test_ensure_schema_upgrades_older_version(tmp_path):
    """A database from an earlier schema version gains the newer tables."""
    db_path = tmp_path / "test.db"
    conn = ensure_schema(db_path)
    conn.execute("DROP TABLE recipe_ratings")
    conn.execute("UPDATE schema_version SET version = 1")
    conn.close()

    conn = ensure_schema(db_path)
    names = {
        row["name"]
        for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
    }
    assert "recipe_ratings" in names
    assert conn.execute("SELECT version FROM schema_version").fetchone()["version"] == _SCHEMA_VERSION
    conn.close()
