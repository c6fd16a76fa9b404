"""Database schema definitions and migration helpers."""

from __future__ import annotations

import sqlite3
from pathlib import Path

_SCHEMA_VERSION = 2

_DDL = """
CREATE TABLE IF NOT EXISTS families (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    created_by TEXT NOT NULL,
    vote_threshold INTEGER,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS family_members (
    family_id TEXT NOT NULL REFERENCES families(id) ON DELETE CASCADE,
    user_id TEXT NOT NULL,
    role TEXT NOT NULL DEFAULT 'member' CHECK (role IN ('admin', 'member')),
    joined_at TEXT NOT NULL,
    PRIMARY KEY (family_id, user_id)
);

CREATE INDEX IF NOT EXISTS idx_family_members_user ON family_members(user_id);

CREATE TABLE IF NOT EXISTS inventory_items (
    id TEXT PRIMARY KEY,
    owner_id TEXT NOT NULL,
    name TEXT NOT NULL,
    canonical_name TEXT NOT NULL,
    category TEXT NOT NULL DEFAULT 'fridge'
        CHECK (category IN ('fridge', 'pantry', 'other')),
    quantity REAL NOT NULL DEFAULT 1.0,
    unit TEXT,
    image_url TEXT,
    expiration_date TEXT,
    source_item_id TEXT,
    added_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_inventory_owner ON inventory_items(owner_id);
CREATE INDEX IF NOT EXISTS idx_inventory_expiration ON inventory_items(expiration_date);
CREATE INDEX IF NOT EXISTS idx_inventory_canonical ON inventory_items(canonical_name);

CREATE TABLE IF NOT EXISTS shopping_lists (
    id TEXT PRIMARY KEY,
    owner_id TEXT NOT NULL,
    family_id TEXT REFERENCES families(id) ON DELETE CASCADE,
    name TEXT NOT NULL DEFAULT 'Shopping List',
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_lists_owner ON shopping_lists(owner_id);
CREATE INDEX IF NOT EXISTS idx_lists_family ON shopping_lists(family_id);

CREATE TABLE IF NOT EXISTS list_items (
    id TEXT PRIMARY KEY,
    list_id TEXT NOT NULL REFERENCES shopping_lists(id) ON DELETE CASCADE,
    name TEXT NOT NULL,
    canonical_name TEXT NOT NULL,
    quantity REAL NOT NULL DEFAULT 1.0,
    unit TEXT,
    image_url TEXT,
    status TEXT NOT NULL DEFAULT 'active'
        CHECK (status IN ('active', 'bought', 'pending_review')),
    assigned_to TEXT,
    added_by TEXT,
    added_at TEXT NOT NULL,
    bought_at TEXT
);

CREATE INDEX IF NOT EXISTS idx_list_items_list ON list_items(list_id);

CREATE TABLE IF NOT EXISTS review_entries (
    id TEXT PRIMARY KEY,
    proposer_id TEXT NOT NULL,
    owner_id TEXT NOT NULL,
    name TEXT NOT NULL,
    canonical_name TEXT NOT NULL,
    category_guess TEXT NOT NULL DEFAULT 'fridge'
        CHECK (category_guess IN ('fridge', 'pantry', 'other')),
    quantity REAL,
    unit TEXT,
    image_url TEXT,
    status TEXT NOT NULL DEFAULT 'pending'
        CHECK (status IN ('pending', 'approved', 'rejected')),
    source_item_id TEXT REFERENCES list_items(id) ON DELETE SET NULL,
    reviewer_id TEXT,
    reviewed_at TEXT,
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_reviews_owner_status ON review_entries(owner_id, status);

CREATE TABLE IF NOT EXISTS meal_plans (
    id TEXT PRIMARY KEY,
    owner_id TEXT NOT NULL,
    family_id TEXT REFERENCES families(id) ON DELETE CASCADE,
    recipe_id TEXT NOT NULL,
    scheduled_for TEXT NOT NULL,
    is_approved INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS meal_votes (
    meal_plan_id TEXT NOT NULL REFERENCES meal_plans(id) ON DELETE CASCADE,
    user_id TEXT NOT NULL,
    vote INTEGER NOT NULL,
    created_at TEXT NOT NULL,
    UNIQUE (meal_plan_id, user_id)
);

CREATE INDEX IF NOT EXISTS idx_meal_plans_owner ON meal_plans(owner_id, scheduled_for);
CREATE INDEX IF NOT EXISTS idx_meal_plans_family ON meal_plans(family_id, scheduled_for);

CREATE TABLE IF NOT EXISTS recipe_ratings (
    recipe_id TEXT NOT NULL,
    user_id TEXT NOT NULL,
    rating INTEGER NOT NULL CHECK (rating BETWEEN 1 AND 5),
    comment TEXT,
    photo_url TEXT,
    created_at TEXT NOT NULL,
    UNIQUE (recipe_id, user_id)
);

CREATE TABLE IF NOT EXISTS notifications (
    id TEXT PRIMARY KEY,
    recipient_id TEXT NOT NULL,
    type TEXT NOT NULL,
    title TEXT NOT NULL,
    message TEXT,
    payload TEXT NOT NULL DEFAULT '{}',
    created_at TEXT NOT NULL,
    read_at TEXT
);

CREATE INDEX IF NOT EXISTS idx_notifications_recipient ON notifications(recipient_id, read_at);

CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER NOT NULL
);
"""


def connect(db_path: str | Path, timeout: float = 5.0) -> sqlite3.Connection:
    """Open a connection configured the way every unit of work expects.

    Transactions are managed explicitly (``isolation_level=None``), rows
    come back as ``sqlite3.Row`` and foreign keys are enforced.
    """
    conn = sqlite3.connect(str(db_path), timeout=timeout, isolation_level=None)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys=ON")
    return conn


def ensure_schema(db_path: str | Path) -> sqlite3.Connection:
    """Open (or create) the database and ensure the schema is up to date.

    Args:
        db_path: Path to the SQLite database file.

    Returns:
        An open sqlite3.Connection with the schema applied.
    """
    db_path = Path(db_path).expanduser()
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = connect(db_path)
    conn.execute("PRAGMA journal_mode=WAL")

    # Check current schema version
    try:
        row = conn.execute("SELECT version FROM schema_version").fetchone()
        current_version = row["version"] if row else 0
    except sqlite3.OperationalError:
        current_version = 0

    if current_version < _SCHEMA_VERSION:
        conn.executescript(_DDL)
        conn.execute("BEGIN")
        conn.execute("DELETE FROM schema_version")
        conn.execute(
            "INSERT INTO schema_version (version) VALUES (?)",
            (_SCHEMA_VERSION,),
        )
        conn.execute("COMMIT")

    return conn
