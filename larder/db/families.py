"""Family and family membership storage."""

from __future__ import annotations

import sqlite3

from ..models import Family, FamilyMember, FamilyRole
from .base import Repository, new_id, timestamp


def _to_family(row: sqlite3.Row) -> Family:
    return Family(
        id=row["id"],
        name=row["name"],
        created_by=row["created_by"],
        vote_threshold=row["vote_threshold"],
        created_at=row["created_at"],
    )


def _to_member(row: sqlite3.Row) -> FamilyMember:
    return FamilyMember(
        family_id=row["family_id"],
        user_id=row["user_id"],
        role=FamilyRole(row["role"]),
        joined_at=row["joined_at"],
    )


class FamilyRepository(Repository):
    """Manages the families and family_members tables."""

    def create(
        self,
        created_by: str,
        name: str,
        vote_threshold: int | None = None,
    ) -> Family:
        family = Family(
            id=new_id(),
            name=name,
            created_by=created_by,
            vote_threshold=vote_threshold,
            created_at=timestamp(),
        )
        self._conn.execute(
            """INSERT INTO families (id, name, created_by, vote_threshold, created_at)
               VALUES (?, ?, ?, ?, ?)""",
            (family.id, family.name, family.created_by, family.vote_threshold, family.created_at),
        )
        return family

    def get(self, family_id: str) -> Family | None:
        row = self._conn.execute(
            "SELECT * FROM families WHERE id = ?", (family_id,)
        ).fetchone()
        if row is None:
            return None
        family = _to_family(row)
        family.members = self.members(family_id)
        return family

    def add_member(
        self,
        family_id: str,
        user_id: str,
        role: FamilyRole = FamilyRole.MEMBER,
    ) -> FamilyMember | None:
        """Insert a membership; returns None if the user is already a member."""
        member = FamilyMember(
            family_id=family_id,
            user_id=user_id,
            role=role,
            joined_at=timestamp(),
        )
        cur = self._conn.execute(
            """INSERT INTO family_members (family_id, user_id, role, joined_at)
               VALUES (?, ?, ?, ?)
               ON CONFLICT (family_id, user_id) DO NOTHING""",
            (member.family_id, member.user_id, member.role.value, member.joined_at),
        )
        return member if cur.rowcount else None

    def remove_member(self, family_id: str, user_id: str) -> bool:
        cur = self._conn.execute(
            "DELETE FROM family_members WHERE family_id = ? AND user_id = ?",
            (family_id, user_id),
        )
        return cur.rowcount > 0

    def membership(self, family_id: str, user_id: str) -> FamilyMember | None:
        row = self._conn.execute(
            "SELECT * FROM family_members WHERE family_id = ? AND user_id = ?",
            (family_id, user_id),
        ).fetchone()
        return _to_member(row) if row else None

    def is_member(self, family_id: str, user_id: str) -> bool:
        return self.membership(family_id, user_id) is not None

    def members(self, family_id: str) -> list[FamilyMember]:
        rows = self._conn.execute(
            "SELECT * FROM family_members WHERE family_id = ? ORDER BY joined_at, rowid",
            (family_id,),
        ).fetchall()
        return [_to_member(r) for r in rows]

    def family_for_user(self, user_id: str) -> Family | None:
        """Return the first family the user joined, with its members."""
        row = self._conn.execute(
            """SELECT family_id FROM family_members
               WHERE user_id = ? ORDER BY joined_at, rowid LIMIT 1""",
            (user_id,),
        ).fetchone()
        if row is None:
            return None
        return self.get(row["family_id"])
