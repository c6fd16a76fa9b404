"""Families: groups of users who share shopping lists and meal plans."""

from __future__ import annotations

import logging

from .db import Database, Transaction
from .errors import AuthorizationError, NotFoundError, ValidationError
from .models import Family, FamilyMember, FamilyRole
from .validation import parse_enum, require_id, require_text

logger = logging.getLogger(__name__)


class FamilyService:
    def __init__(self, database: Database) -> None:
        self._db = database

    def create_family(
        self,
        creator_id: str,
        name: str,
        vote_threshold: int | None = None,
    ) -> Family:
        """Create a family with ``creator_id`` as its first admin."""
        creator_id = require_id(creator_id, "creator_id")
        name = require_text(name, "name")
        if vote_threshold is not None and vote_threshold < 1:
            raise ValidationError(f"vote_threshold must be at least 1, got {vote_threshold}")

        with self._db.transaction() as tx:
            family = tx.families.create(creator_id, name, vote_threshold)
            tx.families.add_member(family.id, creator_id, FamilyRole.ADMIN)
            created = tx.families.get(family.id)
        logger.info("Family %s (%s) created by %s", created.id, created.name, creator_id)
        return created

    def get(self, family_id: str, caller_id: str) -> Family:
        with self._db.transaction(readonly=True) as tx:
            family = self._require_family(tx, family_id)
            if not tx.families.is_member(family_id, caller_id):
                raise AuthorizationError(f"{caller_id} is not a member of family {family_id}")
            return family

    def family_for(self, user_id: str) -> Family | None:
        with self._db.transaction(readonly=True) as tx:
            return tx.families.family_for_user(user_id)

    def add_member(
        self,
        family_id: str,
        actor_id: str,
        user_id: str,
        role: FamilyRole | str = FamilyRole.MEMBER,
    ) -> FamilyMember:
        user_id = require_id(user_id, "user_id")
        role = parse_enum(FamilyRole, role, "role")
        with self._db.transaction() as tx:
            self._require_family(tx, family_id)
            self._require_admin(tx, family_id, actor_id)
            member = tx.families.add_member(family_id, user_id, role)
            if member is None:
                raise ValidationError(f"{user_id} is already a member of family {family_id}")
        logger.info("%s added %s to family %s as %s", actor_id, user_id, family_id, role.value)
        return member

    def remove_member(self, family_id: str, actor_id: str, user_id: str) -> None:
        """Remove a member. Admins may remove anyone; members only themselves."""
        with self._db.transaction() as tx:
            self._require_family(tx, family_id)
            if actor_id != user_id:
                self._require_admin(tx, family_id, actor_id)
            if not tx.families.remove_member(family_id, user_id):
                raise NotFoundError(f"{user_id} is not a member of family {family_id}")
        logger.info("%s removed %s from family %s", actor_id, user_id, family_id)

    @staticmethod
    def _require_family(tx: Transaction, family_id: str) -> Family:
        family = tx.families.get(family_id)
        if family is None:
            raise NotFoundError(f"family {family_id} not found")
        return family

    @staticmethod
    def _require_admin(tx: Transaction, family_id: str, actor_id: str) -> None:
        membership = tx.families.membership(family_id, actor_id)
        if membership is None or membership.role is not FamilyRole.ADMIN:
            logger.warning("%s is not an admin of family %s", actor_id, family_id)
            raise AuthorizationError(f"only admins can manage family {family_id}")
