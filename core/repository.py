"""
Entity store

Repository is the only storage interface call sites see. Two backends:

- InMemoryRepository: one dict plus one id counter per entity kind. Nothing
  survives a restart.
- SqlRepository: the same contract on SQLAlchemy, entities stored as JSON
  documents in entity_records with counters in id_sequences.

Contract shared by both:
- create() hands out the next id for the kind; ids are never reused, even
  after delete.
- update() is a shallow merge: fields missing from `changes` are untouched
  and `id` can never change.
- delete() exists only for users and role permissions.
- No locking: concurrent updates of one entity are last-write-wins.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
import logging

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from database import transactional
from models import DELETABLE_KINDS, EntityKind, EntityRecord, IdSequence
from schemas import ENTITY_TYPES
from core.exceptions import OperationNotSupported

logger = logging.getLogger(__name__)


def _merge(entity: BaseModel, changes: Dict[str, Any]) -> BaseModel:
    """Shallow-merge `changes` over `entity` and re-validate the result."""
    data = entity.model_dump()
    data.update({key: value for key, value in changes.items() if key != "id"})
    return type(entity).model_validate(data)


def _check_deletable(kind: EntityKind) -> None:
    if kind not in DELETABLE_KINDS:
        raise OperationNotSupported(f"{kind.value} cannot be deleted")


class Repository(ABC):
    """Storage interface for every entity kind"""

    @abstractmethod
    def create(self, kind: EntityKind, data: Dict[str, Any]) -> BaseModel:
        """Insert a new entity, filling declared defaults, and return it."""

    @abstractmethod
    def get(self, kind: EntityKind, entity_id: int) -> Optional[BaseModel]:
        """Entity by id, or None."""

    @abstractmethod
    def list(self, kind: EntityKind) -> List[BaseModel]:
        """All entities of a kind in insertion order."""

    @abstractmethod
    def update(self, kind: EntityKind, entity_id: int, changes: Dict[str, Any]) -> Optional[BaseModel]:
        """Shallow-merge `changes` into the entity; None if it does not exist."""

    @abstractmethod
    def delete(self, kind: EntityKind, entity_id: int) -> bool:
        """Remove the entity; False if it did not exist."""

    def find_by(self, kind: EntityKind, field: str, value: Any) -> Optional[BaseModel]:
        """First entity whose `field` equals `value` (linear scan)."""
        return next(
            (entity for entity in self.list(kind) if getattr(entity, field) == value),
            None
        )

    def filter_by(self, kind: EntityKind, field: str, value: Any) -> List[BaseModel]:
        return [entity for entity in self.list(kind) if getattr(entity, field) == value]

    def is_empty(self) -> bool:
        return not any(self.list(kind) for kind in EntityKind)


class InMemoryRepository(Repository):
    """Map + counter per kind"""

    def __init__(self):
        self._records: Dict[EntityKind, Dict[int, BaseModel]] = {kind: {} for kind in EntityKind}
        self._last_ids: Dict[EntityKind, int] = {kind: 0 for kind in EntityKind}

    def create(self, kind, data):
        entity = ENTITY_TYPES[kind].model_validate({**data, "id": self._last_ids[kind] + 1})
        self._last_ids[kind] = entity.id
        self._records[kind][entity.id] = entity
        return entity

    def get(self, kind, entity_id):
        return self._records[kind].get(entity_id)

    def list(self, kind):
        return list(self._records[kind].values())

    def update(self, kind, entity_id, changes):
        existing = self._records[kind].get(entity_id)
        if existing is None:
            return None

        merged = _merge(existing, changes)
        self._records[kind][entity_id] = merged
        return merged

    def delete(self, kind, entity_id):
        _check_deletable(kind)
        return self._records[kind].pop(entity_id, None) is not None


class SqlRepository(Repository):
    """
    Durable backend on SQLAlchemy.

    Every public call opens its own session; writes run inside one
    transaction through @transactional.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def create(self, kind, data):
        with self._session_factory() as db:
            return self._create(db, kind, data)

    def get(self, kind, entity_id):
        with self._session_factory() as db:
            record = db.get(EntityRecord, (kind.value, entity_id))
            if record is None:
                return None
            return ENTITY_TYPES[kind].model_validate(record.data)

    def list(self, kind):
        with self._session_factory() as db:
            records = db.execute(
                select(EntityRecord)
                .where(EntityRecord.kind == kind.value)
                .order_by(EntityRecord.id)
            ).scalars().all()
            return [ENTITY_TYPES[kind].model_validate(record.data) for record in records]

    def update(self, kind, entity_id, changes):
        with self._session_factory() as db:
            return self._update(db, kind, entity_id, changes)

    def delete(self, kind, entity_id):
        _check_deletable(kind)
        with self._session_factory() as db:
            return self._delete(db, kind, entity_id)

    @transactional
    def _create(self, db: Session, kind: EntityKind, data: Dict[str, Any]) -> BaseModel:
        # 1. Reserve the next id (the counter row is created on first use)
        sequence = db.get(IdSequence, kind.value)
        if sequence is None:
            sequence = IdSequence(kind=kind.value, last_id=0)
            db.add(sequence)

        # 2. Validate before writing anything
        entity = ENTITY_TYPES[kind].model_validate({**data, "id": sequence.last_id + 1})

        # 3. Persist record and counter together
        sequence.last_id = entity.id
        db.add(EntityRecord(kind=kind.value, id=entity.id, data=entity.model_dump(mode="json")))
        return entity

    @transactional
    def _update(self, db: Session, kind: EntityKind, entity_id: int, changes: Dict[str, Any]) -> Optional[BaseModel]:
        record = db.get(EntityRecord, (kind.value, entity_id))
        if record is None:
            return None

        merged = _merge(ENTITY_TYPES[kind].model_validate(record.data), changes)
        record.data = merged.model_dump(mode="json")
        return merged

    @transactional
    def _delete(self, db: Session, kind: EntityKind, entity_id: int) -> bool:
        record = db.get(EntityRecord, (kind.value, entity_id))
        if record is None:
            return False
        db.delete(record)
        return True
