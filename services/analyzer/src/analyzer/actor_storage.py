"""Durable per-actor key/value storage."""

import json
from typing import Any, Protocol

from logcore.db.base import utc_now
from logcore.db.models.analysis import ActorStateRow
from logcore.db.session import DatabaseManager


class ActorStorage(Protocol):
    """Private storage of one actor. Values are JSON-compatible."""

    async def get(self, key: str) -> Any | None: ...

    async def put(self, key: str, value: Any) -> None: ...


class DatabaseActorStorage:
    """ActorStorage persisted in the ``actor_state`` table."""

    def __init__(self, db_manager: DatabaseManager, actor_id: str) -> None:
        self._db = db_manager
        self.actor_id = actor_id

    async def get(self, key: str) -> Any | None:
        async with self._db.session() as session:
            row = await session.get(ActorStateRow, (self.actor_id, key))
            if row is None:
                return None
            return json.loads(row.value)

    async def put(self, key: str, value: Any) -> None:
        encoded = json.dumps(value)
        async with self._db.session() as session:
            row = await session.get(ActorStateRow, (self.actor_id, key))
            if row is None:
                session.add(ActorStateRow(actor_id=self.actor_id, key=key, value=encoded))
            else:
                row.value = encoded
                row.updated_at = utc_now()
