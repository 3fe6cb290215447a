"""Automatic created_at/updated_at stamping."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

from loguru import logger

from ..core.context import DISABLE_TIMESTAMP_UPDATE, RequestContext, get_value
from ..core.types import Entity
from .repository import DatastoreRepository

CREATED_AT = "created_at"
UPDATED_AT = "updated_at"

# Placeholder meaning "assign on first save"; never a real creation time.
GENERATE_TIMESTAMP = datetime.min.replace(tzinfo=timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_timestamped_entity(entity_id: str) -> Entity:
    """Create an entity whose timestamps are assigned on first save."""
    return {
        "id": entity_id,
        CREATED_AT: GENERATE_TIMESTAMP,
        UPDATED_AT: GENERATE_TIMESTAMP,
    }


class TimestampHook:
    """Persistence hook stamping created_at and updated_at.

    updated_at is always set to the current time. created_at is set only
    when missing or equal to GENERATE_TIMESTAMP, so re-saving an entity
    keeps its original creation time. Entities are stamped in place.
    Setting DISABLE_TIMESTAMP_UPDATE in the request context (e.g. for
    data migrations) leaves both fields untouched.
    """

    def __init__(self, clock: Callable[[], datetime] = utc_now):
        self.clock = clock

    def __call__(
        self, entities: list[Entity], ctx: RequestContext | None = None
    ) -> list[Entity]:
        if get_value(ctx, DISABLE_TIMESTAMP_UPDATE, False):
            logger.debug("Timestamp update disabled by request context")
            return entities

        now = self.clock()
        for entity in entities:
            created_at = entity.get(CREATED_AT)
            if created_at is None or created_at == GENERATE_TIMESTAMP:
                entity[CREATED_AT] = now
            entity[UPDATED_AT] = now
        return entities


class TimestampedRepository(DatastoreRepository):
    """Repository whose writes stamp created_at/updated_at.

    Timestamping runs before any hooks passed by the caller.
    """

    def __init__(
        self,
        kind: str,
        *,
        clock: Callable[[], datetime] = utc_now,
        **kwargs,
    ):
        hooks = [TimestampHook(clock), *kwargs.pop("hooks", ())]
        super().__init__(kind, hooks=hooks, **kwargs)
