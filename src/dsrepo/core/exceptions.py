"""Custom exceptions for dsrepo."""

from typing import Any, Sequence


class RepositoryError(Exception):
    """Base exception for all repository errors."""

    pass


class ConfigurationError(RepositoryError):
    """Repository is missing a collaborator required by the operation."""

    pass


class QueryError(RepositoryError):
    """Query options could not be translated into a Datastore query."""

    pass


class NotFoundError(RepositoryError):
    """A required entity does not exist."""

    def __init__(self, kind: str, entity_id: str):
        """Initialize exception with the kind and the missing id.

        Args:
            kind: Datastore kind (collection name).
            entity_id: The first id that could not be loaded.
        """
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f'invalid id: "{kind}" with id "{entity_id}" failed to load')


class AlreadyExistsError(RepositoryError):
    """An insert targeted a key that is already stored."""

    def __init__(self, kind: str, ids: Sequence[str]):
        """Initialize exception with the conflicting ids.

        Args:
            kind: Datastore kind (collection name).
            ids: Ids that already exist.
        """
        self.kind = kind
        self.ids = list(ids)
        joined = ", ".join(f'"{i}"' for i in self.ids)
        super().__init__(f'ALREADY_EXISTS: "{kind}" with id {joined} already exists')


class ValidationError(RepositoryError):
    """An entity failed schema validation on load or save."""

    def __init__(
        self,
        kind: str,
        entity_id: Any,
        direction: str,
        errors: Sequence[str] = (),
    ):
        """Initialize exception with validation context.

        Args:
            kind: Datastore kind (collection name).
            entity_id: Id of the offending entity.
            direction: Either "load" or "save".
            errors: Messages reported by the validator.
        """
        self.kind = kind
        self.entity_id = entity_id
        self.direction = direction
        self.errors = list(errors)
        message = f'"{kind}" with id "{entity_id}" failed to {direction}'
        if self.errors:
            message = f"{message}: {'; '.join(self.errors)}"
        super().__init__(message)
