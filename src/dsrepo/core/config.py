"""Configuration management for dsrepo."""

import os
from dataclasses import dataclass

from .exceptions import ConfigurationError

DEFAULT_DELETE_BATCH_SIZE = 100


@dataclass
class DatastoreConfig:
    """Datastore connection and repository configuration."""

    project: str | None = None
    namespace: str | None = None
    # host:port of a local emulator; anonymous credentials are used when set
    emulator_host: str | None = None
    impersonate_service_account: str | None = None
    # Keys deleted per round trip by delete_all()
    delete_batch_size: int = DEFAULT_DELETE_BATCH_SIZE

    def __post_init__(self):
        _check_batch_size(self.delete_batch_size)

    @classmethod
    def from_env(cls) -> "DatastoreConfig":
        """Load configuration from environment variables."""
        config = cls()

        if project := os.environ.get("DATASTORE_PROJECT_ID") or os.environ.get(
            "GOOGLE_CLOUD_PROJECT"
        ):
            config.project = project

        if namespace := os.environ.get("DATASTORE_NAMESPACE"):
            config.namespace = namespace

        if host := os.environ.get("DATASTORE_EMULATOR_HOST"):
            config.emulator_host = host

        if account := os.environ.get("DATASTORE_IMPERSONATE_SERVICE_ACCOUNT"):
            config.impersonate_service_account = account

        if batch_size := os.environ.get("DATASTORE_DELETE_BATCH_SIZE"):
            config.delete_batch_size = _check_batch_size(int(batch_size))

        return config


def _check_batch_size(batch_size: int) -> int:
    # delete_all stops on a short batch, which never happens for size 0
    if batch_size < 1:
        raise ConfigurationError(f"delete_batch_size must be positive, got {batch_size}")
    return batch_size
