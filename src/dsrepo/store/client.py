"""Datastore client construction and the process-wide default client."""

import google.auth
from google.auth import impersonated_credentials
from google.auth.credentials import AnonymousCredentials
from google.cloud import datastore
from loguru import logger

from ..core.config import DatastoreConfig
from ..core.exceptions import ConfigurationError

DATASTORE_SCOPES = ["https://www.googleapis.com/auth/datastore"]


def connect(config: DatastoreConfig | None = None) -> datastore.Client:
    """Create a Datastore client from configuration.

    Credential selection, in order:
    1. Emulator host configured: anonymous credentials.
    2. Service account to impersonate: impersonated default credentials.
    3. Otherwise: application default credentials.

    Args:
        config: Connection settings. Defaults to DatastoreConfig.from_env().

    Returns:
        Initialized Datastore client.

    Raises:
        ConfigurationError: If the emulator is used without a project.
        google.auth.exceptions.DefaultCredentialsError: If default
            credentials cannot be found.
    """
    config = config or DatastoreConfig.from_env()

    if config.emulator_host:
        if not config.project:
            raise ConfigurationError(
                "A project id is required when connecting to the Datastore emulator"
            )
        logger.debug(f"Connecting to Datastore emulator at {config.emulator_host}")
        return datastore.Client(
            project=config.project,
            namespace=config.namespace,
            credentials=AnonymousCredentials(),
            client_options={"api_endpoint": f"http://{config.emulator_host}"},
        )

    if config.impersonate_service_account:
        return _connect_with_impersonation(config)

    logger.debug(f"Connecting to Datastore: project={config.project}")
    return datastore.Client(project=config.project, namespace=config.namespace)


def _connect_with_impersonation(config: DatastoreConfig) -> datastore.Client:
    """Connect using default credentials impersonating a service account."""
    source_credentials, project_id = google.auth.default()
    account = config.impersonate_service_account
    project = config.project or project_id

    # sa@PROJECT.iam.gserviceaccount.com
    if not project and account and account.endswith(".iam.gserviceaccount.com"):
        project = account.split("@")[1].split(".")[0]

    if not project:
        raise ConfigurationError(
            "Could not determine project id; set DATASTORE_PROJECT_ID or "
            "GOOGLE_CLOUD_PROJECT"
        )

    credentials = impersonated_credentials.Credentials(
        source_credentials=source_credentials,
        target_principal=account,
        target_scopes=DATASTORE_SCOPES,
        lifetime=3600,
    )

    logger.debug(f"Connecting to Datastore as {account}: project={project}")
    return datastore.Client(
        project=project, namespace=config.namespace, credentials=credentials
    )


class DatastoreProvider:
    """Holds the client used by repositories built without an explicit one."""

    def __init__(self):
        self._client: datastore.Client | None = None

    def set(self, client: datastore.Client) -> None:
        self._client = client

    def get(self) -> datastore.Client:
        """Return the default client.

        Raises:
            ConfigurationError: If no client has been set.
        """
        if self._client is None:
            raise ConfigurationError(
                "No Datastore client configured; pass client= or call datastore_provider.set()"
            )
        return self._client

    def clear(self) -> None:
        self._client = None

    @property
    def is_set(self) -> bool:
        return self._client is not None


datastore_provider = DatastoreProvider()
