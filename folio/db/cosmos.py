"""
Cosmos DB access for Folio.

Credentials:
- COSMOS_EMULATOR=true: local emulator with its published key
- otherwise: DefaultAzureCredential against COSMOS_ENDPOINT (managed identity
  when deployed, `az login` on a workstation)

Both containers are partitioned by /userId:
- entries: one document per entry, soft-deleted via deletedAt
- reviews: review state snapshots and review events, told apart by docType,
  so a review can be written as one transactional batch
"""

import os
import logging
from functools import lru_cache
from azure.cosmos import CosmosClient, DatabaseProxy, ContainerProxy
from azure.cosmos.exceptions import CosmosHttpResponseError
from azure.identity import DefaultAzureCredential

logger = logging.getLogger(__name__)

# Published emulator key, not a secret
# https://learn.microsoft.com/en-us/azure/cosmos-db/emulator#authentication
EMULATOR_KEY = "C2y6yDjf5/R+ob0N8A7Cgv30VRDJIWEHLM+4QDU5DE2nQ9nDuVTqobD4b8mGGyPMbIZnqyMsEcaGQy67XIw/Jw=="
EMULATOR_ENDPOINT = "https://localhost:8081"


class CosmosDBSettings:
    """Cosmos DB connection settings read from the environment."""

    def __init__(self):
        self.endpoint = os.getenv("COSMOS_ENDPOINT", "")
        self.database_name = os.getenv("COSMOS_DB_NAME", "folio")
        self.entries_container = os.getenv("COSMOS_ENTRIES_CONTAINER", "entries")
        self.reviews_container = os.getenv("COSMOS_REVIEWS_CONTAINER", "reviews")
        self.use_emulator = os.getenv("COSMOS_EMULATOR", "false").lower() == "true"

    def is_configured(self) -> bool:
        """True when there is something to connect to."""
        return self.use_emulator or bool(self.endpoint)


@lru_cache()
def get_settings() -> CosmosDBSettings:
    """Get cached Cosmos DB settings."""
    return CosmosDBSettings()


_client: CosmosClient | None = None
_database: DatabaseProxy | None = None
_containers: dict[str, ContainerProxy] = {}


def _create_client(settings: CosmosDBSettings) -> CosmosClient:
    if settings.use_emulator:
        logger.info("Connecting to Cosmos DB Emulator at %s", EMULATOR_ENDPOINT)
        # self-signed certificate
        return CosmosClient(EMULATOR_ENDPOINT, credential=EMULATOR_KEY, connection_verify=False)

    logger.info("Connecting to Cosmos DB at %s with DefaultAzureCredential", settings.endpoint)
    return CosmosClient(settings.endpoint, credential=DefaultAzureCredential())


def get_client() -> CosmosClient:
    """
    Return the shared Cosmos client, creating it on first use.

    Raises:
        RuntimeError: If neither COSMOS_ENDPOINT nor COSMOS_EMULATOR is set.
    """
    global _client
    if _client is None:
        settings = get_settings()
        if not settings.is_configured():
            raise RuntimeError(
                "Cosmos DB is not configured. "
                "Set COSMOS_ENDPOINT, or COSMOS_EMULATOR=true to use the local emulator."
            )
        _client = _create_client(settings)
    return _client


def get_database() -> DatabaseProxy:
    """Return the proxy for the configured database."""
    global _database
    if _database is None:
        _database = get_client().get_database_client(get_settings().database_name)
    return _database


def get_container(container_name: str) -> ContainerProxy:
    """Return a container proxy, reusing one per name."""
    if container_name not in _containers:
        _containers[container_name] = get_database().get_container_client(container_name)
    return _containers[container_name]


def get_entries_container() -> ContainerProxy:
    return get_container(get_settings().entries_container)


def get_reviews_container() -> ContainerProxy:
    """Container for review states and review events."""
    return get_container(get_settings().reviews_container)


def verify_connection() -> bool:
    """Read the database once; False if unconfigured or unreachable."""
    if not get_settings().is_configured():
        return False
    try:
        get_database().read()
        return True
    except CosmosHttpResponseError as e:
        logger.warning("Cosmos DB connection check failed: %s", e)
        return False
    except Exception:
        logger.exception("Cosmos DB connection check failed")
        return False


def close_client():
    """Forget the client and every proxy derived from it."""
    global _client, _database
    _client = None
    _database = None
    _containers.clear()
