"""Store backends for the Aerospike binding."""

import logging

from ..models import ConnectionSettings
from .base import (
    NotFound,
    PreconditionFailed,
    RequestFailure,
    RequestTimeout,
    StoreClient,
    StoreConnectionError,
    StoreError,
)

logger = logging.getLogger(__name__)


def make_store(driver: str, settings: ConnectionSettings) -> StoreClient:
    """Factory function to create a StoreClient for the configured driver.

    Args:
        driver: "aerospike" or "memory"
        settings: Connection settings

    Returns:
        Connected StoreClient

    Raises:
        StoreConnectionError: If the Aerospike cluster cannot be reached
        ValueError: If the driver is unknown
    """
    driver = driver.lower()

    if driver == "memory":
        from .memory_store import InMemoryStore

        logger.debug("Using in-memory store")
        return InMemoryStore()

    if driver == "aerospike":
        from .aerospike_store import AerospikeStore

        return AerospikeStore.connect(settings)

    raise ValueError(f"Unknown store driver: {driver}")


__all__ = [
    "StoreClient",
    "StoreError",
    "StoreConnectionError",
    "RequestFailure",
    "RequestTimeout",
    "NotFound",
    "PreconditionFailed",
    "make_store",
]
