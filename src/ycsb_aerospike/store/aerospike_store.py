"""Aerospike store implementation backed by the official Python client."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any, Optional

from ..models import ConnectionSettings, Existence, OperationPolicy, Record, RecordAddress
from .base import (
    NotFound,
    PreconditionFailed,
    RequestFailure,
    RequestTimeout,
    StoreConnectionError,
)

logger = logging.getLogger(__name__)

# Lazy import for optional dependency
_aerospike = None


def _get_aerospike():
    """Lazy import aerospike with helpful error message."""
    global _aerospike
    if _aerospike is None:
        try:
            import aerospike

            _aerospike = aerospike
        except ImportError as err:
            raise ImportError(
                "The 'aerospike' library is required for the Aerospike store. "
                "Install it with: pip install 'ycsb-aerospike[aerospike]' or set "
                'driver = "memory" under [binding]'
            ) from err
    return _aerospike


def _exists_action(aerospike, existence: Existence) -> int:
    if existence is Existence.CREATE_ONLY:
        return aerospike.POLICY_EXISTS_CREATE
    if existence is Existence.REPLACE_ONLY:
        return aerospike.POLICY_EXISTS_REPLACE
    return aerospike.POLICY_EXISTS_IGNORE


class AerospikeStore:
    """StoreClient that issues requests through ``aerospike.Client``.

    Native exceptions are translated into the binding's StoreError family so
    the adapter never sees client-library types.
    """

    def __init__(self, client: Any, settings: ConnectionSettings):
        """Wrap an already connected client.

        Args:
            client: Connected ``aerospike.Client``
            settings: Settings the client was created with
        """
        self._client = client
        self.settings = settings
        self._aerospike = _get_aerospike()
        self._errors = self._aerospike.exception

    @classmethod
    def connect(cls, settings: ConnectionSettings) -> "AerospikeStore":
        """Open a connection to the cluster.

        Raises:
            StoreConnectionError: If the client cannot connect
        """
        aerospike = _get_aerospike()

        config: dict[str, Any] = {
            "hosts": [(settings.host, settings.port)],
            "policies": {
                "read": {"total_timeout": settings.timeout_ms},
                "write": {"total_timeout": settings.timeout_ms},
                "remove": {"total_timeout": settings.timeout_ms},
            },
        }
        credentials = settings.credentials
        if credentials is not None:
            config["user"], config["password"] = credentials

        try:
            client = aerospike.client(config)
            if not client.is_connected():
                client.connect()
        except aerospike.exception.AerospikeError as e:
            raise StoreConnectionError(settings.host, settings.port, e) from e

        logger.info(f"Connected to Aerospike at {settings.endpoint}")
        return cls(client, settings)

    def get(
        self,
        address: RecordAddress,
        policy: OperationPolicy,
        fields: Optional[Iterable[str]] = None,
    ) -> Record:
        key = self._native_key(address)
        request_policy = self._policy(policy)

        try:
            if fields is not None:
                _, _, bins = self._client.select(key, list(fields), request_policy)
            else:
                _, _, bins = self._client.get(key, request_policy)
        except self._errors.RecordNotFound as e:
            raise NotFound(str(e)) from e
        except self._errors.AerospikeError as e:
            raise self._request_error(e) from e

        if bins is None:
            raise NotFound(f"Record {address.display_key()} not found")

        # select() reports requested bins that are absent as None
        return {
            name: bytes(value) for name, value in bins.items() if value is not None
        }

    def put(self, address: RecordAddress, record: Record, policy: OperationPolicy) -> None:
        key = self._native_key(address)
        request_policy = self._policy(policy)
        request_policy["exists"] = _exists_action(self._aerospike, policy.existence)
        bins = {name: bytes(value) for name, value in record.items()}

        try:
            self._client.put(key, bins, policy=request_policy)
        except (self._errors.RecordExistsError, self._errors.RecordNotFound) as e:
            raise PreconditionFailed(str(e)) from e
        except self._errors.AerospikeError as e:
            raise self._request_error(e) from e

    def remove(self, address: RecordAddress, policy: OperationPolicy) -> None:
        key = self._native_key(address)

        try:
            self._client.remove(key, policy=self._policy(policy))
        except self._errors.RecordNotFound as e:
            raise NotFound(str(e)) from e
        except self._errors.AerospikeError as e:
            raise self._request_error(e) from e

    def close(self) -> None:
        try:
            self._client.close()
            logger.debug(f"Closed Aerospike connection to {self.settings.endpoint}")
        except self._errors.AerospikeError as e:
            logger.error(f"Error closing Aerospike client: {e}")

    @staticmethod
    def _native_key(address: RecordAddress) -> tuple:
        key = address.key
        if isinstance(key, bytes):
            # The client only accepts bytearray for blob keys
            key = bytearray(key)
        return (address.namespace, address.table, key)

    @staticmethod
    def _policy(policy: OperationPolicy) -> dict[str, Any]:
        return {"total_timeout": policy.timeout_ms}

    def _request_error(self, error: Exception) -> RequestFailure:
        if isinstance(error, self._errors.TimeoutError):
            return RequestTimeout(str(error))
        return RequestFailure(str(error))
