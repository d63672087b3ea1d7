"""Store adapter exposing the harness CRUD contract over a StoreClient."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Union

from .config import Config
from .keys import KeyFormatError, encode_number, parse_key_number
from .models import (
    BindingSettings,
    ErrorKind,
    OperationPolicy,
    OpResult,
    PolicySet,
    Record,
    RecordAddress,
)
from .store import (
    NotFound,
    PreconditionFailed,
    RequestFailure,
    RequestTimeout,
    StoreClient,
    make_store,
)

logger = logging.getLogger(__name__)

FieldValue = Union[bytes, bytearray, memoryview, str]


@dataclass(frozen=True)
class AdapterState:
    """Everything an operation needs, fixed at start-up."""

    store: StoreClient
    namespace: str
    policies: PolicySet
    compact_read_keys: bool = True

    def address(self, table: str, key: str | bytes) -> RecordAddress:
        return RecordAddress(namespace=self.namespace, table=table, key=key)


def _to_record(values: Mapping[str, FieldValue]) -> Record:
    record: Record = {}
    for name, value in values.items():
        if isinstance(value, str):
            record[name] = value.encode("utf-8")
        else:
            record[name] = bytes(value)
    return record


def _request_failed(error: RequestFailure, key: str) -> OpResult:
    kind = ErrorKind.REQUEST_FAILED
    if isinstance(error, RequestTimeout):
        kind = ErrorKind.TIMEOUT
    return OpResult.failure(kind, str(error), key=key)


class StoreAdapter:
    """Harness-facing binding for an Aerospike-style key-value store.

    Every operation returns an OpResult; failures are logged and reported as
    ERROR rather than raised. Only construction can fail with an exception.
    """

    def __init__(self, state: AdapterState):
        self._state = state
        self._closed = False

    @classmethod
    def from_settings(
        cls, settings: BindingSettings, store: StoreClient | None = None
    ) -> "StoreAdapter":
        """Connect to the configured store and build the operation policies.

        Args:
            settings: Validated binding settings
            store: Pre-built client; when omitted one is created for
                ``settings.driver``

        Raises:
            StoreConnectionError: If the store cannot be reached
        """
        connection = settings.connection
        if store is None:
            store = make_store(settings.driver, connection)

        state = AdapterState(
            store=store,
            namespace=connection.namespace,
            policies=PolicySet.with_timeout(connection.timeout_ms),
            compact_read_keys=settings.compact_read_keys,
        )
        return cls(state)

    @classmethod
    def from_config(cls, config: Config) -> "StoreAdapter":
        return cls.from_settings(config.binding_settings())

    @property
    def state(self) -> AdapterState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._closed

    def read(
        self, table: str, key: str, fields: Iterable[str] | None = None
    ) -> OpResult:
        """Fetch a record, optionally limited to the named fields.

        A missing record is the common case under read-miss-heavy workloads
        and is only logged at DEBUG.
        """
        if self._closed:
            return self._closed_result(key)

        state = self._state
        log_key = key
        if state.compact_read_keys:
            try:
                number = parse_key_number(key)
            except KeyFormatError as e:
                logger.error(f"Error while reading key {key}: {e}")
                return OpResult.failure(ErrorKind.INVALID_KEY, str(e), key=key)
            store_key: str | bytes = encode_number(number)
            log_key = str(number)
        else:
            store_key = key

        requested = list(fields) if fields else None
        address = state.address(table, store_key)

        try:
            record = state.store.get(address, state.policies.read, requested)
        except NotFound as e:
            logger.debug(f"Record key {log_key} not found (read)")
            return OpResult.failure(ErrorKind.NOT_FOUND, str(e), key=log_key)
        except RequestFailure as e:
            logger.error(f"Error while reading key {log_key}: {e}")
            return _request_failed(e, log_key)

        return OpResult.success(dict(record))

    def scan(
        self,
        table: str,
        start_key: str,
        count: int,
        fields: Iterable[str] | None = None,
    ) -> OpResult:
        """Range scans are not supported; always ERROR without a request."""
        logger.warning("Scan not implemented")
        return OpResult.failure(
            ErrorKind.UNSUPPORTED, "Scan not implemented", key=start_key
        )

    def update(self, table: str, key: str, values: Mapping[str, FieldValue]) -> OpResult:
        """Replace an existing record; ERROR if it does not exist."""
        return self._write(table, key, values, self._state.policies.update)

    def insert(self, table: str, key: str, values: Mapping[str, FieldValue]) -> OpResult:
        """Create a new record; ERROR if one already exists."""
        return self._write(table, key, values, self._state.policies.insert)

    def delete(self, table: str, key: str) -> OpResult:
        """Remove a record; ERROR if nothing was stored under the key."""
        if self._closed:
            return self._closed_result(key)

        state = self._state
        address = state.address(table, key)

        try:
            state.store.remove(address, state.policies.delete)
        except NotFound as e:
            logger.error(f"Record key {key} not found (delete)")
            return OpResult.failure(ErrorKind.NOT_FOUND, str(e), key=key)
        except RequestFailure as e:
            logger.error(f"Error while deleting key {key}: {e}")
            return _request_failed(e, key)

        return OpResult.success()

    def cleanup(self) -> None:
        """Close the store connection. Later operations return ERROR."""
        if self._closed:
            return
        self._closed = True
        self._state.store.close()

    close = cleanup

    def __enter__(self) -> "StoreAdapter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cleanup()

    def _write(
        self,
        table: str,
        key: str,
        values: Mapping[str, FieldValue],
        policy: OperationPolicy,
    ) -> OpResult:
        if self._closed:
            return self._closed_result(key)

        state = self._state
        address = state.address(table, key)
        record = _to_record(values)

        try:
            state.store.put(address, record, policy)
        except PreconditionFailed as e:
            logger.error(
                f"Error while writing key {key}: precondition "
                f"{policy.existence.value} failed: {e}"
            )
            return OpResult.failure(ErrorKind.PRECONDITION_FAILED, str(e), key=key)
        except RequestFailure as e:
            logger.error(f"Error while writing key {key}: {e}")
            return _request_failed(e, key)

        return OpResult.success()

    def _closed_result(self, key: str) -> OpResult:
        logger.error(f"Operation on key {key} after cleanup")
        return OpResult.failure(ErrorKind.CLOSED, "Adapter has been closed", key=key)
