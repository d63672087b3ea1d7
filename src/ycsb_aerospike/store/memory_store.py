"""In-memory store implementation for dry runs and tests."""

from __future__ import annotations

import threading
from collections.abc import Iterable
from typing import Optional

from ..models import Existence, OperationPolicy, Record, RecordAddress
from .base import NotFound, PreconditionFailed, RequestFailure


class InMemoryStore:
    """Thread-safe dict-backed store with Aerospike existence semantics.

    Writes replace the whole record. Timeouts are accepted but never fire.
    """

    def __init__(self) -> None:
        self._records: dict[tuple, Record] = {}
        self._lock = threading.Lock()
        self._closed = False
        self.request_count = 0

    def get(
        self,
        address: RecordAddress,
        policy: OperationPolicy,
        fields: Optional[Iterable[str]] = None,
    ) -> Record:
        with self._lock:
            self._begin_request()
            stored = self._records.get(address.as_tuple())
            if stored is None:
                raise NotFound(f"Record {address.display_key()} not found")
            if fields is None:
                return dict(stored)
            wanted = set(fields)
            return {name: value for name, value in stored.items() if name in wanted}

    def put(self, address: RecordAddress, record: Record, policy: OperationPolicy) -> None:
        with self._lock:
            self._begin_request()
            key = address.as_tuple()
            exists = key in self._records

            if policy.existence is Existence.CREATE_ONLY and exists:
                raise PreconditionFailed(
                    f"Record {address.display_key()} already exists"
                )
            if policy.existence is Existence.REPLACE_ONLY and not exists:
                raise PreconditionFailed(
                    f"Record {address.display_key()} does not exist"
                )

            self._records[key] = {name: bytes(value) for name, value in record.items()}

    def remove(self, address: RecordAddress, policy: OperationPolicy) -> None:
        with self._lock:
            self._begin_request()
            if self._records.pop(address.as_tuple(), None) is None:
                raise NotFound(f"Record {address.display_key()} not found")

    def close(self) -> None:
        with self._lock:
            self._closed = True
            self._records.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def _begin_request(self) -> None:
        if self._closed:
            raise RequestFailure("Store is closed")
        self.request_count += 1
