"""Store client protocol and the errors backends raise."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Optional, Protocol, runtime_checkable

from ..models import OperationPolicy, Record, RecordAddress


class StoreError(Exception):
    """Base class for failures reported by a store backend."""


class StoreConnectionError(StoreError):
    """The store could not be reached at start-up."""

    def __init__(self, host: str, port: int, cause: Optional[BaseException] = None):
        self.host = host
        self.port = port
        self.cause = cause
        message = f"Error while creating Aerospike client for {host}:{port}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class RequestFailure(StoreError):
    """A request was sent but the store or transport reported a fault."""


class RequestTimeout(RequestFailure):
    """A request did not complete within its policy timeout."""


class NotFound(StoreError):
    """No record exists at the requested address."""


class PreconditionFailed(StoreError):
    """A write's existence precondition was not met."""


@runtime_checkable
class StoreClient(Protocol):
    """Protocol for key-value store backends."""

    def get(
        self,
        address: RecordAddress,
        policy: OperationPolicy,
        fields: Optional[Iterable[str]] = None,
    ) -> Record:
        """Fetch a record.

        Args:
            address: Record to fetch
            policy: Read policy
            fields: Field names to return; None returns every field

        Raises:
            NotFound: If the record does not exist
            RequestFailure: On any other fault
        """
        ...

    def put(self, address: RecordAddress, record: Record, policy: OperationPolicy) -> None:
        """Write a full record under the policy's existence precondition.

        Raises:
            PreconditionFailed: If the precondition does not hold
            RequestFailure: On any other fault
        """
        ...

    def remove(self, address: RecordAddress, policy: OperationPolicy) -> None:
        """Delete a record.

        Raises:
            NotFound: If nothing was stored at the address
            RequestFailure: On any other fault
        """
        ...

    def close(self) -> None:
        """Release the connection."""
        ...
