"""ycsb-aerospike - YCSB-style benchmark binding for Aerospike."""

__version__ = "0.1.0"

from .adapter import AdapterState, StoreAdapter
from .keys import KeyFormatError, compact_key
from .models import ErrorDetail, ErrorKind, OpResult, RecordAddress, Status
from .store import StoreClient, StoreConnectionError

__all__ = [
    "StoreAdapter",
    "AdapterState",
    "OpResult",
    "Status",
    "ErrorKind",
    "ErrorDetail",
    "RecordAddress",
    "StoreClient",
    "StoreConnectionError",
    "KeyFormatError",
    "compact_key",
]
