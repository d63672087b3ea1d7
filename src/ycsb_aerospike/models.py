"""Core data models for the Aerospike binding."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_NAMESPACE = "ycsb"
DEFAULT_HOST = "localhost"
DEFAULT_PORT = 3000
DEFAULT_TIMEOUT_MS = 10000

# Field name -> raw payload. No schema; fields vary per write.
Record = dict[str, bytes]


class Status(str, Enum):
    """Outcome reported back to the harness."""

    OK = "ok"
    ERROR = "error"


class ErrorKind(str, Enum):
    """Why an operation returned ERROR."""

    CONNECTION = "connection"
    REQUEST_FAILED = "request_failed"
    TIMEOUT = "timeout"
    NOT_FOUND = "not_found"
    PRECONDITION_FAILED = "precondition_failed"
    INVALID_KEY = "invalid_key"
    UNSUPPORTED = "unsupported"
    CLOSED = "closed"


class Existence(str, Enum):
    """Existence precondition enforced by the store on a write."""

    IGNORE = "ignore"
    CREATE_ONLY = "create_only"
    REPLACE_ONLY = "replace_only"


class ErrorDetail(BaseModel):
    """Structured diagnostic attached to an ERROR result."""

    kind: ErrorKind = Field(..., description="Failure category")
    message: str = Field("", description="Human readable detail")
    key: str | None = Field(None, description="Key the operation was issued for")

    def __str__(self) -> str:
        prefix = f"[{self.kind.value}]"
        if self.key is not None:
            prefix = f"{prefix} key={self.key}"
        return f"{prefix} {self.message}".rstrip()


class OpResult(BaseModel):
    """Tagged result returned by every adapter operation."""

    status: Status = Field(..., description="OK or ERROR")
    record: Record = Field(default_factory=dict, description="Fields returned by read")
    records: list[Record] = Field(
        default_factory=list, description="Records returned by scan"
    )
    error: ErrorDetail | None = Field(None, description="Set when status is ERROR")

    @property
    def ok(self) -> bool:
        return self.status is Status.OK

    @classmethod
    def success(cls, record: Record | None = None) -> "OpResult":
        return cls(status=Status.OK, record=record or {})

    @classmethod
    def failure(
        cls, kind: ErrorKind, message: str = "", key: str | None = None
    ) -> "OpResult":
        return cls(
            status=Status.ERROR,
            error=ErrorDetail(kind=kind, message=message, key=key),
        )


class RecordAddress(BaseModel):
    """Identifies one stored record: (namespace, set, key)."""

    model_config = ConfigDict(frozen=True)

    namespace: str = Field(..., description="Top-level partition")
    table: str = Field(..., description="Set within the namespace")
    key: str | bytes = Field(..., description="Generic or compact key")

    def as_tuple(self) -> tuple[str, str, str | bytes]:
        return (self.namespace, self.table, self.key)

    def display_key(self) -> str:
        """Printable form of the key for diagnostics."""
        if isinstance(self.key, bytes):
            return self.key.hex()
        return self.key


class OperationPolicy(BaseModel):
    """Per-operation request settings."""

    model_config = ConfigDict(frozen=True)

    timeout_ms: int = Field(DEFAULT_TIMEOUT_MS, ge=0, description="Total request timeout")
    existence: Existence = Field(Existence.IGNORE, description="Write precondition")


class PolicySet(BaseModel):
    """The four policies built once at start-up."""

    model_config = ConfigDict(frozen=True)

    read: OperationPolicy
    insert: OperationPolicy
    update: OperationPolicy
    delete: OperationPolicy

    @classmethod
    def with_timeout(cls, timeout_ms: int) -> "PolicySet":
        """Build the standard policies, all sharing one timeout."""
        return cls(
            read=OperationPolicy(timeout_ms=timeout_ms),
            insert=OperationPolicy(
                timeout_ms=timeout_ms, existence=Existence.CREATE_ONLY
            ),
            update=OperationPolicy(
                timeout_ms=timeout_ms, existence=Existence.REPLACE_ONLY
            ),
            delete=OperationPolicy(timeout_ms=timeout_ms),
        )


class ConnectionSettings(BaseModel):
    """Connection options recognised by the binding."""

    model_config = ConfigDict(frozen=True)

    namespace: str = Field(DEFAULT_NAMESPACE, min_length=1)
    host: str = Field(DEFAULT_HOST, min_length=1)
    port: int = Field(DEFAULT_PORT, gt=0, lt=65536)
    timeout_ms: int = Field(DEFAULT_TIMEOUT_MS, ge=0)
    user: str | None = None
    password: str | None = None

    @property
    def credentials(self) -> tuple[str, str] | None:
        """User and password, only when both are supplied."""
        if self.user is not None and self.password is not None:
            return (self.user, self.password)
        return None

    @property
    def endpoint(self) -> str:
        return f"{self.host}:{self.port}"


class BindingSettings(BaseModel):
    """Everything needed to construct a StoreAdapter."""

    model_config = ConfigDict(frozen=True)

    connection: ConnectionSettings = Field(default_factory=ConnectionSettings)
    driver: str = Field("aerospike", description="Store backend: aerospike or memory")
    compact_read_keys: bool = Field(
        True, description="Read with the 4-byte compact key instead of the raw key"
    )

    @field_validator("driver")
    @classmethod
    def validate_driver(cls, v: str) -> str:
        driver = v.strip().lower()
        if driver not in ("aerospike", "memory"):
            raise ValueError(f"Unknown store driver: {v}")
        return driver
