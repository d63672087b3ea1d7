"""Tests for StoreAdapter operations."""

import logging
from concurrent.futures import ThreadPoolExecutor

import pytest

from ycsb_aerospike.adapter import StoreAdapter
from ycsb_aerospike.keys import compact_key
from ycsb_aerospike.models import (
    BindingSettings,
    ConnectionSettings,
    ErrorKind,
    Existence,
    RecordAddress,
    Status,
)
from ycsb_aerospike.store import RequestFailure, RequestTimeout
from ycsb_aerospike.store.memory_store import InMemoryStore

TABLE = "usertable"


class FailingStore:
    """Store whose every request fails with the given error."""

    def __init__(self, error):
        self.error = error
        self.closed = 0

    def get(self, address, policy, fields=None):
        raise self.error

    def put(self, address, record, policy):
        raise self.error

    def remove(self, address, policy):
        raise self.error

    def close(self):
        self.closed += 1


@pytest.fixture
def store():
    """Fresh in-memory store."""
    return InMemoryStore()


@pytest.fixture
def adapter(store):
    """Adapter that reads with the same key it writes."""
    settings = BindingSettings(
        connection=ConnectionSettings(namespace="ycsb"),
        driver="memory",
        compact_read_keys=False,
    )
    return StoreAdapter.from_settings(settings, store=store)


@pytest.fixture
def compact_adapter(store):
    """Adapter with the default compact-key read path."""
    return StoreAdapter.from_settings(BindingSettings(driver="memory"), store=store)


def test_policies_share_timeout_and_preconditions(store):
    """Test that the four policies are built from the configured timeout."""
    settings = BindingSettings(
        connection=ConnectionSettings(timeout_ms=250), driver="memory"
    )
    adapter = StoreAdapter.from_settings(settings, store=store)
    policies = adapter.state.policies

    for policy in (policies.read, policies.insert, policies.update, policies.delete):
        assert policy.timeout_ms == 250

    assert policies.read.existence is Existence.IGNORE
    assert policies.insert.existence is Existence.CREATE_ONLY
    assert policies.update.existence is Existence.REPLACE_ONLY
    assert policies.delete.existence is Existence.IGNORE


def test_insert_read_delete_scenario(adapter):
    """Test the basic insert, read, delete round trip."""
    assert adapter.insert(TABLE, "user42", {"field0": b"hello"}).status is Status.OK

    result = adapter.read(TABLE, "user42", {"field0"})
    assert result.status is Status.OK
    assert result.record == {"field0": b"hello"}

    assert adapter.delete(TABLE, "user42").status is Status.OK

    result = adapter.read(TABLE, "user42", {"field0"})
    assert result.status is Status.ERROR
    assert result.error.kind is ErrorKind.NOT_FOUND


def test_read_missing_record_returns_empty_error(adapter):
    """Test that a read miss reports ERROR with no fields populated."""
    result = adapter.read(TABLE, "user1")

    assert result.status is Status.ERROR
    assert result.record == {}
    assert result.error.kind is ErrorKind.NOT_FOUND


def test_read_miss_is_not_logged_above_debug(adapter, caplog):
    """Test that expected read misses stay out of the error log."""
    with caplog.at_level(logging.INFO, logger="ycsb_aerospike"):
        adapter.read(TABLE, "user1")

    assert caplog.records == []


def test_read_all_fields_and_subset(adapter):
    """Test that absent or empty field sets fetch every field."""
    values = {"field0": b"a", "field1": b"b", "field2": b"\x00\xff"}
    adapter.insert(TABLE, "user7", values)

    assert adapter.read(TABLE, "user7").record == values
    assert adapter.read(TABLE, "user7", set()).record == values
    assert adapter.read(TABLE, "user7", ["field1"]).record == {"field1": b"b"}


def test_double_insert_fails(adapter):
    """Test that insert requires the record to be absent."""
    assert adapter.insert(TABLE, "user5", {"f": b"1"}).ok

    result = adapter.insert(TABLE, "user5", {"f": b"2"})
    assert result.status is Status.ERROR
    assert result.error.kind is ErrorKind.PRECONDITION_FAILED
    assert adapter.read(TABLE, "user5").record == {"f": b"1"}


def test_update_requires_existing_record(adapter):
    """Test that update on an absent record fails."""
    result = adapter.update(TABLE, "user9", {"f": b"1"})

    assert result.status is Status.ERROR
    assert result.error.kind is ErrorKind.PRECONDITION_FAILED
    assert adapter.read(TABLE, "user9").status is Status.ERROR


def test_update_replaces_whole_record(adapter):
    """Test that update overwrites all fields rather than merging."""
    assert adapter.insert(TABLE, "user3", {"field0": b"a", "field1": b"b"}).ok
    assert adapter.update(TABLE, "user3", {"field1": b"c"}).ok

    assert adapter.read(TABLE, "user3").record == {"field1": b"c"}


def test_write_accepts_bytes_like_and_text(adapter):
    """Test that field payloads are normalised to bytes."""
    adapter.insert(
        TABLE,
        "user8",
        {"a": bytearray(b"x"), "b": memoryview(b"y"), "c": "z"},
    )

    record = adapter.read(TABLE, "user8").record
    assert record == {"a": b"x", "b": b"y", "c": b"z"}
    assert all(type(value) is bytes for value in record.values())


def test_delete_missing_record_fails(adapter, caplog):
    """Test that deleting nothing reports ERROR and logs it."""
    with caplog.at_level(logging.ERROR, logger="ycsb_aerospike"):
        result = adapter.delete(TABLE, "user404")

    assert result.status is Status.ERROR
    assert result.error.kind is ErrorKind.NOT_FOUND
    assert "user404" in caplog.text


def test_tables_are_separate(adapter):
    """Test that the same key in two sets addresses two records."""
    adapter.insert("t1", "user1", {"f": b"1"})

    assert adapter.insert("t2", "user1", {"f": b"2"}).ok
    assert adapter.read("t1", "user1").record == {"f": b"1"}
    assert adapter.read("t2", "user1").record == {"f": b"2"}


def test_scan_always_fails_without_request(adapter, store):
    """Test that scan never reaches the store."""
    adapter.insert(TABLE, "user1", {"f": b"1"})
    before = store.request_count

    result = adapter.scan(TABLE, "user1", 10, {"f"})

    assert result.status is Status.ERROR
    assert result.error.kind is ErrorKind.UNSUPPORTED
    assert result.records == []
    assert store.request_count == before


def test_compact_read_uses_binary_key(compact_adapter, store):
    """Test that the default read path addresses the 4-byte key."""
    address = RecordAddress(
        namespace="ycsb", table=TABLE, key=compact_key("user3232235777")
    )
    store.put(address, {"field0": b"ip"}, compact_adapter.state.policies.insert)

    result = compact_adapter.read(TABLE, "user3232235777", ["field0"])
    assert result.ok
    assert result.record == {"field0": b"ip"}

    # Same low 32 bits, different suffix
    alias = f"user{3232235777 + 2**32}"
    assert compact_adapter.read(TABLE, alias).record == {"field0": b"ip"}


def test_compact_read_does_not_see_generic_writes(compact_adapter):
    """Test that writes keep the generic key while reads use the compact one."""
    assert compact_adapter.insert(TABLE, "user42", {"f": b"1"}).ok

    assert compact_adapter.read(TABLE, "user42").status is Status.ERROR
    assert compact_adapter.delete(TABLE, "user42").ok


def test_compact_read_rejects_malformed_key(compact_adapter, store, caplog):
    """Test that a malformed key is reported as ERROR without a request."""
    with caplog.at_level(logging.ERROR, logger="ycsb_aerospike"):
        result = compact_adapter.read(TABLE, "userabc")

    assert result.status is Status.ERROR
    assert result.error.kind is ErrorKind.INVALID_KEY
    assert store.request_count == 0
    assert "userabc" in caplog.text


def test_compact_read_rejects_overlong_key(compact_adapter, store):
    """Test that a suffix too long to parse is ERROR, not an exception."""
    result = compact_adapter.read(TABLE, "user" + "9" * 5000)

    assert result.status is Status.ERROR
    assert result.error.kind is ErrorKind.INVALID_KEY
    assert store.request_count == 0


def test_request_failures_collapse_to_error(caplog):
    """Test that store faults are logged and returned, never raised."""
    store = FailingStore(RequestFailure("connection reset"))
    adapter = StoreAdapter.from_settings(BindingSettings(driver="memory"), store=store)

    with caplog.at_level(logging.ERROR, logger="ycsb_aerospike"):
        results = [
            adapter.read(TABLE, "user77"),
            adapter.insert(TABLE, "user77", {"f": b"1"}),
            adapter.update(TABLE, "user77", {"f": b"1"}),
            adapter.delete(TABLE, "user77"),
        ]

    for result in results:
        assert result.status is Status.ERROR
        assert result.error.kind is ErrorKind.REQUEST_FAILED
        assert "connection reset" in result.error.message

    # Read diagnostics carry the parsed number
    assert "Error while reading key 77" in caplog.text
    assert "Error while writing key user77" in caplog.text
    assert "Error while deleting key user77" in caplog.text


def test_timeouts_are_reported_as_timeout():
    """Test that timeouts keep their own error kind."""
    store = FailingStore(RequestTimeout("timed out"))
    adapter = StoreAdapter.from_settings(BindingSettings(driver="memory"), store=store)

    result = adapter.insert(TABLE, "user1", {"f": b"1"})

    assert result.status is Status.ERROR
    assert result.error.kind is ErrorKind.TIMEOUT


def test_cleanup_closes_once():
    """Test that cleanup closes the store exactly once."""
    store = FailingStore(RequestFailure("unused"))
    adapter = StoreAdapter.from_settings(BindingSettings(driver="memory"), store=store)

    adapter.cleanup()
    adapter.cleanup()

    assert store.closed == 1
    assert adapter.closed


def test_operations_after_cleanup_fail(adapter):
    """Test that a closed adapter reports ERROR instead of raising."""
    adapter.cleanup()

    for result in (
        adapter.read(TABLE, "user1"),
        adapter.insert(TABLE, "user1", {"f": b"1"}),
        adapter.update(TABLE, "user1", {"f": b"1"}),
        adapter.delete(TABLE, "user1"),
    ):
        assert result.status is Status.ERROR
        assert result.error.kind is ErrorKind.CLOSED


def test_context_manager_closes(store):
    """Test that leaving the with block closes the adapter."""
    with StoreAdapter.from_settings(BindingSettings(driver="memory"), store=store) as adapter:
        assert not adapter.closed

    assert adapter.closed


def test_from_settings_builds_memory_store():
    """Test that the memory driver needs no external store."""
    adapter = StoreAdapter.from_settings(
        BindingSettings(driver="memory", compact_read_keys=False)
    )

    assert isinstance(adapter.state.store, InMemoryStore)
    assert adapter.state.namespace == "ycsb"
    assert adapter.insert(TABLE, "user1", {"f": b"1"}).ok
    assert adapter.read(TABLE, "user1").ok


def test_concurrent_operations_on_separate_keys(adapter, store):
    """Test that parallel callers on distinct keys all succeed."""

    def lifecycle(i):
        key = f"user{i}"
        statuses = [
            adapter.insert(TABLE, key, {"field0": str(i).encode()}).status,
            adapter.update(TABLE, key, {"field0": f"v{i}".encode()}).status,
        ]
        read = adapter.read(TABLE, key)
        statuses.append(read.status)
        statuses.append(adapter.delete(TABLE, key).status)
        return statuses, read.record

    with ThreadPoolExecutor(max_workers=8) as pool:
        outcomes = list(pool.map(lifecycle, range(200)))

    for i, (statuses, record) in enumerate(outcomes):
        assert statuses == [Status.OK] * 4
        assert record == {"field0": f"v{i}".encode()}
    assert len(store) == 0


def test_concurrent_inserts_on_one_key_admit_a_single_winner(adapter):
    """Test that the create-only precondition holds under contention."""
    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(
            pool.map(
                lambda i: adapter.insert(TABLE, "user1", {"f": str(i).encode()}),
                range(50),
            )
        )

    assert sum(result.ok for result in results) == 1
    assert all(
        result.error.kind is ErrorKind.PRECONDITION_FAILED
        for result in results
        if not result.ok
    )
