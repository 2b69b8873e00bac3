"""
Unit tests for durable stores, snapshot encoding and the snapshot writer.
"""

import asyncio
import gzip
import json

import pytest

from perfcore.exceptions import PersistenceException
from perfcore.infrastructure.repositories.durable_store import (
    FileDurableStore,
    InMemoryDurableStore,
)
from perfcore.infrastructure.serialization import (
    JsonSizeEstimator,
    canonical_json,
    decode_snapshot,
    encode_snapshot,
)
from perfcore.infrastructure.snapshot_writer import SnapshotWriter


class TestSerialization:
    """Test size estimation and snapshot encoding."""

    def test_canonical_json_sorted_and_compact(self):
        """Test canonical JSON is key-sorted without whitespace."""
        assert canonical_json({"b": 1, "a": [1, 2]}) == '{"a":[1,2],"b":1}'

    def test_size_estimate_is_utf8_length(self):
        """Test the estimate counts UTF-8 bytes."""
        estimator = JsonSizeEstimator()

        assert estimator.estimate("abc") == 5
        assert estimator.estimate("é") == 4
        assert estimator.estimate({"k": 1}) == 7

    def test_size_estimate_non_json_values(self):
        """Test values without a JSON form are sized through str()."""
        estimator = JsonSizeEstimator()

        assert estimator.estimate({1, 2}) > 0

    def test_snapshot_layout(self):
        """Test the uncompressed snapshot envelope."""
        payload = encode_snapshot([{"key": "a"}])
        data = json.loads(payload.decode("utf-8"))

        assert data["version"] == 1
        assert data["entries"] == [{"key": "a"}]
        assert "saved_at" in data

    def test_compressed_snapshot(self):
        """Test gzip snapshots decode to the same envelope."""
        payload = encode_snapshot([{"key": "a"}], compress=True)

        assert json.loads(gzip.decompress(payload))["entries"] == [{"key": "a"}]
        assert decode_snapshot(payload)["entries"] == [{"key": "a"}]

    def test_unencodable_record_skipped(self):
        """Test a record JSON cannot encode is left out of the snapshot."""
        payload = encode_snapshot(
            [{"key": "ok", "value": 1}, {"key": "bad", "value": {(1, 2): "x"}}]
        )

        assert decode_snapshot(payload)["entries"] == [{"key": "ok", "value": 1}]


class TestDurableStores:
    """Test durable store implementations."""

    @pytest.mark.asyncio
    async def test_in_memory_overwrites(self):
        """Test the in-memory store keeps the last payload."""
        store = InMemoryDurableStore()
        await store.put("performanceCache", b"one")
        await store.put("performanceCache", b"two")

        assert store.read("performanceCache") == b"two"
        assert store.write_count == 2
        assert store.keys() == ["performanceCache"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("key", ["", "..", "../escape", "a/b", "with space"])
    async def test_invalid_keys_rejected(self, key):
        """Test keys that could escape the store directory are rejected."""
        store = InMemoryDurableStore()

        with pytest.raises(PersistenceException):
            await store.put(key, b"x")

    @pytest.mark.asyncio
    async def test_file_store_writes_atomically(self, tmp_path):
        """Test the file store writes one file per key."""
        store = FileDurableStore(tmp_path / "snapshots")
        await store.put("backgroundTasks", b"payload")

        assert (tmp_path / "snapshots" / "backgroundTasks").read_bytes() == b"payload"
        assert store.read("backgroundTasks") == b"payload"
        assert store.read("missing") is None
        assert not list((tmp_path / "snapshots").glob(".*.tmp"))

    @pytest.mark.asyncio
    async def test_file_store_wraps_os_errors(self, tmp_path):
        """Test OS failures surface as PersistenceException."""
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("file in the way")
        store = FileDurableStore(blocker)

        with pytest.raises(PersistenceException) as exc_info:
            await store.put("performanceCache", b"x")

        assert exc_info.value.error_code == "PERSISTENCE_ERROR"
        assert isinstance(exc_info.value.__cause__, OSError)


class TestSnapshotWriter:
    """Test coalescing snapshot writes."""

    @pytest.mark.asyncio
    async def test_coalesces_while_queued(self):
        """Test repeated schedules before the write runs produce one write."""
        store = InMemoryDurableStore()
        records = [{"n": 1}]
        writer = SnapshotWriter(store, "performanceCache", lambda: records)

        writer.schedule()
        records.append({"n": 2})
        writer.schedule()
        await writer.flush()

        assert store.write_count == 1
        assert decode_snapshot(store.read("performanceCache"))["entries"] == [
            {"n": 1},
            {"n": 2},
        ]
        assert writer.pending == 0

    @pytest.mark.asyncio
    async def test_schedule_during_write_queues_another(self):
        """Test a mutation during a write is captured by a second write."""
        gate = asyncio.Event()

        class SlowStore(InMemoryDurableStore):
            async def put(self, key, value):
                await gate.wait()
                await super().put(key, value)

        store = SlowStore()
        records = [1]
        writer = SnapshotWriter(store, "performanceCache", lambda: list(records))

        writer.schedule()
        await asyncio.sleep(0)
        records.append(2)
        writer.schedule()
        gate.set()
        await writer.flush()

        assert store.write_count == 2
        assert decode_snapshot(store.read("performanceCache"))["entries"] == [1, 2]

    def test_schedule_outside_event_loop_is_deferred(self):
        """Test a write requested without a running loop waits for the next flush."""
        store = InMemoryDurableStore()
        writer = SnapshotWriter(store, "performanceCache", lambda: [{"n": 1}])

        writer.schedule()

        assert writer.dirty is True
        assert writer.pending == 0
        assert store.read("performanceCache") is None

        asyncio.run(writer.flush())

        assert writer.dirty is False
        assert store.write_count == 1
        assert decode_snapshot(store.read("performanceCache"))["entries"] == [{"n": 1}]
