"""
Serialization

Canonical JSON size estimation and snapshot encoding for persistence.
"""

import gzip
import json
from typing import Any, Dict, Iterable, List

import structlog

from ..constants import SNAPSHOT_VERSION, get_current_timestamp
from ..domain.cache.repository_interfaces import SizeEstimatorInterface

logger = structlog.get_logger(__name__)


def canonical_json(value: Any) -> str:
    """Deterministic compact JSON; non-JSON values fall back to str()."""
    return json.dumps(
        value, default=str, sort_keys=True, separators=(",", ":"), ensure_ascii=False
    )


class JsonSizeEstimator(SizeEstimatorInterface):
    """Size of a value as the UTF-8 byte length of its canonical JSON form."""

    def estimate(self, value: Any) -> int:
        return len(canonical_json(value).encode("utf-8"))


def _encodable(records: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Records JSON can encode; the rest are dropped with a warning."""
    kept = []
    for record in records:
        record_key = record.get("key", record.get("id")) if isinstance(record, dict) else None
        try:
            json.dumps(record, default=str)
        except (TypeError, ValueError) as e:
            logger.warning(
                "snapshot_record_skipped",
                record_key=record_key,
                error=str(e),
            )
            continue
        kept.append(record)
    return kept


def encode_snapshot(
    records: Iterable[Dict[str, Any]], *, compress: bool = False
) -> bytes:
    """
    Encode a collection snapshot.

    Layout: ``{"version": 1, "saved_at": <iso8601>, "entries": [...]}``,
    UTF-8 JSON, gzip-compressed when ``compress`` is set. Records that
    cannot be encoded are left out of the snapshot.
    """
    payload = {
        "version": SNAPSHOT_VERSION,
        "saved_at": get_current_timestamp().isoformat(),
        "entries": _encodable(records),
    }
    data = json.dumps(payload, default=str).encode("utf-8")
    if compress:
        return gzip.compress(data)
    return data


def decode_snapshot(data: bytes) -> Dict[str, Any]:
    """Decode bytes produced by encode_snapshot, compressed or not."""
    if data[:2] == b"\x1f\x8b":
        data = gzip.decompress(data)
    return json.loads(data.decode("utf-8"))
