"""Deterministic content hash used as backend identity during reconciliation."""

import hashlib
import json
from typing import Any


def canonical_json(value: Any) -> str:
    """Sorted-key, whitespace-free JSON so equal content always encodes identically."""
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str)


def content_hash(value: Any) -> str:
    return hashlib.md5(canonical_json(value).encode("utf-8")).hexdigest()
