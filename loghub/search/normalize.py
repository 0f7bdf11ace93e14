"""Result normalization: raw backend records -> canonical Result.

Covers
  - leading-timestamp extraction from free-text messages
  - field-based extraction for structured stores (message / timestamp fields)
  - label flattening (nested documents -> dot-joined keys, stringified values)
  - field exclusion by regular expression
  - over-fetch pagination (request limit + 1, cursor from the last returned row)

Records that cannot be normalized are skipped and logged at DEBUG; they never
fail a search.
"""

import logging
import re
from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any, TypeVar

from loghub.contracts.errors import ConfigurationError
from loghub.contracts.logs_v1 import Result
from loghub.utils.hash import canonical_json
from loghub.utils.timeparse import parse_rfc3339

logger = logging.getLogger(__name__)

T = TypeVar("T")

_MISSING = object()


def stringify(value: Any) -> str:
    """Strings pass through; everything else becomes compact JSON."""
    if isinstance(value, str):
        return value
    return canonical_json(value)


def extract_timestamp(message: str) -> tuple[str, str]:
    """Split a leading RFC3339 token off ``message``.

    Returns (time, message). When the first whitespace-separated token is not
    an RFC3339 timestamp the message is returned untouched with an empty time.
    """
    parts = message.split(maxsplit=1)
    if not parts:
        return "", message
    token = parts[0]
    if parse_rfc3339(token) is None:
        return "", message
    return token, message.replace(token, "", 1).strip()


def process_result(result: Result) -> Result:
    """Promote a message-embedded timestamp when the record has none."""
    if result.time:
        return result
    time, message = extract_timestamp(result.message)
    if not time:
        return result
    return result.model_copy(update={"time": time, "message": message})


def flatten_labels(source: Mapping[str, Any], prefix: str = "") -> dict[str, str]:
    """{"a": {"b": 1}} -> {"a.b": "1"}."""
    labels: dict[str, str] = {}
    for key, value in source.items():
        compound = f"{prefix}{key}"
        if isinstance(value, Mapping) and value:
            labels.update(flatten_labels(value, prefix=f"{compound}."))
        else:
            labels[compound] = stringify(value)
    return labels


def compile_exclusions(patterns: Iterable[str]) -> list[re.Pattern[str]]:
    compiled = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(pattern))
        except re.error as e:
            raise ConfigurationError(f"error compiling the regexp [{pattern}]: {e}") from e
    return compiled


def _lookup(source: Mapping[str, Any], field: str) -> Any:
    """Direct key first, then a dotted path into nested mappings."""
    if field in source:
        return source[field]
    node: Any = source
    for part in field.split("."):
        if not isinstance(node, Mapping) or part not in node:
            return _MISSING
        node = node[part]
    return node


def _is_field(key: str, field: str) -> bool:
    return bool(field) and (key == field or key.startswith(f"{field}."))


class HitNormalizer:
    """Turns structured-store hits (``_id`` / ``_index`` / ``_source``) into Results.

    With ``drop_duplicate_content`` set, a record is dropped when any excluded
    field carries exactly the extracted message (the same line indexed twice
    under different fields). Excluded fields never appear in labels.

    Without a message field the whole ``_source`` document becomes the message
    and the only label is the index name.
    """

    def __init__(
        self,
        message_field: str = "",
        timestamp_field: str = "",
        exclusions: Sequence[str] = (),
        drop_duplicate_content: bool = False,
    ):
        self.message_field = message_field
        self.timestamp_field = timestamp_field
        self.exclusions = compile_exclusions(exclusions)
        self.drop_duplicate_content = drop_duplicate_content

    def _excluded(self, key: str) -> bool:
        return any(r.search(key) for r in self.exclusions)

    def normalize(self, hit: Mapping[str, Any]) -> Result | None:
        source = hit.get("_source")
        if not isinstance(source, Mapping):
            logger.debug("invalid _source type [%s] in hit %s", type(source).__name__, hit.get("_id"))
            return None

        hit_id = stringify(hit.get("_id", ""))
        if not self.message_field:
            result = Result(
                id=hit_id,
                message=stringify(source),
                labels={"index": stringify(hit.get("_index", ""))},
            )
            return process_result(result)

        raw_message = _lookup(source, self.message_field)
        if raw_message is _MISSING:
            logger.debug("message field [%s] not found in hit %s", self.message_field, hit_id)
            return None
        message = stringify(raw_message)

        flattened = {
            k: v
            for k, v in flatten_labels(source).items()
            if not _is_field(k, self.message_field) and not _is_field(k, self.timestamp_field)
        }
        excluded = {k for k in flattened if self._excluded(k)}
        if self.drop_duplicate_content and any(flattened[k] == message for k in excluded):
            logger.debug("message excluded as duplicate content: %s", message[:200])
            return None

        time = ""
        if self.timestamp_field:
            raw_time = _lookup(source, self.timestamp_field)
            if raw_time is not _MISSING and raw_time is not None:
                time = stringify(raw_time)

        result = Result(
            id=hit_id,
            time=time,
            message=message,
            labels={k: v for k, v in flattened.items() if k not in excluded},
        )
        return process_result(result)

    def normalize_hits(self, hits: Iterable[Any]) -> list[Result]:
        results = []
        for hit in hits:
            if not isinstance(hit, Mapping):
                logger.debug("invalid hit type [%s]: %r", type(hit).__name__, hit)
                continue
            result = self.normalize(hit)
            if result is not None:
                results.append(result)
        return results


def paginate(rows: Sequence[T], limit: int, cursor_of: Callable[[T], str]) -> tuple[list[T], str]:
    """Apply the over-fetch protocol to rows fetched with size ``limit + 1``.

    Up to ``limit`` rows: all returned, no cursor. More: the first ``limit``
    rows are returned and the cursor comes from the last of them, since
    ``search_after`` resumes strictly after the row it names. The extra row
    only signals that a next page exists.
    """
    if limit <= 0 or len(rows) <= limit:
        return list(rows), ""
    return list(rows[:limit]), cursor_of(rows[limit - 1])


def hit_cursor(hit: Any) -> str:
    """Backend sort key of a hit, stringified verbatim; falls back to its id."""
    if not isinstance(hit, Mapping):
        return ""
    sort = hit.get("sort")
    if sort is not None:
        return stringify(sort)
    return stringify(hit.get("_id", ""))


def total_from_hits(hits: Any) -> int:
    """Accepts ``{"total": {"value": N}}`` and legacy ``{"total": N}``; else 0."""
    if not isinstance(hits, Mapping):
        return 0
    total = hits.get("total")
    if isinstance(total, Mapping):
        total = total.get("value")
    if isinstance(total, bool) or not isinstance(total, (int, float)):
        return 0
    return int(total)
