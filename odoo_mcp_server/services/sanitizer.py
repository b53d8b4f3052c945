# -*- coding: utf-8 -*-
"""Record sanitizer that keeps Odoo payloads small enough for LLM clients."""

import json
import re
from typing import Any, Dict, List, Optional

# Fields that normally hold large binary blobs
BINARY_FIELDS = frozenset({
    'image_1920',
    'image_1024',
    'image_512',
    'image_256',
    'image_128',
    'datas',
    'attachment',
    'content',
    'binary',
    'file',
    'pdf_content',
    'report_file',
})

MAX_RECORDS = 100
DEFAULT_LIMIT = 10
MAX_STRING_LENGTH = 5000

_BASE64_RE = re.compile(r'^[A-Za-z0-9+/]+=*$')


def _normalize_relation(value: Any) -> Any:
    """Turn a Many2one ``[id, name]`` pair into ``{'id': id, 'name': name}``."""
    if (isinstance(value, (list, tuple)) and len(value) == 2
            and _is_id(value[0]) and isinstance(value[1], str)):
        return {'id': value[0], 'name': value[1]}
    return value


def _is_id(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_binary(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, (bytes, bytearray, memoryview)):
        return True
    # long strings that look like base64
    if isinstance(value, str) and len(value) > 1000 and _BASE64_RE.match(value[:100]):
        return True
    return False


def sanitize_record(
    record: Any,
    drop_binary: bool = True,
    normalize_relations: bool = True,
    max_string_length: int = MAX_STRING_LENGTH,
) -> Any:
    if not isinstance(record, dict):
        return record

    sanitized = {}
    for key, value in record.items():
        if drop_binary and (key in BINARY_FIELDS or _is_binary(value)):
            continue

        if normalize_relations:
            value = _normalize_relation(value)

        if isinstance(value, str) and len(value) > max_string_length:
            value = value[:max_string_length] + '... [truncated]'

        # nested objects, but not relations that already carry an id
        if isinstance(value, dict) and 'id' not in value:
            value = sanitize_record(value, drop_binary, normalize_relations, max_string_length)

        sanitized[key] = value

    return sanitized


def enforce_safe_limit(limit: Optional[int] = None) -> int:
    if limit is None:
        return DEFAULT_LIMIT
    return min(max(1, int(limit)), MAX_RECORDS)


def sanitize_records(
    records: Any,
    limit: Optional[int] = None,
    fields: Optional[List[str]] = None,
    drop_binary: bool = True,
    normalize_relations: bool = True,
    max_string_length: int = MAX_STRING_LENGTH,
) -> List[Any]:
    """Sanitize a list of Odoo records.

    Caps the record count, projects onto the requested fields (``id`` is
    always kept), drops binary values, normalizes relations and truncates
    long strings.

    Args:
        records: Records as returned by ``search_read``
        limit: Maximum records to keep (default 10, capped at 100)
        fields: Field names to keep; empty or None keeps all fields
        drop_binary: Drop binary fields and base64-looking values
        normalize_relations: Convert ``[id, name]`` pairs to dicts
        max_string_length: Truncation threshold for string values

    Returns:
        list: Sanitized records
    """
    if not isinstance(records, list):
        return []

    limited = records[:enforce_safe_limit(limit)]

    if fields:
        keep = list(dict.fromkeys(list(fields) + ['id']))
        limited = [
            {name: record[name] for name in keep if name in record}
            if isinstance(record, dict) else record
            for record in limited
        ]

    return [
        sanitize_record(record, drop_binary, normalize_relations, max_string_length)
        for record in limited
    ]


def get_sanitization_stats(original: List[Any], sanitized: List[Any]) -> Dict[str, Any]:
    original_size = len(json.dumps(original, default=str))
    sanitized_size = len(json.dumps(sanitized, default=str))
    if original_size > 0:
        reduction = f"{(1 - sanitized_size / original_size) * 100:.1f}%"
    else:
        reduction = '0%'

    return {
        'original_count': len(original),
        'sanitized_count': len(sanitized),
        'records_dropped': len(original) - len(sanitized),
        'estimated_size_reduction': reduction,
    }
