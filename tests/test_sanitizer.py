"""Tests for the Odoo record sanitizer."""

import base64

from odoo_mcp_server.services.sanitizer import (
    DEFAULT_LIMIT,
    MAX_RECORDS,
    enforce_safe_limit,
    get_sanitization_stats,
    sanitize_record,
    sanitize_records,
)


# ---------------------------------------------------------------------------
# enforce_safe_limit
# ---------------------------------------------------------------------------

class TestEnforceSafeLimit:
    """Test record limit clamping."""

    def test_default(self):
        assert enforce_safe_limit() == DEFAULT_LIMIT == 10

    def test_capped(self):
        assert enforce_safe_limit(5000) == MAX_RECORDS == 100

    def test_minimum_one(self):
        assert enforce_safe_limit(0) == 1
        assert enforce_safe_limit(-3) == 1


# ---------------------------------------------------------------------------
# sanitize_record
# ---------------------------------------------------------------------------

class TestSanitizeRecord:
    """Test single record sanitization."""

    def test_drops_binary_fields_by_name(self):
        record = {"id": 1, "name": "Logo", "image_1920": "abc", "datas": "xyz"}
        assert sanitize_record(record) == {"id": 1, "name": "Logo"}

    def test_drops_base64_looking_values(self):
        blob = base64.b64encode(b"\x00" * 2000).decode()
        record = {"id": 1, "signature": blob}
        assert sanitize_record(record) == {"id": 1}

    def test_drops_bytes(self):
        assert sanitize_record({"id": 1, "raw": b"\x00\x01"}) == {"id": 1}

    def test_keeps_binary_when_disabled(self):
        record = {"id": 1, "image_1920": "abc"}
        assert sanitize_record(record, drop_binary=False) == record

    def test_normalizes_many2one(self):
        record = {"id": 1, "partner_id": [7, "Azure Interior"], "tag_ids": [1, 2]}
        assert sanitize_record(record) == {
            "id": 1,
            "partner_id": {"id": 7, "name": "Azure Interior"},
            "tag_ids": [1, 2],
        }

    def test_truncates_long_strings(self):
        record = {"id": 1, "note": "a" * 20}
        result = sanitize_record(record, max_string_length=5)
        assert result["note"] == "aaaaa... [truncated]"

    def test_sanitizes_nested_objects(self):
        record = {"id": 1, "meta": {"image_128": "x", "label": "kept"}}
        assert sanitize_record(record) == {"id": 1, "meta": {"label": "kept"}}

    def test_non_dict_passthrough(self):
        assert sanitize_record(42) == 42


# ---------------------------------------------------------------------------
# sanitize_records
# ---------------------------------------------------------------------------

class TestSanitizeRecords:
    """Test record list sanitization and stats."""

    def test_caps_record_count(self):
        records = [{"id": i} for i in range(50)]
        assert len(sanitize_records(records)) == 10
        assert len(sanitize_records(records, limit=30)) == 30

    def test_projects_fields_and_keeps_id(self):
        records = [{"id": 1, "name": "A", "email": "a@x", "phone": "1"}]
        assert sanitize_records(records, fields=["name"]) == [{"id": 1, "name": "A"}]

    def test_non_list_input(self):
        assert sanitize_records(None) == []
        assert sanitize_records({"id": 1}) == []

    def test_stats(self):
        original = [{"id": i, "image_1920": "x" * 100} for i in range(20)]
        sanitized = sanitize_records(original)
        stats = get_sanitization_stats(original, sanitized)

        assert stats["original_count"] == 20
        assert stats["sanitized_count"] == 10
        assert stats["records_dropped"] == 10
        assert stats["estimated_size_reduction"].endswith("%")

    def test_stats_empty(self):
        assert get_sanitization_stats([], [])["records_dropped"] == 0
