"""Tests for tools/list shaping (minimal mode and schema simplification)."""

import copy

from odoo_mcp_server.config import ShapingConfig
from odoo_mcp_server.services.shaping import (
    FLAT_ITEM_TYPES,
    ShapingFlags,
    is_auto_detected_client,
    mode_header,
    resolve_shaping,
    shape_tools,
    simplify_schema,
)
from odoo_mcp_server.tools.registry import build_tool_registry

OPENAI_UA = "openai-mcp/1.0.0"


# ---------------------------------------------------------------------------
# resolve_shaping
# ---------------------------------------------------------------------------

class TestResolveShaping:
    """Test shaping flag resolution."""

    def test_defaults_off(self):
        assert resolve_shaping(ShapingConfig(), OPENAI_UA) == ShapingFlags(False, False)

    def test_explicit_flags(self):
        config = ShapingConfig(minimal_mode=True, simplify_schema=True)
        assert resolve_shaping(config) == ShapingFlags(True, True)

    def test_auto_flags_need_matching_client(self):
        config = ShapingConfig(minimal_mode_auto=True, simplify_schema_auto=True)
        assert resolve_shaping(config, "curl/8.0") == ShapingFlags(False, False)
        assert resolve_shaping(config, None) == ShapingFlags(False, False)
        assert resolve_shaping(config, OPENAI_UA) == ShapingFlags(True, True)

    def test_auto_flags_are_independent(self):
        config = ShapingConfig(simplify_schema_auto=True)
        assert resolve_shaping(config, OPENAI_UA) == ShapingFlags(False, True)

    def test_detection_is_case_insensitive(self):
        assert is_auto_detected_client("OpenAI-MCP/2", ["openai-mcp"])
        assert not is_auto_detected_client(None, ["openai-mcp"])

    def test_mode_header(self):
        assert mode_header(ShapingFlags(True, False)) == "minimal=true;simplify=false"


# ---------------------------------------------------------------------------
# shape_tools
# ---------------------------------------------------------------------------

class TestShapeTools:
    """Test minimal mode and schema simplification."""

    def setup_method(self):
        self.tools = build_tool_registry().get_tools()
        self.config = ShapingConfig()

    def test_no_flags_returns_everything(self):
        shaped = shape_tools(self.tools, ShapingFlags(False, False), self.config)
        assert shaped == self.tools

    def test_minimal_mode_keeps_exactly_allow_list(self):
        shaped = shape_tools(self.tools, ShapingFlags(True, False), self.config)
        assert sorted(t["name"] for t in shaped) == sorted(self.config.minimal_tools)

    def test_simplify_flattens_any_of_arrays(self):
        shaped = shape_tools(self.tools, ShapingFlags(False, True), self.config)
        search = next(t for t in shaped if t["name"] == "odoo_search")
        domain = search["inputSchema"]["properties"]["domain"]

        assert domain == {
            "type": "array",
            "items": {"type": FLAT_ITEM_TYPES},
            "description": "Search domain filters",
        }

    def test_simplify_does_not_touch_originals(self):
        original = copy.deepcopy(self.tools)
        shape_tools(self.tools, ShapingFlags(True, True), self.config)
        assert self.tools == original

    def test_simplify_leaves_plain_arrays_alone(self):
        tool = {
            "name": "t",
            "inputSchema": {
                "type": "object",
                "properties": {
                    "ids": {"type": "array", "items": {"type": "number"}},
                    "weird": True,
                },
            },
        }
        assert simplify_schema(tool) == tool

    def test_simplify_defaults_description(self):
        tool = {
            "name": "t",
            "inputSchema": {
                "type": "object",
                "properties": {"x": {"type": "array", "items": {"anyOf": [{"type": "string"}]}}},
            },
        }
        assert simplify_schema(tool)["inputSchema"]["properties"]["x"]["description"] == "Array"
