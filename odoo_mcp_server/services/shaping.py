# -*- coding: utf-8 -*-
"""tools/list shaping: minimal tool set and schema simplification."""

import copy
from typing import Any, Dict, Iterable, List, NamedTuple, Optional

FLAT_ITEM_TYPES = ['string', 'number', 'boolean', 'array', 'null']


class ShapingFlags(NamedTuple):
    minimal: bool
    simplify: bool


def is_auto_detected_client(user_agent: Optional[str], markers: Iterable[str]) -> bool:
    if not isinstance(user_agent, str):
        return False
    user_agent = user_agent.lower()
    return any(marker.lower() in user_agent for marker in markers)


def resolve_shaping(config, user_agent: Optional[str] = None) -> ShapingFlags:
    """Decide which tools/list filters apply to one request.

    Each filter is on when its explicit flag is set, or when its auto flag
    is set and the user agent matches one of ``config.auto_detect_markers``.

    Args:
        config: ShapingConfig
        user_agent: User-Agent of the request, if any

    Returns:
        ShapingFlags
    """
    detected = is_auto_detected_client(user_agent, config.auto_detect_markers)
    return ShapingFlags(
        minimal=bool(config.minimal_mode or (detected and config.minimal_mode_auto)),
        simplify=bool(config.simplify_schema or (detected and config.simplify_schema_auto)),
    )


def mode_header(flags: ShapingFlags) -> str:
    return f"minimal={str(flags.minimal).lower()};simplify={str(flags.simplify).lower()}"


def filter_minimal(tools: List[Dict[str, Any]], allowed: Iterable[str]) -> List[Dict[str, Any]]:
    allowed = set(allowed)
    return [tool for tool in tools if tool.get('name') in allowed]


def simplify_schema(tool: Dict[str, Any]) -> Dict[str, Any]:
    """Replace array-of-anyOf properties with arrays of flat primitive types."""
    properties = (tool.get('inputSchema') or {}).get('properties')
    if not properties:
        return tool

    simplified = copy.deepcopy(tool)
    for name, prop in simplified['inputSchema']['properties'].items():
        if not isinstance(prop, dict):
            continue
        items = prop.get('items')
        if prop.get('type') == 'array' and isinstance(items, dict) and 'anyOf' in items:
            simplified['inputSchema']['properties'][name] = {
                'type': 'array',
                'items': {'type': list(FLAT_ITEM_TYPES)},
                'description': prop.get('description') or 'Array',
            }
    return simplified


def shape_tools(tools: List[Dict[str, Any]], flags: ShapingFlags, config) -> List[Dict[str, Any]]:
    """Apply the enabled filters. The input list and its definitions are left untouched."""
    shaped = list(tools)
    if flags.minimal:
        shaped = filter_minimal(shaped, config.minimal_tools)
    if flags.simplify:
        shaped = [simplify_schema(tool) for tool in shaped]
    return shaped
