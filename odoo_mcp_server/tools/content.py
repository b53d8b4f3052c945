# -*- coding: utf-8 -*-
"""Builders for MCP tool responses."""

import json
from typing import Any, Dict, Optional


def text_response(text: str) -> Dict[str, Any]:
    return {'content': [{'type': 'text', 'text': text}]}


def image_response(data: str, mime_type: str) -> Dict[str, Any]:
    return {'content': [{'type': 'image', 'data': data, 'mimeType': mime_type}]}


def error_response(message: str, error: Optional[BaseException] = None) -> Dict[str, Any]:
    """Tool-level failure reported as content, e.g. ``Create operation failed: <reason>``."""
    if error is None:
        return text_response(message)
    return text_response(f"{message}: {error}")


def json_text(data: Any) -> str:
    return json.dumps(data, indent=2, default=str)
