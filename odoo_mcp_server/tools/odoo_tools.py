# -*- coding: utf-8 -*-
"""Odoo tools: connection, CRUD, method calls and server information."""

import asyncio
import json
import logging
from typing import Any, Dict, Optional

from ..exceptions import ConnectFailed
from ..services.credentials import DEFAULT_TRANSPORT, Credentials
from ..services.odoo_client import OdooClient
from ..services.sanitizer import enforce_safe_limit, sanitize_records
from .content import error_response, json_text, text_response

_logger = logging.getLogger(__name__)

NOT_CONNECTED = 'Not connected to Odoo. Please use odoo_connect first.'

_MODEL_PROPERTY = {
    'type': 'string',
    'description': 'Model name (e.g., res.partner, sale.order)',
}

_CONTEXT_PROPERTY = {
    'type': 'object',
    'description': 'Additional context for the operation',
    'default': {},
}

_IDS_PROPERTY = {
    'type': 'array',
    'items': {'type': 'number'},
}


def _ids(description: str) -> Dict[str, Any]:
    return dict(_IDS_PROPERTY, description=description)


def _definition(name: str, description: str, properties: Dict[str, Any], required=None) -> Dict[str, Any]:
    schema = {'type': 'object', 'properties': properties}
    if required:
        schema['required'] = required
    return {'name': name, 'description': description, 'inputSchema': schema}


class OdooTools:
    """Odoo tool set bound to one (optional) backend connection.

    Each instance holds its own client, so every controller built from a
    fresh registry is isolated from the others.
    """

    def __init__(self, client_factory=OdooClient):
        self.client: Optional[OdooClient] = None
        self._client_factory = client_factory

    def get_tools(self) -> Dict[str, Dict[str, Any]]:
        """Get all Odoo tool definitions with their bound handlers.

        Returns:
            dict: Tool name to ``{'definition': ..., 'handler': ...}``
        """
        return {
            'odoo_ping': {
                'definition': _definition(
                    'odoo_ping',
                    'Quick health check - verifies Odoo connection without heavy payload',
                    {},
                ),
                'handler': self.handle_ping,
            },
            'odoo_connect': {
                'definition': _definition(
                    'odoo_connect',
                    'Connect to an Odoo instance. Required before using other Odoo tools.',
                    {
                        'url': {
                            'type': 'string',
                            'description': 'Odoo server URL (e.g., http://localhost:8069)',
                        },
                        'database': {'type': 'string', 'description': 'Database name'},
                        'username': {'type': 'string', 'description': 'Username for authentication'},
                        'password': {'type': 'string', 'description': 'Password for authentication'},
                        'transport': {
                            'type': 'string',
                            'enum': ['jsonrpc', 'xmlrpc', 'http'],
                            'description': 'Protocol (default: jsonrpc)',
                            'default': DEFAULT_TRANSPORT,
                        },
                    },
                    ['url', 'database', 'username', 'password'],
                ),
                'handler': self.handle_connect,
            },
            'odoo_search_read': {
                'definition': _definition(
                    'odoo_search_read',
                    'Search and read records from Odoo model. Returns sanitized, safe payloads.',
                    {
                        'model': _MODEL_PROPERTY,
                        'domain': {
                            'type': 'array',
                            'description': 'Search domain filters (e.g., [["is_company", "=", true]])',
                            'items': {},
                            'default': [],
                        },
                        'fields': {
                            'type': 'array',
                            'items': {'type': 'string'},
                            'description': 'Specific fields to retrieve (reduces payload size)',
                            'default': [],
                        },
                        'limit': {
                            'type': 'integer',
                            'description': 'Maximum records to return (default: 10, max: 100)',
                            'minimum': 1,
                            'maximum': 100,
                            'default': 10,
                        },
                        'offset': {
                            'type': 'integer',
                            'description': 'Number of records to skip',
                            'minimum': 0,
                            'default': 0,
                        },
                        'order': {
                            'type': 'string',
                            'description': 'Sort order (e.g., "name ASC")',
                            'default': 'id',
                        },
                    },
                    ['model'],
                ),
                'handler': self.handle_search_read,
            },
            'odoo_create': {
                'definition': _definition(
                    'odoo_create',
                    'Create a new record in Odoo',
                    {
                        'model': _MODEL_PROPERTY,
                        'values': {'type': 'object', 'description': 'Field values for the new record'},
                        'context': _CONTEXT_PROPERTY,
                    },
                    ['model', 'values'],
                ),
                'handler': self.handle_create,
            },
            'odoo_update': {
                'definition': _definition(
                    'odoo_update',
                    'Update existing records in Odoo',
                    {
                        'model': _MODEL_PROPERTY,
                        'ids': _ids('Record IDs to update'),
                        'values': {'type': 'object', 'description': 'Field values to update'},
                        'context': _CONTEXT_PROPERTY,
                    },
                    ['model', 'ids', 'values'],
                ),
                'handler': self.handle_update,
            },
            'odoo_delete': {
                'definition': _definition(
                    'odoo_delete',
                    'Delete records from Odoo',
                    {
                        'model': _MODEL_PROPERTY,
                        'ids': _ids('Record IDs to delete'),
                        'context': _CONTEXT_PROPERTY,
                    },
                    ['model', 'ids'],
                ),
                'handler': self.handle_delete,
            },
            'odoo_call_method': {
                'definition': _definition(
                    'odoo_call_method',
                    'Call a custom method on an Odoo model',
                    {
                        'model': _MODEL_PROPERTY,
                        'method': {'type': 'string', 'description': 'Method name to call'},
                        'args': {
                            'type': 'array',
                            'description': 'Positional arguments for the method',
                            'default': [],
                        },
                        'kwargs': {
                            'type': 'object',
                            'description': 'Keyword arguments for the method',
                            'default': {},
                        },
                        'context': _CONTEXT_PROPERTY,
                    },
                    ['model', 'method'],
                ),
                'handler': self.handle_call_method,
            },
            'odoo_get_model_fields': {
                'definition': _definition(
                    'odoo_get_model_fields',
                    'Get field definitions for an Odoo model',
                    {'model': _MODEL_PROPERTY},
                    ['model'],
                ),
                'handler': self.handle_get_model_fields,
            },
            'odoo_search': {
                'definition': _definition(
                    'odoo_search',
                    'Search for record IDs only',
                    {
                        'model': _MODEL_PROPERTY,
                        'domain': {
                            'type': 'array',
                            'description': 'Search domain filters',
                            'items': {
                                'anyOf': [
                                    {
                                        'type': 'array',
                                        'minItems': 3,
                                        'maxItems': 3,
                                        'items': [
                                            {'type': 'string', 'description': 'Field name'},
                                            {
                                                'anyOf': [
                                                    {'type': 'string'},
                                                    {'type': 'number'},
                                                    {'type': 'boolean'},
                                                ],
                                                'description': 'Operator or value depending on position',
                                            },
                                            {
                                                'anyOf': [
                                                    {'type': 'string'},
                                                    {'type': 'number'},
                                                    {'type': 'boolean'},
                                                    {'type': 'array'},
                                                    {'type': 'null'},
                                                ],
                                                'description': 'Comparison value',
                                            },
                                        ],
                                    },
                                    {'type': 'string', 'description': 'Logical operator (&,|,!)'},
                                ],
                            },
                            'default': [],
                        },
                        'limit': {'type': 'number', 'description': 'Maximum number of IDs to return'},
                        'offset': {'type': 'number', 'description': 'Number of records to skip'},
                    },
                    ['model'],
                ),
                'handler': self.handle_search,
            },
            'odoo_read': {
                'definition': _definition(
                    'odoo_read',
                    'Read specific records by their IDs',
                    {
                        'model': _MODEL_PROPERTY,
                        'ids': _ids('Record IDs to read'),
                        'fields': {
                            'type': 'array',
                            'items': {'type': 'string'},
                            'description': 'Fields to retrieve (all fields if empty)',
                        },
                    },
                    ['model', 'ids'],
                ),
                'handler': self.handle_read,
            },
            'odoo_version': {
                'definition': _definition('odoo_version', 'Get Odoo server version information', {}),
                'handler': self.handle_version,
            },
            'odoo_list_databases': {
                'definition': _definition(
                    'odoo_list_databases',
                    'List available databases on the Odoo server',
                    {},
                ),
                'handler': self.handle_list_databases,
            },
        }

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    async def handle_ping(self, args: Dict[str, Any]) -> Dict[str, Any]:
        """Canary check with a minimal payload."""
        if self.client is None:
            return text_response(json.dumps({
                'ok': False,
                'error': 'Not connected to Odoo',
                'hint': 'Use odoo_connect first',
            }))

        try:
            version = await asyncio.to_thread(self.client.version) or {}
        except Exception as e:
            return text_response(json.dumps({'ok': False, 'connected': False, 'error': str(e)}))

        return text_response(json.dumps({
            'ok': True,
            'connected': True,
            'server': version.get('server_version', 'unknown'),
            'protocol': version.get('protocol_version', 'unknown'),
        }))

    async def handle_connect(self, args: Dict[str, Any]) -> Dict[str, Any]:
        transport = args.get('transport') or DEFAULT_TRANSPORT
        try:
            credentials = Credentials(
                url=args.get('url') or '',
                database=args.get('database') or '',
                username=args.get('username') or '',
                password=args.get('password') or '',
                transport=transport,
            )
            client = self._client_factory(credentials)
            auth = await asyncio.to_thread(client.authenticate)
        except ConnectFailed as e:
            _logger.warning(f"Odoo: Connect to {args.get('url')} failed: {e}")
            return error_response('Connection failed', e)

        # only an authenticated client replaces the current one
        self.client = client
        return text_response(
            f"Successfully connected to Odoo instance at {credentials.url}\n"
            f"Database: {credentials.database}\n"
            f"User ID: {auth['uid']}\n"
            f"Transport: {transport}"
        )

    async def handle_search_read(self, args: Dict[str, Any]) -> Dict[str, Any]:
        if self.client is None:
            return text_response(NOT_CONNECTED)

        model = args.get('model')
        safe_limit = enforce_safe_limit(args.get('limit'))
        try:
            records = await asyncio.to_thread(
                self.client.search_read,
                model,
                domain=args.get('domain'),
                fields=args.get('fields'),
                offset=args.get('offset') or 0,
                limit=safe_limit,
                order=args.get('order') or 'id',
                context=args.get('context'),
            )
        except Exception as e:
            return error_response('Search/read operation failed', e)

        records = records or []
        sanitized = sanitize_records(records, limit=safe_limit, fields=args.get('fields'))
        note = f" (sanitized from {len(records)})" if len(sanitized) != len(records) else ''
        return text_response(f"Found {len(sanitized)} records in {model}{note}:\n{json_text(sanitized)}")

    async def handle_create(self, args: Dict[str, Any]) -> Dict[str, Any]:
        if self.client is None:
            return text_response(NOT_CONNECTED)

        model = args.get('model')
        try:
            record_id = await asyncio.to_thread(
                self.client.create, model, args.get('values') or {}, args.get('context')
            )
        except Exception as e:
            return error_response('Create operation failed', e)

        return text_response(f"Successfully created record in {model} with ID: {record_id}")

    async def handle_update(self, args: Dict[str, Any]) -> Dict[str, Any]:
        if self.client is None:
            return text_response(NOT_CONNECTED)

        model = args.get('model')
        ids = args.get('ids') or []
        try:
            success = await asyncio.to_thread(
                self.client.update, model, ids, args.get('values') or {}, args.get('context')
            )
        except Exception as e:
            return error_response('Update operation failed', e)

        if success:
            return text_response(f"Successfully updated {len(ids)} record(s) in {model}")
        return text_response(f"Update operation returned false for {model}")

    async def handle_delete(self, args: Dict[str, Any]) -> Dict[str, Any]:
        if self.client is None:
            return text_response(NOT_CONNECTED)

        model = args.get('model')
        ids = args.get('ids') or []
        try:
            success = await asyncio.to_thread(self.client.delete, model, ids, args.get('context'))
        except Exception as e:
            return error_response('Delete operation failed', e)

        if success:
            return text_response(f"Successfully deleted {len(ids)} record(s) from {model}")
        return text_response(f"Delete operation returned false for {model}")

    async def handle_call_method(self, args: Dict[str, Any]) -> Dict[str, Any]:
        if self.client is None:
            return text_response(NOT_CONNECTED)

        model = args.get('model')
        method = args.get('method')
        try:
            result = await asyncio.to_thread(
                self.client.call,
                model,
                method,
                args.get('args'),
                args.get('kwargs'),
                args.get('context'),
            )
        except Exception as e:
            return error_response(f"Method call {method} failed", e)

        return text_response(f"Method {method} on {model} returned:\n{json_text(result)}")

    async def handle_get_model_fields(self, args: Dict[str, Any]) -> Dict[str, Any]:
        if self.client is None:
            return text_response(NOT_CONNECTED)

        model = args.get('model')
        try:
            fields = await asyncio.to_thread(self.client.get_model_fields, model)
        except Exception as e:
            return error_response(f"Failed to get fields for model {model}", e)

        return text_response(f"Model {model} fields:\n{json_text(fields)}")

    async def handle_search(self, args: Dict[str, Any]) -> Dict[str, Any]:
        if self.client is None:
            return text_response(NOT_CONNECTED)

        model = args.get('model')
        try:
            ids = await asyncio.to_thread(
                self.client.search, model, args.get('domain'), args.get('limit'), args.get('offset')
            )
        except Exception as e:
            return error_response('Search operation failed', e)

        ids = ids or []
        return text_response(f"Found {len(ids)} record IDs in {model}: [{', '.join(str(i) for i in ids)}]")

    async def handle_read(self, args: Dict[str, Any]) -> Dict[str, Any]:
        if self.client is None:
            return text_response(NOT_CONNECTED)

        model = args.get('model')
        try:
            records = await asyncio.to_thread(
                self.client.read, model, args.get('ids') or [], args.get('fields')
            )
        except Exception as e:
            return error_response('Read operation failed', e)

        records = records or []
        return text_response(f"Read {len(records)} records from {model}:\n{json_text(records)}")

    async def handle_version(self, args: Dict[str, Any]) -> Dict[str, Any]:
        if self.client is None:
            return text_response(NOT_CONNECTED)

        try:
            version = await asyncio.to_thread(self.client.version)
        except Exception as e:
            return error_response('Failed to get version information', e)

        return text_response(f"Odoo server version:\n{json_text(version)}")

    async def handle_list_databases(self, args: Dict[str, Any]) -> Dict[str, Any]:
        if self.client is None:
            return text_response(NOT_CONNECTED)

        try:
            databases = await asyncio.to_thread(self.client.list_databases)
        except Exception as e:
            return error_response('Failed to list databases', e)

        return text_response(f"Available databases: {', '.join(databases or [])}")
