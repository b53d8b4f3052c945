# -*- coding: utf-8 -*-
"""Blocking Odoo RPC client over JSON-RPC, plain HTTP or XML-RPC."""

import logging
import random
import xmlrpc.client
from typing import Any, Dict, List, Optional

import requests

from ..exceptions import ConnectFailed, OdooError
from .credentials import SUPPORTED_TRANSPORTS, Credentials

_logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30


class OdooClient:
    """Talks to one Odoo database with one set of credentials.

    ``authenticate`` is called lazily by every model operation when no uid
    is held yet.
    """

    def __init__(self, credentials: Credentials, timeout: int = DEFAULT_TIMEOUT):
        if credentials.transport not in SUPPORTED_TRANSPORTS:
            raise ConnectFailed(f"Unsupported transport: {credentials.transport}")

        self.credentials = credentials
        self.transport = credentials.transport
        self.url = credentials.url.rstrip('/')
        self.timeout = timeout
        self.uid: Optional[int] = None
        self.session_id: Optional[str] = None

        # cookies from /web/session/authenticate stay on this session
        self._http = requests.Session()
        self._http.headers.update({'Content-Type': 'application/json'})

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    def authenticate(self) -> Dict[str, Any]:
        """Authenticate against the server.

        Returns:
            dict: uid and, for the HTTP transports, session_id

        Raises:
            ConnectFailed: If the server rejects the credentials or is unreachable
        """
        creds = self.credentials
        try:
            if self.transport == 'xmlrpc':
                uid = self._xmlrpc('common').authenticate(
                    creds.database, creds.username, creds.password, {}
                )
                session_id = None
            elif self.transport == 'jsonrpc':
                result = self._jsonrpc('/web/session/authenticate', {
                    'db': creds.database,
                    'login': creds.username,
                    'password': creds.password,
                }) or {}
                uid = result.get('uid')
                session_id = result.get('session_id')
            else:
                response = self._http.post(
                    f"{self.url}/web/session/authenticate",
                    json={
                        'db': creds.database,
                        'login': creds.username,
                        'password': creds.password,
                    },
                    timeout=self.timeout,
                )
                response.raise_for_status()
                data = response.json() or {}
                uid = data.get('uid')
                session_id = data.get('session_id')
        except ConnectFailed:
            raise
        except Exception as e:
            raise ConnectFailed(f"Authentication failed: {e}") from e

        if not uid:
            raise ConnectFailed("Authentication failed: invalid credentials")

        self.uid = uid
        self.session_id = session_id
        _logger.info(f"Odoo: Authenticated on {self.url} db={creds.database} uid={uid} via {self.transport}")
        return {'uid': uid, 'session_id': session_id}

    def ensure_authenticated(self) -> None:
        if not self.uid:
            self.authenticate()

    # ------------------------------------------------------------------
    # Model operations
    # ------------------------------------------------------------------

    def execute_kw(
        self,
        model: str,
        method: str,
        args: Optional[List[Any]] = None,
        kwargs: Optional[Dict[str, Any]] = None,
    ) -> Any:
        self.ensure_authenticated()
        args = args or []
        kwargs = kwargs or {}

        if self.transport == 'xmlrpc':
            creds = self.credentials
            try:
                return self._xmlrpc('object').execute_kw(
                    creds.database, self.uid, creds.password, model, method, args, kwargs
                )
            except xmlrpc.client.Fault as fault:
                raise OdooError(fault.faultString) from fault

        return self._jsonrpc('/web/dataset/call_kw', {
            'model': model,
            'method': method,
            'args': args,
            'kwargs': kwargs,
        })

    def search_read(
        self,
        model: str,
        domain: Optional[List[Any]] = None,
        fields: Optional[List[str]] = None,
        offset: int = 0,
        limit: int = 100,
        order: str = 'id',
        context: Optional[Dict[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        return self.execute_kw(model, 'search_read', [domain or []], {
            'fields': fields or [],
            'offset': offset,
            'limit': limit,
            'order': order,
            'context': context or {},
        })

    def create(self, model: str, values: Dict[str, Any], context: Optional[Dict[str, Any]] = None) -> int:
        return self.execute_kw(model, 'create', [values], {'context': context or {}})

    def update(
        self,
        model: str,
        ids: List[int],
        values: Dict[str, Any],
        context: Optional[Dict[str, Any]] = None,
    ) -> bool:
        return self.execute_kw(model, 'write', [ids, values], {'context': context or {}})

    def delete(self, model: str, ids: List[int], context: Optional[Dict[str, Any]] = None) -> bool:
        return self.execute_kw(model, 'unlink', [ids], {'context': context or {}})

    def call(
        self,
        model: str,
        method: str,
        args: Optional[List[Any]] = None,
        kwargs: Optional[Dict[str, Any]] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> Any:
        call_kwargs = dict(kwargs or {})
        call_kwargs['context'] = context or {}
        return self.execute_kw(model, method, args or [], call_kwargs)

    def get_model_fields(self, model: str) -> Dict[str, Any]:
        return self.call(model, 'fields_get')

    def search(
        self,
        model: str,
        domain: Optional[List[Any]] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[int]:
        kwargs = {}
        if limit is not None:
            kwargs['limit'] = limit
        if offset is not None:
            kwargs['offset'] = offset
        return self.execute_kw(model, 'search', [domain or []], kwargs)

    def read(self, model: str, ids: List[int], fields: Optional[List[str]] = None) -> List[Dict[str, Any]]:
        kwargs = {}
        if fields:
            kwargs['fields'] = fields
        return self.execute_kw(model, 'read', [ids], kwargs)

    # ------------------------------------------------------------------
    # Server information (no authentication needed)
    # ------------------------------------------------------------------

    def version(self) -> Dict[str, Any]:
        if self.transport == 'xmlrpc':
            return self._xmlrpc('common').version()
        return self._jsonrpc('/web/webclient/version_info', {})

    def list_databases(self) -> List[str]:
        if self.transport == 'xmlrpc':
            return self._xmlrpc('db').list()
        return self._jsonrpc('/web/database/list', {})

    # ------------------------------------------------------------------
    # Wire helpers
    # ------------------------------------------------------------------

    def _jsonrpc(self, path: str, params: Dict[str, Any]) -> Any:
        payload = {
            'jsonrpc': '2.0',
            'method': 'call',
            'params': params,
            'id': random.randint(0, 999999),
        }
        response = self._http.post(f"{self.url}{path}", json=payload, timeout=self.timeout)
        response.raise_for_status()
        data = response.json()

        error = data.get('error')
        if error:
            detail = error.get('data') or {}
            message = detail.get('message') if isinstance(detail, dict) else None
            raise OdooError(message or error.get('message') or 'Unknown Odoo error')

        return data.get('result')

    def _xmlrpc(self, service: str) -> xmlrpc.client.ServerProxy:
        return xmlrpc.client.ServerProxy(f"{self.url}/xmlrpc/2/{service}", allow_none=True)
