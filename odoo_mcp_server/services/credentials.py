# -*- coding: utf-8 -*-
"""Backend credential extraction from inbound header bags."""

from typing import Any, Mapping, Optional

from pydantic import BaseModel, Field

DEFAULT_TRANSPORT = 'jsonrpc'
SUPPORTED_TRANSPORTS = ('jsonrpc', 'xmlrpc', 'http')

HEADER_URL = 'x-odoo-url'
HEADER_DATABASE = 'x-odoo-db'
HEADER_USERNAME = 'x-odoo-username'
HEADER_PASSWORD = 'x-odoo-password'
HEADER_TRANSPORT = 'x-odoo-transport'


class Credentials(BaseModel):
    """Normalized Odoo credential record."""

    url: str
    database: str
    username: str
    password: str = Field(repr=False)
    transport: str = DEFAULT_TRANSPORT

    def as_connect_args(self) -> dict:
        """Arguments for the ``odoo_connect`` tool."""
        return self.model_dump()


def _pick(value: Any) -> Optional[str]:
    """First element of a multi-valued header, the value itself otherwise.

    An empty list is treated as absent.
    """
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def _non_empty(value: Any) -> Optional[str]:
    if isinstance(value, str) and value:
        return value
    return None


def extract_credentials(headers: Mapping[str, Any]) -> Optional[Credentials]:
    """Map a header bag onto a credential record.

    Args:
        headers: Header names to a string or a list of strings. Names are
            matched case-insensitively.

    Returns:
        Credentials, or None when url, database, username or password is missing
    """
    bag = {str(name).lower(): value for name, value in headers.items()}

    url = _non_empty(_pick(bag.get(HEADER_URL)))
    database = _non_empty(_pick(bag.get(HEADER_DATABASE)))
    username = _non_empty(_pick(bag.get(HEADER_USERNAME)))
    password = _non_empty(_pick(bag.get(HEADER_PASSWORD)))
    transport = _non_empty(_pick(bag.get(HEADER_TRANSPORT))) or DEFAULT_TRANSPORT

    if not url or not database or not username or not password:
        return None

    return Credentials(
        url=url,
        database=database,
        username=username,
        password=password,
        transport=transport,
    )
