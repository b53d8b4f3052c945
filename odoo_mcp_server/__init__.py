# -*- coding: utf-8 -*-
"""Model Context Protocol server for Odoo over streamable HTTP and stdio."""

__version__ = '1.0.0'
