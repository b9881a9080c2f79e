"""
CLI layer for wms-sync.

Entry point::

    wms-sync --help
"""

from wms_sync.cli.app import app

__all__ = ["app"]
