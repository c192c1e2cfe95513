"""
Azure DevOps service hooks and repository synchronization service.

The FastAPI application lives in preoccupied.adosync.app.

:author: Christopher O'Brien <obriencj@preoccupied.net>
:license: GNU General Public License v3
:ai-assistant: Auto via Cursor
"""

from preoccupied.adosync.config import get_config
from preoccupied.adosync.provider import AzureDevOpsProvider


__all__ = ['get_config', 'AzureDevOpsProvider']


# The end.
