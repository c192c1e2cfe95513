"""
Repository listing and configuration file discovery.

:author: Christopher O'Brien <obriencj@preoccupied.net>
:license: GNU General Public License v3
:ai-assistant: Auto via Cursor
"""

import logging
from typing import Iterable, List, Optional

import httpx

from .client import DevOpsClient
from .models import ConfigFileItem, Repository


logger = logging.getLogger(__name__)


DEFAULT_CONFIGURATION_FILE_PATHS = (
    '.azuredevops/dependabot.yml',
    '.azuredevops/dependabot.yaml',
    '.github/dependabot.yml',
    '.github/dependabot.yaml',
)


async def list_repositories(client: DevOpsClient, project: str) -> List[Repository]:
    """
    All repositories in the project, ordered by name.
    """

    repos = await client.list_repositories(project)
    return sorted(repos, key=lambda r: r.name)


async def get_repository(client: DevOpsClient, project: str, repository: str) -> Repository:
    """
    A single repository of the project, by identifier or name.
    """

    return await client.get_repository(project, repository)


async def find_config_file(
        client: DevOpsClient,
        project: str,
        repository: str,
        paths: Iterable[str] = DEFAULT_CONFIGURATION_FILE_PATHS) -> Optional[ConfigFileItem]:
    """
    Try each of paths in order and return the first file that exists
    in the repository, or None if there is no such file.

    An error while checking one path counts as the file being absent
    there, and the search moves on to the next path.
    """

    for path in paths:
        try:
            item = await client.get_item(project, repository, path)
        except httpx.HTTPError as e:
            logger.warning(f'Error checking {path} in repository {repository}: {e}')
            continue

        if item is not None and item.exists:
            logger.debug(f'Found configuration file {item.path} in repository {repository}')
            return item

        logger.debug(f'No configuration file at {path} in repository {repository}')

    return None


# The end.
