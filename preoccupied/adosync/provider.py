"""
Azure DevOps operations bound to the service configuration.

:author: Christopher O'Brien <obriencj@preoccupied.net>
:license: GNU General Public License v3
:ai-assistant: Auto via Cursor
"""

import logging
from typing import List, Optional

from .cache import ConnectionCache
from .client import AzureDevOpsConnection, DevOpsClient
from .config import WorkflowConfig
from .models import ConfigFileItem, Repository
from .repositories import find_config_file, get_repository, list_repositories
from .subscriptions import reconcile_subscriptions
from .url import ProjectUrl


logger = logging.getLogger(__name__)


class AzureDevOpsProvider:
    """
    Entry point for the Azure DevOps side of the service. Each call
    obtains a connection from the cache, creating and authenticating
    one only when none is cached for the current project URL and token.
    """

    def __init__(self, config: WorkflowConfig, cache: Optional[ConnectionCache] = None):
        self.config = config
        self.cache = cache if cache is not None else ConnectionCache(self._connect)


    async def _connect(self, project_url: str, token: str) -> AzureDevOpsConnection:
        url = ProjectUrl.parse(project_url)
        logger.info(f'Connecting to Azure DevOps organization {url.organization_url}')
        return await AzureDevOpsConnection.connect(
            url.organization_url, token, timeout=self.config.http_timeout)


    async def connection(self) -> DevOpsClient:
        url = self.config.project()
        if not self.config.project_token:
            raise ValueError('project_token must be set')

        return await self.cache.get_or_create(str(url), self.config.project_token)


    async def create_or_update_subscriptions(self) -> List[str]:
        """
        Reconcile the service hooks subscriptions of the project,
        returning their identifiers.
        """

        config = self.config
        if not (config.webhook_endpoint and config.subscription_password):
            raise ValueError('webhook_endpoint and subscription_password must be set')

        url = config.project()
        client = await self.connection()
        return await reconcile_subscriptions(
            client, url.project,
            webhook_endpoint=config.webhook_endpoint,
            subscription_password=config.subscription_password)


    async def get_repositories(self) -> List[Repository]:
        client = await self.connection()
        return await list_repositories(client, self.config.project().project)


    async def get_repository(self, repository: str) -> Repository:
        client = await self.connection()
        return await get_repository(client, self.config.project().project, repository)


    async def get_configuration_file(self, repository: str) -> Optional[ConfigFileItem]:
        """
        The first configuration file found in the repository, trying
        the configured candidate paths in order.
        """

        client = await self.connection()
        return await find_config_file(
            client, self.config.project().project, repository,
            self.config.configuration_file_paths)


    async def aclose(self) -> None:
        await self.cache.aclose()


# The end.
