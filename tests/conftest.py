"""
Shared pytest fixtures for adosync tests.

:author: Christopher O'Brien <obriencj@preoccupied.net>
:license: GNU General Public License v3
:ai-assistant: Auto via Cursor
"""

import asyncio
from typing import Dict, List, Tuple

import httpx
import pytest

from preoccupied.adosync.config import WorkflowConfig
from preoccupied.adosync.models import ConfigFileItem, Repository, Subscription


def http_error(status_code: int, url: str = 'https://dev.azure.com/contoso') -> httpx.HTTPStatusError:
    request = httpx.Request('GET', url)
    response = httpx.Response(status_code, request=request)
    return httpx.HTTPStatusError(f'HTTP {status_code}', request=request, response=response)


class FakeDevOpsClient:
    """
    In-memory stand-in for an Azure DevOps connection.
    """

    def __init__(self, project_id: str = 'project-guid'):
        self.project_id = project_id
        self.subscriptions: Dict[str, Subscription] = {}
        self.repositories: List[Repository] = []
        self.files: Dict[Tuple[str, str], str] = {}
        self.item_errors: Dict[str, Exception] = {}
        self.calls: List[Tuple] = []
        self.closed = False
        self._counter = 0


    def _next_id(self) -> str:
        self._counter += 1
        return f'sub-{self._counter}'


    async def get_project_id(self, project: str) -> str:
        self.calls.append(('get_project_id', project))
        return self.project_id


    async def query_subscriptions(self, publisher_id, consumer_id, consumer_action_id, publisher_inputs):
        self.calls.append(('query_subscriptions', dict(publisher_inputs)))
        return [
            s.model_copy(deep=True) for s in self.subscriptions.values()
            if s.publisher_id == publisher_id
            and s.consumer_id == consumer_id
            and s.consumer_action_id == consumer_action_id
            and all(s.publisher_inputs.get(k) == v for k, v in publisher_inputs.items())
        ]


    async def create_subscription(self, subscription: Subscription) -> Subscription:
        created = subscription.model_copy(update={'id': self._next_id()})
        self.subscriptions[created.id] = created
        self.calls.append(('create_subscription', created.event_type))
        return created


    async def update_subscription(self, subscription: Subscription) -> Subscription:
        if subscription.id not in self.subscriptions:
            raise http_error(404)
        self.subscriptions[subscription.id] = subscription
        self.calls.append(('update_subscription', subscription.event_type))
        return subscription


    async def list_repositories(self, project: str) -> List[Repository]:
        self.calls.append(('list_repositories', project))
        return list(self.repositories)


    async def get_repository(self, project: str, repository: str) -> Repository:
        self.calls.append(('get_repository', repository))
        for repo in self.repositories:
            if repository in (repo.id, repo.name):
                return repo
        raise http_error(404)


    async def get_item(self, project: str, repository: str, path: str) -> ConfigFileItem:
        self.calls.append(('get_item', repository, path))
        if path in self.item_errors:
            raise self.item_errors[path]

        content = self.files.get((repository, path))
        if content is None:
            return ConfigFileItem(path=path, exists=False)
        return ConfigFileItem(path=path, content=content)


    async def aclose(self) -> None:
        self.closed = True


class SlowCreateClient(FakeDevOpsClient):
    """
    Creation finishes in reverse order of the calls, and identifiers
    are assigned on completion.
    """

    async def create_subscription(self, subscription: Subscription) -> Subscription:
        delay = 0.04 - 0.01 * len([c for c in self.calls if c[0] == 'create_started'])
        self.calls.append(('create_started', subscription.event_type))
        await asyncio.sleep(delay)
        return await super().create_subscription(subscription)


@pytest.fixture
def fake_client():
    """
    Create an empty FakeDevOpsClient.
    """

    return FakeDevOpsClient()


@pytest.fixture
def mock_config():
    """
    Create a fully populated WorkflowConfig for testing.
    """

    return WorkflowConfig(
        project_url='https://dev.azure.com/contoso/dependabot',
        project_token='pat-123',
        webhook_endpoint='https://hooks.example.com/webhooks/azure',
        subscription_password='hook-secret',
    )


@pytest.fixture
def mock_env_vars(monkeypatch):
    """
    Clear and optionally set environment variables for testing.
    """

    env_vars_to_clear = [
        'CONFIG_PATH',
        'ADOSYNC_PROJECT_URL',
        'ADOSYNC_PROJECT_TOKEN',
        'ADOSYNC_WEBHOOK_ENDPOINT',
        'ADOSYNC_SUBSCRIPTION_PASSWORD',
        'ADOSYNC_CONFIGURATION_FILE_PATHS',
        'ADOSYNC_SYNC_TOKEN',
        'ADOSYNC_SYNC_ON_STARTUP',
        'ADOSYNC_HTTP_TIMEOUT',
    ]

    for var in env_vars_to_clear:
        monkeypatch.delenv(var, raising=False)

    return monkeypatch


# The end.
