"""
Azure DevOps REST client used by the adosync service.

:author: Christopher O'Brien <obriencj@preoccupied.net>
:license: GNU General Public License v3
:ai-assistant: Auto via Cursor
"""

import logging
from typing import Any, Dict, List, Optional, Protocol
from urllib.parse import quote

import httpx

from .models import ConfigFileItem, Repository, Subscription


logger = logging.getLogger(__name__)


API_VERSION = '7.1'

DEFAULT_TIMEOUT = 30.0


class DevOpsClient(Protocol):
    """
    The operations the service needs from Azure DevOps. Everything
    else in this package talks to the platform through this interface.
    """

    async def get_project_id(self, project: str) -> str:
        ...

    async def query_subscriptions(
            self,
            publisher_id: str,
            consumer_id: str,
            consumer_action_id: str,
            publisher_inputs: Dict[str, str]) -> List[Subscription]:
        ...

    async def create_subscription(self, subscription: Subscription) -> Subscription:
        ...

    async def update_subscription(self, subscription: Subscription) -> Subscription:
        ...

    async def list_repositories(self, project: str) -> List[Repository]:
        ...

    async def get_repository(self, project: str, repository: str) -> Repository:
        ...

    async def get_item(self, project: str, repository: str, path: str) -> ConfigFileItem:
        ...

    async def aclose(self) -> None:
        ...


def _segment(value: str) -> str:
    return quote(value, safe='')


class AzureDevOpsConnection:
    """
    An authenticated connection to an Azure DevOps organization.

    Requests use basic authentication with an empty username and a
    personal access token as the password.
    """

    def __init__(
            self,
            organization_url: str,
            token: str,
            timeout: float = DEFAULT_TIMEOUT,
            transport: Optional[httpx.AsyncBaseTransport] = None):

        self.organization_url = organization_url.rstrip('/')
        self._client = httpx.AsyncClient(
            base_url=f'{self.organization_url}/',
            auth=httpx.BasicAuth('', token),
            headers={'Accept': 'application/json'},
            timeout=timeout,
            transport=transport,
        )


    @classmethod
    async def connect(
            cls,
            organization_url: str,
            token: str,
            timeout: float = DEFAULT_TIMEOUT,
            transport: Optional[httpx.AsyncBaseTransport] = None) -> 'AzureDevOpsConnection':
        """
        Create a connection and verify that the token is accepted.
        The connection is closed again if authentication fails.
        """

        if not (organization_url and token):
            raise ValueError('organization_url and token must be set')

        connection = cls(organization_url, token, timeout=timeout, transport=transport)
        try:
            await connection.authenticate()
        except BaseException:
            await connection.aclose()
            raise

        return connection


    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        params = kwargs.pop('params', {})
        params.setdefault('api-version', API_VERSION)

        r = await self._client.request(method, url, params=params, **kwargs)
        r.raise_for_status()
        return r


    async def authenticate(self) -> Dict[str, Any]:
        """
        Fetch the connection data for the organization, which fails
        unless the credentials are accepted.
        """

        r = await self._request('GET', '_apis/connectionData')
        data = r.json()

        user = data.get('authenticatedUser') or {}
        logger.debug(f'Authenticated to {self.organization_url} as {user.get("id")}')
        return data


    async def get_project_id(self, project: str) -> str:
        r = await self._request('GET', f'_apis/projects/{_segment(project)}')
        return r.json()['id']


    async def query_subscriptions(
            self,
            publisher_id: str,
            consumer_id: str,
            consumer_action_id: str,
            publisher_inputs: Dict[str, str]) -> List[Subscription]:
        """
        Query the service hooks subscriptions for the given publisher
        and consumer, restricted to those whose publisher inputs equal
        every entry of publisher_inputs.
        """

        conditions = [
            {'inputId': key, 'operator': 'equals', 'inputValue': value}
            for key, value in publisher_inputs.items()
        ]
        query = {
            'publisherId': publisher_id,
            'publisherInputFilters': [{'conditions': conditions}],
            'consumerId': consumer_id,
            'consumerActionId': consumer_action_id,
        }

        r = await self._request('POST', '_apis/hooks/subscriptionsquery', json=query)
        results = r.json().get('results') or []
        return [Subscription.model_validate(s) for s in results]


    async def create_subscription(self, subscription: Subscription) -> Subscription:
        r = await self._request('POST', '_apis/hooks/subscriptions', json=subscription.to_wire())
        return Subscription.model_validate(r.json())


    async def update_subscription(self, subscription: Subscription) -> Subscription:
        if not subscription.id:
            raise ValueError('Cannot update a subscription without an id')

        r = await self._request(
            'PUT', f'_apis/hooks/subscriptions/{_segment(subscription.id)}',
            json=subscription.to_wire())
        return Subscription.model_validate(r.json())


    async def list_repositories(self, project: str) -> List[Repository]:
        r = await self._request('GET', f'{_segment(project)}/_apis/git/repositories')
        return [Repository.model_validate(v) for v in r.json().get('value', [])]


    async def get_repository(self, project: str, repository: str) -> Repository:
        r = await self._request(
            'GET', f'{_segment(project)}/_apis/git/repositories/{_segment(repository)}')
        return Repository.model_validate(r.json())


    async def get_item(self, project: str, repository: str, path: str) -> ConfigFileItem:
        """
        Fetch the content of a file at the latest processed change of
        the repository. A missing file produces an item with exists
        set to False rather than an error.
        """

        params = {
            'path': path,
            'latestProcessedChange': 'true',
            'includeContent': 'true',
            '$format': 'json',
        }
        url = f'{_segment(project)}/_apis/git/repositories/{_segment(repository)}/items'

        try:
            r = await self._request('GET', url, params=params)
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                return ConfigFileItem(path=path, exists=False)
            raise

        data = r.json()
        data.setdefault('path', path)
        return ConfigFileItem.model_validate(data)


    async def aclose(self) -> None:
        await self._client.aclose()


# The end.
