"""
Unit tests for repositories module.

:author: Christopher O'Brien <obriencj@preoccupied.net>
:license: GNU General Public License v3
:ai-assistant: Auto via Cursor
"""

import asyncio

import httpx
import pytest

from conftest import http_error
from preoccupied.adosync.models import Repository
from preoccupied.adosync.repositories import (
    DEFAULT_CONFIGURATION_FILE_PATHS, find_config_file, get_repository,
    list_repositories,
)


@pytest.mark.asyncio
class TestListRepositories:
    """
    Tests for list_repositories and get_repository.
    """

    async def test_sorted_by_name(self, fake_client):
        """
        Test that repositories come back ordered by name.
        """

        fake_client.repositories = [
            Repository(id='2', name='b'),
            Repository(id='1', name='a'),
            Repository(id='3', name='c'),
        ]

        repos = await list_repositories(fake_client, 'dependabot')
        assert [r.name for r in repos] == ['a', 'b', 'c']

    async def test_empty_project(self, fake_client):
        assert await list_repositories(fake_client, 'dependabot') == []

    async def test_failure_propagates(self, fake_client):
        async def fail(project):
            raise http_error(500)

        fake_client.list_repositories = fail

        with pytest.raises(httpx.HTTPStatusError):
            await list_repositories(fake_client, 'dependabot')

    async def test_get_repository_by_name(self, fake_client):
        repo = Repository(id='r-1', name='website', default_branch='refs/heads/main')
        fake_client.repositories = [repo]

        assert await get_repository(fake_client, 'dependabot', 'website') is repo


@pytest.mark.asyncio
class TestFindConfigFile:
    """
    Tests for find_config_file function.
    """

    async def test_returns_first_existing(self, fake_client):
        """
        Test that a miss on the first path falls through to the second.
        """

        fake_client.files[('r-1', '/b.yml')] = 'version: 2'

        item = await find_config_file(fake_client, 'dependabot', 'r-1', ['/a.yml', '/b.yml'])

        assert item.path == '/b.yml'
        assert item.content == 'version: 2'
        assert item.exists

    async def test_stops_at_first_hit(self, fake_client):
        """
        Test that no further paths are tried after a hit.
        """

        fake_client.files[('r-1', '/a.yml')] = 'a'
        fake_client.files[('r-1', '/b.yml')] = 'b'

        item = await find_config_file(fake_client, 'dependabot', 'r-1', ['/a.yml', '/b.yml'])

        assert item.content == 'a'
        lookups = [c for c in fake_client.calls if c[0] == 'get_item']
        assert lookups == [('get_item', 'r-1', '/a.yml')]

    async def test_absent(self, fake_client):
        item = await find_config_file(fake_client, 'dependabot', 'r-1', ['/a.yml', '/b.yml'])
        assert item is None

    async def test_errors_treated_as_absent(self, fake_client):
        """
        Test that a remote failure on one path does not stop the search.
        """

        fake_client.item_errors['/a.yml'] = http_error(403)
        fake_client.item_errors['/b.yml'] = httpx.ConnectError('connection refused')
        fake_client.files[('r-1', '/c.yml')] = 'found'

        item = await find_config_file(
            fake_client, 'dependabot', 'r-1', ['/a.yml', '/b.yml', '/c.yml'])

        assert item.path == '/c.yml'

    async def test_cancellation_not_swallowed(self, fake_client):
        """
        Test that cancellation during a lookup is not mistaken for absence.
        """

        fake_client.item_errors['/a.yml'] = asyncio.CancelledError()

        with pytest.raises(asyncio.CancelledError):
            await find_config_file(fake_client, 'dependabot', 'r-1', ['/a.yml', '/b.yml'])

    async def test_default_paths(self, fake_client):
        fake_client.files[('r-1', '.github/dependabot.yml')] = 'version: 2'

        item = await find_config_file(fake_client, 'dependabot', 'r-1')

        assert item.path == '.github/dependabot.yml'
        lookups = [c[2] for c in fake_client.calls if c[0] == 'get_item']
        assert lookups == list(DEFAULT_CONFIGURATION_FILE_PATHS[:3])


# The end.
