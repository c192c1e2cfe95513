"""
FastAPI application for the adosync service.

:author: Christopher O'Brien <obriencj@preoccupied.net>
:license: GNU General Public License v3
:ai-assistant: Auto via Cursor
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Header, HTTPException

from .config import get_config
from .models import ProcessSynchronization
from .provider import AzureDevOpsProvider


logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


_provider: Optional[AzureDevOpsProvider] = None


def get_provider() -> AzureDevOpsProvider:
    """
    Get the global provider, sharing one connection cache across requests.
    """

    global _provider

    if _provider is None:
        _provider = AzureDevOpsProvider(get_config())

    return _provider


def check_sync_token(x_sync_token: Optional[str]) -> None:
    sync_token = get_config().sync_token
    if sync_token and x_sync_token != sync_token:
        raise HTTPException(status_code=401, detail='Bad secret')


async def app_startup():
    """
    Startup event handler for the app
    """

    # fetch configuration for the first time
    try:
        config = get_config()
    except Exception as e:
        logger.error(f'Failed to load configuration: {e}', exc_info=True)
        raise

    if not config.sync_on_startup:
        return

    try:
        logger.info('Reconciling subscriptions on startup...')
        ids = await get_provider().create_or_update_subscriptions()
        logger.info(f'Reconciled {len(ids)} subscriptions')
    except Exception as e:
        logger.error(f'Failed to reconcile subscriptions on startup: {e}', exc_info=True)


@asynccontextmanager
async def app_lifespan(app: FastAPI):
    """
    Lifespan event handler for the app
    """

    logger.info('Starting up...')

    await app_startup()

    try:
        yield
    finally:

        logger.info('Shutting down...')
        if _provider is not None:
            await _provider.aclose()


app = FastAPI(lifespan=app_lifespan)


@app.post('/subscriptions')
async def subscriptions(x_sync_token: str = Header(None)):
    """
    Create or update the service hooks subscriptions
    """

    check_sync_token(x_sync_token)

    try:
        ids = await get_provider().create_or_update_subscriptions()
        return {'status': 'ok', 'subscriptions': ids}
    except Exception as e:
        logger.error(f'Error reconciling subscriptions: {e}', exc_info=True)
        raise HTTPException(status_code=500, detail=f'Reconciliation failed: {str(e)}')


@app.post('/sync')
async def sync(message: ProcessSynchronization, x_sync_token: str = Header(None)):
    """
    Synchronize one repository, or every repository in the project,
    reporting the configuration file found for each
    """

    check_sync_token(x_sync_token)

    if message.repository_id and message.repository_provider_id:
        raise HTTPException(
            status_code=400,
            detail='Only one of repositoryId or repositoryProviderId may be supplied')

    provider = get_provider()

    try:
        if message.repository:
            repos = [await provider.get_repository(message.repository)]
        else:
            repos = await provider.get_repositories()

        results = []
        for repo in repos:
            item = await provider.get_configuration_file(repo.id)
            results.append({
                'id': repo.id,
                'name': repo.name,
                'defaultBranch': repo.default_branch,
                'configurationFile': item.path if item else None,
            })

    except Exception as e:
        logger.error(f'Error synchronizing repositories: {e}', exc_info=True)
        raise HTTPException(status_code=500, detail=f'Sync failed: {str(e)}')

    return {'status': 'ok', 'trigger': message.trigger, 'repositories': results}


# The end.
