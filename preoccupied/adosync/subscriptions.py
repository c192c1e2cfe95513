"""
Reconciliation of Azure DevOps service hooks subscriptions.

The service keeps exactly one web hook subscription per entry of
SUBSCRIPTION_EVENT_TYPES pointing at its own endpoint. Existing
subscriptions are updated in place and missing ones are created;
nothing is ever deleted.

:author: Christopher O'Brien <obriencj@preoccupied.net>
:license: GNU General Public License v3
:ai-assistant: Auto via Cursor
"""

import asyncio
import logging
from typing import Dict, List, NamedTuple, Optional, Sequence

from .client import DevOpsClient
from .models import Subscription
from .url import normalize_uri, same_uri


logger = logging.getLogger(__name__)


PUBLISHER_ID = 'tfs'
CONSUMER_ID = 'webHooks'
CONSUMER_ACTION_ID = 'httpRequest'

BASIC_AUTH_USERNAME = 'vsts'


class SubscriptionEventType(NamedTuple):
    event_type: str
    resource_version: str


SUBSCRIPTION_EVENT_TYPES = (
    SubscriptionEventType('git.push', '1.0'),
    SubscriptionEventType('git.pullrequest.updated', '1.0'),
    SubscriptionEventType('git.pullrequest.merged', '1.0'),
    SubscriptionEventType('ms.vss-code.git-pullrequest-comment-event', '2.0'),
)


def make_publisher_inputs(event_type: str, project_id: str) -> Dict[str, str]:
    """
    Inputs for the tfs publisher. Available inputs are listed at
    https://dev.azure.com/{organization}/_apis/hooks/publishers/tfs
    """

    # always restrict events to the project
    result = {'projectId': project_id}

    if event_type == 'git.pullrequest.updated':
        result['notificationType'] = 'StatusUpdateNotification'

    if event_type == 'git.pullrequest.merged':
        result['mergeResult'] = 'Conflicts'

    return result


def make_consumer_inputs(webhook_endpoint: str, subscription_password: str) -> Dict[str, str]:
    """
    Inputs for the webHooks consumer. Available inputs are listed at
    https://dev.azure.com/{organization}/_apis/hooks/consumers/webHooks
    """

    return {
        'detailedMessagesToSend': 'none',
        'messagesToSend': 'none',
        'url': webhook_endpoint,
        'basicAuthUsername': BASIC_AUTH_USERNAME,
        'basicAuthPassword': subscription_password,
    }


def find_subscription(
        subscriptions: Sequence[Subscription],
        event_type: str,
        webhook_endpoint: str) -> Optional[Subscription]:
    """
    The first subscription for event_type whose url consumer input
    refers to webhook_endpoint, compared as URIs.
    """

    for sub in subscriptions:
        url = sub.consumer_inputs.get('url')
        if sub.event_type == event_type and url and same_uri(url, webhook_endpoint):
            return sub
    return None


async def _apply(
        client: DevOpsClient,
        existing: Optional[Subscription],
        desired: SubscriptionEventType,
        project_id: str,
        webhook_endpoint: str,
        subscription_password: str) -> str:

    publisher_inputs = make_publisher_inputs(desired.event_type, project_id)
    consumer_inputs = make_consumer_inputs(webhook_endpoint, subscription_password)

    if existing is not None:
        # publisher_id, consumer_id, and consumer_action_id cannot be updated
        updated = existing.model_copy(update={
            'event_type': desired.event_type,
            'resource_version': desired.resource_version,
            'publisher_inputs': publisher_inputs,
            'consumer_inputs': consumer_inputs,
        })
        result = await client.update_subscription(updated)
        logger.info(f'Updated subscription {result.id} for {desired.event_type}')

    else:
        created = Subscription(
            event_type=desired.event_type,
            resource_version=desired.resource_version,
            publisher_id=PUBLISHER_ID,
            publisher_inputs=publisher_inputs,
            consumer_id=CONSUMER_ID,
            consumer_action_id=CONSUMER_ACTION_ID,
            consumer_inputs=consumer_inputs,
        )
        result = await client.create_subscription(created)
        logger.info(f'Created subscription {result.id} for {desired.event_type}')

    return result.id


async def reconcile_subscriptions(
        client: DevOpsClient,
        project: str,
        webhook_endpoint: str,
        subscription_password: str,
        catalog: Sequence[SubscriptionEventType] = SUBSCRIPTION_EVENT_TYPES) -> List[str]:
    """
    Create or update one subscription per catalog entry so that each
    delivers to webhook_endpoint. Returns the subscription identifiers
    in catalog order.

    Any failure from the platform propagates, in which case the whole
    reconciliation should be retried.
    """

    if not (webhook_endpoint and subscription_password):
        raise ValueError('webhook_endpoint and subscription_password must be set')

    # raises ValueError for an endpoint that could never match a subscription
    normalize_uri(webhook_endpoint)

    project_id = await client.get_project_id(project)

    subscriptions = await client.query_subscriptions(
        publisher_id=PUBLISHER_ID,
        consumer_id=CONSUMER_ID,
        consumer_action_id=CONSUMER_ACTION_ID,
        publisher_inputs={'projectId': project_id},
    )
    logger.debug(f'Found {len(subscriptions)} existing subscriptions in project {project_id}')

    # matching happens against the initial query only, so the create and
    # update calls are independent of one another
    tasks = []
    for desired in catalog:
        existing = find_subscription(subscriptions, desired.event_type, webhook_endpoint)
        tasks.append(asyncio.ensure_future(_apply(
            client, existing, desired,
            project_id, webhook_endpoint, subscription_password)))

    try:
        return list(await asyncio.gather(*tasks))

    except BaseException:
        # no create or update outlives a failed reconciliation
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


# The end.
