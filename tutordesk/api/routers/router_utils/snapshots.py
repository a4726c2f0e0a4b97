"""One-shot reads over live subscriptions for REST endpoints."""

import asyncio
from typing import TypeVar

from tutordesk.application.services.subscription_service import Subscription
from tutordesk.core.exceptions import TransientStoreFailure

T = TypeVar("T")

SNAPSHOT_TIMEOUT_SECONDS = 10.0


async def first_snapshot(subscription: Subscription[T]) -> T:
    """
    Return the initial snapshot of a subscription and release it.

    Raises:
        TransientStoreFailure: If no snapshot arrives in time
    """
    async with subscription:
        try:
            return await subscription.receive(timeout=SNAPSHOT_TIMEOUT_SECONDS)
        except asyncio.TimeoutError as e:
            raise TransientStoreFailure(
                f"No snapshot for {subscription.name}",
                operation="first_snapshot",
            ) from e
