"""
Subscription intents: list the account's subscriptions and pick one for
the rest of the conversation.
"""

import logging
from typing import List, Optional

from opsbot.core.cloud.cloud import CloudAdapter, Subscription
from opsbot.core.errors import RemoteCallFault, ResolutionFailure
from opsbot.core.nlu.types import ClassificationResult
from opsbot.core.resolver import Strategy, resolve_entity

logger = logging.getLogger("subscription_skill")

ASK_SUBSCRIPTION = "Which subscription do you want to use?"


class SubscriptionSkill:
    def __init__(self, cloud: CloudAdapter):
        self.cloud = cloud

    def routes(self):
        return [
            ("ListSubscriptions", self.list_subscriptions),
            ("UseSubscription", self.use_subscription),
        ]

    async def list_subscriptions(self, context, result: ClassificationResult) -> None:
        try:
            subscriptions = await self.cloud.list_subscriptions()
        except RemoteCallFault as e:
            await context.post_reply(f"Sorry, I could not list your subscriptions: {e}")
            context.wait()
            return

        if not subscriptions:
            await context.post_reply("You don't have any subscriptions.")
        else:
            listing = "".join(f"\n{i}. {s.display_name}" for i, s in enumerate(subscriptions, start=1))
            await context.post_reply(f"Your subscriptions are: {listing}")
        context.wait()

    async def use_subscription(self, context, result: ClassificationResult) -> None:
        try:
            subscriptions = await self.cloud.list_subscriptions()
        except RemoteCallFault as e:
            await context.post_reply(f"Sorry, I could not list your subscriptions: {e}")
            context.wait()
            return

        try:
            requested = resolve_entity(result.entities, Strategy.ORDINAL, subscriptions)
        except ResolutionFailure as e:
            logger.info("SubscriptionSkill: %s", e)
            await context.post_reply(f"I could not find that subscription. {ASK_SUBSCRIPTION}")
            context.wait()
            return

        if requested is None:
            await context.post_reply(ASK_SUBSCRIPTION)
            context.wait()
            return

        if isinstance(requested, Subscription):
            subscription = requested
        else:
            subscription = _find(subscriptions, requested)
        if subscription is None:
            await context.post_reply(f"I could not find a subscription called {requested}. {ASK_SUBSCRIPTION}")
            context.wait()
            return

        # The id drives API calls; the display name is only ever echoed back.
        context.state.use_subscription(subscription.id, subscription.display_name)
        logger.info("SubscriptionSkill: conversation %s now uses %s", context.conversation_id, subscription.id)
        await context.post_reply(f"Using the {subscription.display_name} subscription.")
        context.wait()


def _find(subscriptions: List[Subscription], requested: str) -> Optional[Subscription]:
    wanted = requested.strip().lower()
    for s in subscriptions:
        if s.display_name.lower() == wanted or s.id.lower() == wanted:
            return s
    return None
