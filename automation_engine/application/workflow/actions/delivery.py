from automation_engine.application.workflow.actions.base import (
    ActionContext,
    ActionOutcome,
    BaseAction,
)
from automation_engine.domain.workflow.value_objects.schemas import (
    InstagramPostConfig,
    NotificationConfig,
    SendEmailConfig,
    TwitterPostConfig,
)
from automation_engine.ports.secondary.providers import (
    IEmailSender,
    IFollowerDirectory,
    INotifier,
    ISocialPublisher,
)
from automation_engine.shared.config import settings


class SendEmailAction(BaseAction):
    def __init__(self, email_sender: IEmailSender):
        self._email_sender = email_sender

    @property
    def subtype(self) -> str:
        return "send_email"

    async def execute(self, config: SendEmailConfig, ctx: ActionContext) -> ActionOutcome:
        to = config.to.strip()
        if not to:
            return ActionOutcome(output={"sent": False, "reason": "no_recipient"})

        result = await self._email_sender.send(to, config.subject, config.body)
        return ActionOutcome(
            output={"sent": True, "to": to, "delivered": bool(result.get("delivered", True))}
        )


class SendNotificationAction(BaseAction):
    """Notifies the owning artist."""

    def __init__(self, notifier: INotifier):
        self._notifier = notifier

    @property
    def subtype(self) -> str:
        return "send_notification"

    async def execute(self, config: NotificationConfig, ctx: ActionContext) -> ActionOutcome:
        result = await self._notifier.notify([ctx.owner_id], config.title, config.body)
        return ActionOutcome(
            output={
                "sent": True,
                "recipients": 1,
                "delivered": bool(result.get("delivered", True)),
            }
        )


def chunked(items: list[str], size: int) -> list[list[str]]:
    return [items[i : i + size] for i in range(0, len(items), size)]


class NotifyFansAction(BaseAction):
    """
    Notifies every follower of the owning artist.

    Recipients go out in fixed-size batches, one notifier call per batch, sent
    one after another so a large fan base never bursts the provider.
    """

    def __init__(self, notifier: INotifier, follower_directory: IFollowerDirectory):
        self._notifier = notifier
        self._follower_directory = follower_directory

    @property
    def subtype(self) -> str:
        return "notify_fans"

    async def execute(self, config: NotificationConfig, ctx: ActionContext) -> ActionOutcome:
        follower_ids = await self._follower_directory.list_follower_ids(ctx.owner_id)
        batches = chunked(follower_ids, settings.NOTIFY_FANS_BATCH_SIZE)

        delivered = True
        for batch in batches:
            result = await self._notifier.notify(batch, config.title, config.body)
            delivered = delivered and bool(result.get("delivered", True))

        return ActionOutcome(
            output={
                "sent": True,
                "recipients": len(follower_ids),
                "batches": [len(batch) for batch in batches],
                "delivered": delivered,
            }
        )


class PostInstagramAction(BaseAction):
    def __init__(self, publisher: ISocialPublisher):
        self._publisher = publisher

    @property
    def subtype(self) -> str:
        return "post_instagram"

    async def execute(self, config: InstagramPostConfig, ctx: ActionContext) -> ActionOutcome:
        result = await self._publisher.publish("instagram", config.caption)
        return ActionOutcome(
            output={"posted": True, "platform": "instagram", "postId": result.get("postId")}
        )


class PostTwitterAction(BaseAction):
    def __init__(self, publisher: ISocialPublisher):
        self._publisher = publisher

    @property
    def subtype(self) -> str:
        return "post_twitter"

    async def execute(self, config: TwitterPostConfig, ctx: ActionContext) -> ActionOutcome:
        result = await self._publisher.publish("twitter", config.text)
        return ActionOutcome(
            output={"posted": True, "platform": "twitter", "postId": result.get("postId")}
        )
