from unittest.mock import AsyncMock

import pytest

from automation_engine.application.workflow.actions.ai_content import GenerateAIContentAction
from automation_engine.application.workflow.actions.base import ActionContext
from automation_engine.application.workflow.actions.delivery import (
    NotifyFansAction,
    SendEmailAction,
    SendNotificationAction,
    chunked,
)
from automation_engine.application.workflow.actions.wait import WaitAction, compute_delay_ms
from automation_engine.application.workflow.actions.webhook import CallWebhookAction, build_payload
from automation_engine.domain.resilience.exceptions.resilience_exceptions import ProviderError
from automation_engine.domain.workflow.entities.run import Event
from automation_engine.domain.workflow.value_objects.schemas import (
    CallWebhookConfig,
    GenerateAIContentConfig,
    NotificationConfig,
    SendEmailConfig,
    WaitConfig,
)


@pytest.fixture
def ctx():
    return ActionContext(
        run_id="run-1",
        workflow_id="wf-1",
        owner_id="7",
        node_id="n1",
        event=Event(event_type="new_follower", occurred_for="7", data={"followerId": 42}),
    )


class TestSendEmailAction:
    @pytest.mark.asyncio
    async def test_blank_recipient_is_not_an_error(self, ctx):
        sender = AsyncMock()
        outcome = await SendEmailAction(sender).execute(SendEmailConfig(to="  ", subject="Hi"), ctx)

        assert outcome.success is True
        assert outcome.output == {"sent": False, "reason": "no_recipient"}
        sender.send.assert_not_called()

    @pytest.mark.asyncio
    async def test_sends_to_resolved_recipient(self, ctx):
        sender = AsyncMock()
        sender.send.return_value = {"delivered": True}
        config = SendEmailConfig(to="x@y.com", subject="Welcome", body="Thanks")

        outcome = await SendEmailAction(sender).execute(config, ctx)

        sender.send.assert_awaited_once_with("x@y.com", "Welcome", "Thanks")
        assert outcome.output["sent"] is True
        assert outcome.output["to"] == "x@y.com"


class TestNotificationActions:
    @pytest.mark.asyncio
    async def test_send_notification_targets_owner(self, ctx):
        notifier = AsyncMock()
        notifier.notify.return_value = {"delivered": True}

        await SendNotificationAction(notifier).execute(NotificationConfig(title="New fan!"), ctx)

        notifier.notify.assert_awaited_once_with(["7"], "New fan!", "")

    @pytest.mark.asyncio
    async def test_notify_fans_batches_of_one_hundred(self, ctx):
        notifier = AsyncMock()
        notifier.notify.return_value = {"delivered": True}
        directory = AsyncMock()
        directory.list_follower_ids.return_value = [str(i) for i in range(250)]

        outcome = await NotifyFansAction(notifier, directory).execute(
            NotificationConfig(title="New drop", body="Out now"), ctx
        )

        assert notifier.notify.await_count == 3
        batch_sizes = [len(call.args[0]) for call in notifier.notify.await_args_list]
        assert batch_sizes == [100, 100, 50]
        assert outcome.output["recipients"] == 250
        assert outcome.output["batches"] == [100, 100, 50]

    @pytest.mark.asyncio
    async def test_notify_fans_with_no_followers_makes_no_calls(self, ctx):
        notifier = AsyncMock()
        directory = AsyncMock()
        directory.list_follower_ids.return_value = []

        outcome = await NotifyFansAction(notifier, directory).execute(NotificationConfig(title="x"), ctx)

        notifier.notify.assert_not_called()
        assert outcome.output["recipients"] == 0

    def test_chunked_keeps_order(self):
        assert chunked(["a", "b", "c"], 2) == [["a", "b"], ["c"]]


class TestCallWebhookAction:
    @pytest.mark.asyncio
    async def test_missing_url_skips_call(self, ctx):
        caller = AsyncMock()
        outcome = await CallWebhookAction(caller).execute(CallWebhookConfig(url=""), ctx)

        assert outcome.output == {"called": False, "reason": "no_url"}
        caller.post.assert_not_called()

    @pytest.mark.asyncio
    async def test_error_status_raises_provider_error(self, ctx):
        caller = AsyncMock()
        caller.post.return_value = {"status": 502, "body": ""}

        with pytest.raises(ProviderError):
            await CallWebhookAction(caller).execute(CallWebhookConfig(url="https://hooks.example.com"), ctx)

    @pytest.mark.asyncio
    async def test_default_payload_is_event(self, ctx):
        caller = AsyncMock()
        caller.post.return_value = {"status": 200, "body": "ok"}

        outcome = await CallWebhookAction(caller).execute(CallWebhookConfig(url="https://hooks.example.com"), ctx)

        caller.post.assert_awaited_once_with("https://hooks.example.com", ctx.event.to_dict())
        assert outcome.output == {"called": True, "url": "https://hooks.example.com", "status": 200}

    def test_build_payload_variants(self, ctx):
        assert build_payload('{"a": 1}', ctx) == {"a": 1}
        assert build_payload("hello", ctx) == {"message": "hello"}
        assert build_payload({"k": "v"}, ctx) == {"k": "v"}


class TestGenerateAIContentAction:
    @pytest.mark.asyncio
    async def test_generated_text_flows_into_context(self, ctx):
        generator = AsyncMock()
        generator.generate.return_value = {"text": "Thank you for 1M streams!"}

        outcome = await GenerateAIContentAction(generator).execute(
            GenerateAIContentConfig(prompt="Write a thank-you"), ctx
        )

        assert outcome.output == {"generated": True, "content": "Thank you for 1M streams!"}
        assert outcome.context_updates == {"ai_content": "Thank you for 1M streams!"}

    @pytest.mark.asyncio
    async def test_empty_completion_raises(self, ctx):
        generator = AsyncMock()
        generator.generate.return_value = {"text": ""}

        with pytest.raises(ProviderError):
            await GenerateAIContentAction(generator).execute(GenerateAIContentConfig(prompt="x"), ctx)


class TestWaitAction:
    def test_compute_delay(self):
        assert compute_delay_ms(30, 2) == 9_000_000
        assert compute_delay_ms(150, 0) == 9_000_000
        assert compute_delay_ms(0, 1) == 3_600_000
        assert compute_delay_ms(0, 0) == 0

    @pytest.mark.asyncio
    async def test_wait_requests_suspension(self, ctx):
        outcome = await WaitAction().execute(WaitConfig.model_validate({"minutes": "150"}), ctx)
        assert outcome.suspend_ms == 9_000_000

    @pytest.mark.asyncio
    async def test_blank_fields_mean_zero_delay(self, ctx):
        outcome = await WaitAction().execute(WaitConfig.model_validate({"minutes": "", "hours": None}), ctx)
        assert outcome.suspend_ms == 0
