from sqlalchemy.ext.asyncio import AsyncSession

from automation_engine.adapters.secondary.persistence.pg_follower_directory import PostgresFollowerDirectory
from automation_engine.adapters.secondary.persistence.pg_run_repository import PostgresRunRepository
from automation_engine.adapters.secondary.persistence.pg_workflow_repository import PostgresWorkflowRepository
from automation_engine.adapters.secondary.providers.simulated import (
    SimulatedEmailSender,
    SimulatedNotifier,
    SimulatedSocialPublisher,
    SimulatedTextGenerator,
)
from automation_engine.adapters.secondary.providers.webhook_caller import HttpxWebhookCaller
from automation_engine.application.workflow.actions.ai_content import GenerateAIContentAction
from automation_engine.application.workflow.actions.delivery import (
    NotifyFansAction,
    PostInstagramAction,
    PostTwitterAction,
    SendEmailAction,
    SendNotificationAction,
)
from automation_engine.application.workflow.actions.wait import WaitAction
from automation_engine.application.workflow.actions.webhook import CallWebhookAction
from automation_engine.application.workflow.dispatcher import ActionDispatcher
from automation_engine.application.workflow.launcher import RunLauncher
from automation_engine.application.workflow.runner import WorkflowRunner
from automation_engine.shared.metrics import metrics_registry

# Process-wide providers; the webhook caller keeps its connection pool and breakers
email_sender = SimulatedEmailSender()
notifier = SimulatedNotifier()
social_publisher = SimulatedSocialPublisher()
text_generator = SimulatedTextGenerator()
webhook_caller = HttpxWebhookCaller()


def build_dispatcher(session: AsyncSession) -> ActionDispatcher:
    """Registers one handler per action subtype."""
    return ActionDispatcher(
        metrics=metrics_registry,
        handlers=[
            SendEmailAction(email_sender),
            SendNotificationAction(notifier),
            NotifyFansAction(notifier, PostgresFollowerDirectory(session)),
            CallWebhookAction(webhook_caller),
            GenerateAIContentAction(text_generator),
            WaitAction(),
            PostInstagramAction(social_publisher),
            PostTwitterAction(social_publisher),
        ],
    )


def build_launcher(session: AsyncSession) -> RunLauncher:
    return RunLauncher(
        workflow_repository=PostgresWorkflowRepository(session),
        run_repository=PostgresRunRepository(session),
        runner=WorkflowRunner(build_dispatcher(session), metrics_registry),
        metrics=metrics_registry,
    )
