import asyncio
import random
from uuid import uuid4

from automation_engine.ports.secondary.providers import (
    IEmailSender,
    INotifier,
    ISocialPublisher,
    ITextGenerator,
)
from automation_engine.shared.config import settings
from automation_engine.shared.logger import get_logger

logger = get_logger(__name__)


async def _simulate_latency(min_ms: int, max_ms: int) -> None:
    if settings.PROVIDER_ENABLE_DELAYS:
        await asyncio.sleep(random.uniform(min_ms / 1000, max_ms / 1000))


class SimulatedEmailSender(IEmailSender):
    async def send(self, to: str, subject: str, body: str) -> dict:
        await _simulate_latency(settings.PROVIDER_DELIVERY_MIN_MS, settings.PROVIDER_DELIVERY_MAX_MS)
        logger.info("email_sent", to=to, subject=subject)
        return {"delivered": True}


class SimulatedNotifier(INotifier):
    async def notify(self, recipient_ids: list[str], title: str, body: str) -> dict:
        await _simulate_latency(settings.PROVIDER_DELIVERY_MIN_MS, settings.PROVIDER_DELIVERY_MAX_MS)
        logger.info("notification_sent", recipients=len(recipient_ids), title=title)
        return {"delivered": True}


class SimulatedSocialPublisher(ISocialPublisher):
    async def publish(self, platform: str, caption: str) -> dict:
        await _simulate_latency(settings.PROVIDER_DELIVERY_MIN_MS, settings.PROVIDER_DELIVERY_MAX_MS)
        post_id = f"{platform}-{uuid4().hex[:12]}"
        logger.info("social_post_published", platform=platform, post_id=post_id)
        return {"postId": post_id}


class SimulatedTextGenerator(ITextGenerator):
    """Canned completions with LLM-like latency, for local runs and demos."""

    RESPONSES = [
        "Thank you for being part of this journey. New music is on the way!",
        "We just hit a huge milestone together. This one is for you.",
        "Your support keeps the studio lights on. Stay tuned for something special.",
        "Welcome to the family! Check out the latest release and tell me what you think.",
    ]

    async def generate(self, system_prompt: str, user_prompt: str) -> dict:
        await _simulate_latency(settings.PROVIDER_LLM_MIN_MS, settings.PROVIDER_LLM_MAX_MS)
        return {"text": random.choice(self.RESPONSES)}
