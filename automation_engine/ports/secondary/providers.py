from abc import ABC, abstractmethod
from typing import Any


class IEmailSender(ABC):
    @abstractmethod
    async def send(self, to: str, subject: str, body: str) -> dict:
        """Returns {"delivered": bool}."""
        pass


class INotifier(ABC):
    @abstractmethod
    async def notify(self, recipient_ids: list[str], title: str, body: str) -> dict:
        """Push/in-app notification to one batch of recipients. Returns {"delivered": bool}."""
        pass


class IWebhookCaller(ABC):
    @abstractmethod
    async def post(self, url: str, payload: Any) -> dict:
        """Returns {"status": int, "body": str}."""
        pass


class ISocialPublisher(ABC):
    @abstractmethod
    async def publish(self, platform: str, caption: str) -> dict:
        """Returns {"postId": str}."""
        pass


class ITextGenerator(ABC):
    @abstractmethod
    async def generate(self, system_prompt: str, user_prompt: str) -> dict:
        """Returns {"text": str}."""
        pass


class IFollowerDirectory(ABC):
    @abstractmethod
    async def list_follower_ids(self, artist_id: str) -> list[str]:
        """Every follower of the artist, in a stable order."""
        pass
