from abc import ABC, abstractmethod


class ILockManager(ABC):
    """Short-lived distributed locks shared by scheduler replicas."""

    @abstractmethod
    async def acquire_lock(self, key: str, ttl_seconds: int = 30) -> bool:
        """Returns True only for the caller that obtained the lock."""
        pass

    @abstractmethod
    async def release_lock(self, key: str) -> None:
        pass
