from abc import ABC, abstractmethod


class IMetrics(ABC):
    @abstractmethod
    def record_run_started(self, trigger_subtype: str) -> None:
        pass

    @abstractmethod
    def record_run_finished(self, status: str, duration: float) -> None:
        pass

    @abstractmethod
    def record_action(self, subtype: str, outcome: str, duration: float) -> None:
        pass

    @abstractmethod
    def record_resumed_runs(self, count: int) -> None:
        pass
