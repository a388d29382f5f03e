class ResilienceException(Exception):
    pass


class CircuitOpenException(ResilienceException):
    def __init__(self, circuit_name: str, retry_after_seconds: float):
        self.circuit_name = circuit_name
        self.retry_after_seconds = retry_after_seconds
        super().__init__(
            f"Circuit '{circuit_name}' is OPEN. Endpoint unavailable. "
            f"Retry after {retry_after_seconds:.0f} seconds."
        )


class ProviderError(ResilienceException):
    """A side-effect provider answered, but with a failure."""

    def __init__(self, provider: str, message: str):
        self.provider = provider
        super().__init__(f"{provider}: {message}")
