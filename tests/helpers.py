"""Shared helpers for the test suite."""


class FakeClock:
    """A deterministic clock advancing by `step` milliseconds on every call."""

    def __init__(self, start: int = 1_700_000_000_000, step: int = 1000) -> None:
        self.now = start
        self.step = step

    def __call__(self) -> int:
        self.now += self.step
        return self.now
