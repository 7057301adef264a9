"""Stand-ins for time and randomness."""

from __future__ import annotations


class RecordingSleep:
    """Async stand-in for ``asyncio.sleep`` that returns immediately."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class CountingRng:
    """Deterministic byte source: each call returns a distinct block."""

    def __init__(self, seed: int = 1) -> None:
        self._counter = seed

    def __call__(self, n: int) -> bytes:
        self._counter += 1
        block = self._counter.to_bytes(4, "big")
        return (block * (n // 4 + 1))[:n]
