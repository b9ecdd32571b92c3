"""Base adapter: named component with an async start/stop lifecycle."""

from __future__ import annotations

from abc import ABC, abstractmethod


class AdapterBase(ABC):
    @property
    @abstractmethod
    def name(self) -> str:
        """Adapter identifier (e.g. 'discord')."""
        ...

    @abstractmethod
    async def start(self) -> None:
        """Start the adapter (connect, register handlers)."""
        ...

    @abstractmethod
    async def stop(self) -> None:
        """Stop the adapter (disconnect, cleanup)."""
        ...
