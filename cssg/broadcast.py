"""Registry of live-reload clients and notification fan-out.

The registry is a plain publish/subscribe set: connections subscribe when
their WebSocket handshake completes and unsubscribe when they close. A
broadcast iterates over a snapshot of the members, so connections opening or
closing mid-broadcast never disturb the iteration, and a failing connection
is dropped without affecting delivery to anyone else.

Delivery is best-effort and at-most-once. A tab that is disconnected during a
broadcast simply misses it.
"""

from __future__ import annotations

from .hmr import NotificationMessage
from .protocols import LiveReloadClient


class ClientRegistry:
    """Set of connected live-reload clients."""

    def __init__(self):
        self._clients: set[LiveReloadClient] = set()

    def register(self, client: LiveReloadClient) -> None:
        self._clients.add(client)

    def unregister(self, client: LiveReloadClient) -> None:
        """Remove a client. Safe to call for clients that never registered."""
        self._clients.discard(client)

    def snapshot(self) -> list[LiveReloadClient]:
        return list(self._clients)

    async def broadcast(self, message: NotificationMessage) -> int:
        """Send ``message`` to every registered client.

        Args:
            message: Notification to deliver.

        Returns:
            Number of clients that received the message.
        """
        payload = message.encode()
        delivered = 0
        for client in self.snapshot():
            try:
                await client.send(payload)
            except Exception:
                self.unregister(client)
                continue
            delivered += 1
        return delivered

    def __contains__(self, client: object) -> bool:
        return client in self._clients

    def __len__(self) -> int:
        return len(self._clients)
