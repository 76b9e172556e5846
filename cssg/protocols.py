"""Protocol definitions for cssg.

These protocols describe the seams between the development server and its
collaborators, so tests can substitute lightweight fakes for real WebSocket
connections and for the site builder.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .build import BuildResult
    from .config import ResolvedConfig


@runtime_checkable
class LiveReloadClient(Protocol):
    """One connected browser tab.

    websockets' ``ServerConnection`` satisfies this protocol.
    """

    @abstractmethod
    async def send(self, message: str) -> None:
        """Deliver a text message to the client.

        Raises:
            Exception: Any error means the connection is unusable.
        """
        ...


@runtime_checkable
class SiteBuilder(Protocol):
    """Callable that builds the whole site, such as ``build_site``."""

    @abstractmethod
    def __call__(self, config: ResolvedConfig, mode: str = "prod") -> BuildResult:
        """Build the site for ``config`` in ``mode`` ("dev" or "prod").

        Raises:
            BuildError: If rendering or bundling fails.
        """
        ...
