"""Build execution for the development loop.

BuildExecutor runs a full development-mode build for a set of changed paths
and decides how connected browsers should be told about it. A change that
only touches stylesheets can be applied by swapping ``<link>`` hrefs; any
other change needs a full page reload. The decision looks at file extensions
only and never inspects the build output, so a stylesheet edit that also
changes page structure is still reported as a style update.
"""

from __future__ import annotations

import asyncio
import enum
import time
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

import click

from .build import build_site
from .config import ConfigError, ResolvedConfig, base_path, load_config
from .hmr import FullReload, NotificationMessage, StyleUpdate
from .html_utils import join_root_url
from .protocols import SiteBuilder
from .utils import is_stylesheet, relative_posix


class OutcomeKind(enum.Enum):
    FULL_RELOAD = "full-reload"
    STYLE_UPDATE = "style-update"
    FAILED = "failed"


@dataclass(frozen=True)
class BuildOutcome:
    """Result of one triggered rebuild.

    Attributes:
        kind: How clients should be notified, or FAILED.
        style_paths: URL paths of changed stylesheets (STYLE_UPDATE only).
        duration: Wall-clock build time in seconds.
        error: The exception that failed the build, if any.
    """

    kind: OutcomeKind
    style_paths: tuple[str, ...] = ()
    duration: float = 0.0
    error: BaseException | None = field(default=None, compare=False)

    @property
    def ok(self) -> bool:
        return self.kind is not OutcomeKind.FAILED

    @property
    def messages(self) -> list[NotificationMessage]:
        """Notifications to broadcast for this outcome."""
        if self.kind is OutcomeKind.FULL_RELOAD:
            return [FullReload()]
        if self.kind is OutcomeKind.STYLE_UPDATE:
            return [StyleUpdate(path) for path in self.style_paths]
        return []


def stylesheet_url(path: str | Path, config: ResolvedConfig) -> str:
    """Map a source stylesheet path to the URL it is served under."""
    path = Path(path)
    rel = relative_posix(path, config.assets_dir)
    if rel is not None:
        return join_root_url(base_path(), f"/assets/{rel}")
    rel = relative_posix(path, config.public_dir)
    if rel is not None:
        return join_root_url(base_path(), rel)
    rel = relative_posix(path, config.root)
    return join_root_url("", rel if rel is not None else path.as_posix())


def classify(changed_paths: Iterable[str], config: ResolvedConfig) -> BuildOutcome:
    """Decide between a style-only update and a full reload.

    Args:
        changed_paths: Paths that triggered the rebuild.
        config: Configuration used to map stylesheets to URLs.

    Returns:
        A STYLE_UPDATE outcome when every path is a stylesheet, otherwise
        FULL_RELOAD.
    """
    paths = list(changed_paths)
    if paths and all(is_stylesheet(p) for p in paths):
        urls = sorted({stylesheet_url(p, config) for p in paths})
        return BuildOutcome(OutcomeKind.STYLE_UPDATE, style_paths=tuple(urls))
    return BuildOutcome(OutcomeKind.FULL_RELOAD)


class BuildExecutor:
    """Runs development builds and owns the current configuration.

    Attributes:
        config: The configuration in effect. Replaced wholesale when the
            config file changes and reloads successfully.
        builder: Function performing the actual build.
    """

    def __init__(self, config: ResolvedConfig, builder: SiteBuilder = build_site):
        self.config = config
        self.builder = builder

    def reload_config(self) -> bool:
        """Reload the config file, keeping the current config on failure.

        Returns:
            True if the configuration was replaced.
        """
        try:
            new_config = load_config(self.config.root)
        except ConfigError as exc:
            click.echo(
                click.style(f"Config reload failed, keeping previous config: {exc}", fg="yellow"),
                err=True,
            )
            return False
        self.config = new_config
        click.echo("Configuration reloaded.")
        return True

    async def run(self, changed_paths: Iterable[str]) -> BuildOutcome:
        """Rebuild the site for a set of changed paths.

        Build failures are reported and returned as a FAILED outcome; they
        never propagate.
        """
        changed = sorted(changed_paths)
        if any(Path(p) == self.config.config_path for p in changed):
            self.reload_config()
        outcome = classify(changed, self.config)

        click.echo(f"Rebuilding due to changes: {', '.join(changed)}")
        start = time.perf_counter()
        try:
            await asyncio.to_thread(self.builder, self.config, "dev")
        except Exception as exc:
            duration = time.perf_counter() - start
            click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
            click.echo(f"  Triggered by: {', '.join(changed)}", err=True)
            click.echo(f"  Error: {exc}", err=True)
            return BuildOutcome(OutcomeKind.FAILED, duration=duration, error=exc)
        duration = time.perf_counter() - start
        click.echo(click.style(f"Rebuild completed in {duration * 1000:.2f}ms", fg="green"))
        return BuildOutcome(outcome.kind, outcome.style_paths, duration)
