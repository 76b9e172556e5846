"""Page discovery and source parsing for cssg.

Pages live under the configured pages directory. Each page is a Jinja
template (``.jinja``), an HTML fragment (``.html``, also run through Jinja)
or a Markdown document (``.md``), optionally preceded by YAML front matter.

Key items:
- Page: Dataclass representing one source page.
- extract_frontmatter: Split YAML front matter from the page body.
- discover_pages: Find every renderable page below a directory.
- render_markdown: Convert Markdown to HTML with mistune.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import mistune
import yaml

from .utils import is_internal_path

FRONTMATTER_RE = re.compile(r"^---\s*\n(.*?)\n---\s*(?:\n|$)", re.DOTALL)

PAGE_SUFFIXES = {
    ".jinja": "jinja",
    ".html": "jinja",
    ".md": "markdown",
}

_markdown = mistune.create_markdown(
    escape=False, plugins=["strikethrough", "footnotes", "table", "url"]
)


@dataclass
class Page:
    """Represents a source page.

    Attributes:
        path: Absolute path to the source file.
        rel_path: Path relative to the pages directory.
        body: Source text without front matter.
        source_type: "jinja" or "markdown".
        frontmatter: Parsed front matter mapping.
    """

    path: Path
    rel_path: Path
    body: str
    source_type: str
    frontmatter: dict[str, Any] = field(default_factory=dict)

    @property
    def output_rel_path(self) -> Path:
        """Output location relative to the output directory."""
        return self.rel_path.with_suffix(".html")

    @property
    def url(self) -> str:
        """Root-relative URL of the rendered page."""
        return "/" + self.output_rel_path.as_posix()

    @property
    def layout(self) -> str:
        layout = self.frontmatter.get("layout")
        return layout if isinstance(layout, str) and layout else "main"


def extract_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Extract YAML frontmatter from content.

    Args:
        text: Raw file content.

    Returns:
        Tuple of (frontmatter dict, remaining content).
    """
    match = FRONTMATTER_RE.match(text)
    if not match:
        return {}, text
    try:
        data = yaml.safe_load(match.group(1)) or {}
        if not isinstance(data, dict):
            return {}, text
        return data, text[match.end() :]
    except yaml.YAMLError:
        return {}, text


def load_page(path: Path, pages_dir: Path) -> Page:
    """Read a page source file and split off its front matter."""
    text = path.read_text(encoding="utf-8")
    frontmatter, body = extract_frontmatter(text)
    return Page(
        path=path,
        rel_path=path.relative_to(pages_dir),
        body=body,
        source_type=PAGE_SUFFIXES[path.suffix.lower()],
        frontmatter=frontmatter,
    )


def discover_pages(pages_dir: Path) -> list[Page]:
    """Find and load every renderable page below ``pages_dir``.

    Files inside ``_``-prefixed directories (or with ``_``-prefixed names)
    are treated as partials and skipped.

    Args:
        pages_dir: Directory to scan recursively.

    Returns:
        Pages sorted by relative path.
    """
    if not pages_dir.exists():
        return []
    pages = []
    for path in sorted(pages_dir.rglob("*")):
        if not path.is_file() or path.suffix.lower() not in PAGE_SUFFIXES:
            continue
        if is_internal_path(path.relative_to(pages_dir)):
            continue
        pages.append(load_page(path, pages_dir))
    return pages


def render_markdown(text: str) -> str:
    return _markdown(text)
