"""Site building functionality for cssg.

This module contains the core logic for building a static site from source
files. It processes assets, copies the public directory, loads data, renders
pages and writes the output tree.

Key functions:
- build_site: Main function to build the entire site.
- load_data: Loads site data from JSON and YAML files in the data directory.
"""

from __future__ import annotations

import json
import shutil
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from jinja2 import TemplateSyntaxError
from markupsafe import escape

from .asset_processors import AssetError
from .assets import AssetPipeline
from .config import ResolvedConfig, base_path
from .pages import Page, discover_pages
from .templates import TemplateEngine
from .utils import ensure_clean_dir

BUILD_MODES = ("dev", "prod")
DATA_SUFFIXES = {".json", ".yaml", ".yml"}


class BuildError(Exception):
    """Error during site build with file context.

    Attributes:
        source_path: Path to the source file that caused the error.
        message: Human-readable error message.
        original_error: The original exception that was caught.
    """

    def __init__(
        self,
        source_path: Path,
        message: str,
        original_error: Exception | None = None,
    ):
        self.source_path = source_path
        self.message = message
        self.original_error = original_error
        super().__init__(f"{source_path}: {message}")


@dataclass
class BuildResult:
    """Result of a site build operation.

    Attributes:
        pages: List of all rendered pages.
        output_dir: Directory where the site was built.
        data: Site data dictionary.
    """

    pages: list[Page]
    output_dir: Path
    data: dict[str, Any]


def load_data(data_dir: Path) -> dict[str, Any]:
    """Load site data from JSON and YAML files in the data directory.

    Each file becomes one key: its path relative to ``data_dir`` without the
    suffix, so ``data/blog/authors.json`` is available as ``blog/authors``.

    Args:
        data_dir: Directory holding the data files.

    Returns:
        Dictionary mapping keys to parsed file contents.

    Raises:
        BuildError: If a data file cannot be parsed.
    """
    data: dict[str, Any] = {}
    if not data_dir.exists():
        return data
    for path in sorted(data_dir.rglob("*")):
        if not path.is_file() or path.suffix.lower() not in DATA_SUFFIXES:
            continue
        key = path.relative_to(data_dir).with_suffix("").as_posix()
        try:
            with open(path, encoding="utf-8") as f:
                if path.suffix.lower() == ".json":
                    data[key] = json.load(f)
                else:
                    data[key] = yaml.safe_load(f)
        except (json.JSONDecodeError, yaml.YAMLError) as exc:
            raise BuildError(path, f"Invalid data file: {exc}", exc) from exc
    return data


def build_site(config: ResolvedConfig, mode: str = "prod") -> BuildResult:
    """Build the entire static site.

    Args:
        config: Resolved project configuration.
        mode: "prod" wipes the output directory and minifies assets; "dev"
            writes over the existing output so served files never disappear.

    Returns:
        BuildResult containing all pages, output directory, and site data.

    Raises:
        BuildError: If an asset, data file or page fails to build.
    """
    if mode not in BUILD_MODES:
        raise ValueError(f"Unknown build mode: {mode!r}")
    output_dir = config.output_dir
    if mode == "prod":
        ensure_clean_dir(output_dir)
    else:
        output_dir.mkdir(parents=True, exist_ok=True)

    try:
        AssetPipeline(config, mode).run()
    except AssetError as exc:
        raise BuildError(exc.source_path, exc.message, exc) from exc

    if config.public_dir.is_dir():
        shutil.copytree(config.public_dir, output_dir, dirs_exist_ok=True)

    data = load_data(config.data_dir)
    if not config.pages_dir.exists():
        raise FileNotFoundError(f"Expected pages directory at {config.pages_dir}")
    pages = discover_pages(config.pages_dir)

    engine = TemplateEngine(config, data, base_path=base_path())
    for page in pages:
        try:
            rendered = engine.render_page(page)
        except TemplateSyntaxError as exc:
            raise BuildError(
                page.path,
                f"Template syntax error on line {exc.lineno}: {exc.message}",
                exc,
            ) from exc
        except Exception as exc:
            raise BuildError(
                page.path,
                _format_error_message(exc),
                exc,
            ) from exc
        _write_page(output_dir, page, rendered)

    _write_sitemap(output_dir, config.site, pages)
    return BuildResult(pages=pages, output_dir=output_dir, data=data)


def _format_error_message(exc: Exception) -> str:
    """Format an exception into a user-friendly error message.

    Args:
        exc: The exception to format.

    Returns:
        A human-readable error message.
    """
    error_type = type(exc).__name__
    error_msg = str(exc)

    # Handle common Jinja2/template errors
    if error_type == "UndefinedError":
        return f"Undefined variable: {error_msg}"
    if error_type == "TemplateNotFound":
        return f"Template not found: {error_msg}"
    if error_type == "TypeError":
        return f"Type error: {error_msg}"

    return f"{error_type}: {error_msg}"


def _write_page(output_dir: Path, page: Page, rendered: str) -> None:
    """Write a rendered page to the output directory.

    Args:
        output_dir: Base output directory.
        page: Page being written.
        rendered: Rendered HTML content.
    """
    target = output_dir / page.output_rel_path
    target.parent.mkdir(parents=True, exist_ok=True)
    with open(target, "w", encoding="utf-8") as f:
        f.write(rendered)


def _write_sitemap(
    output_dir: Path, site: dict[str, Any], pages: Iterable[Page]
) -> None:
    """Generate and write sitemap.xml when ``site.url`` is configured.

    Args:
        output_dir: Output directory for the sitemap.
        site: Site metadata.
        pages: Iterable of all pages.
    """
    base_url = str(site.get("url", "")).rstrip("/")
    if not base_url:
        return
    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
    ]
    for page in pages:
        lines.append(f"  <url><loc>{escape(base_url + page.url)}</loc></url>")
    lines.append("</urlset>")
    (output_dir / "sitemap.xml").write_text("\n".join(lines), encoding="utf-8")
