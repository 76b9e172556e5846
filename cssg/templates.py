"""Template rendering engine for cssg.

This module uses Jinja2 to render page bodies and wrap them in layouts.

Key class:
- TemplateEngine: Handles template rendering and provides context to templates.
"""

from __future__ import annotations

from typing import Any

import click
from jinja2 import Environment, FileSystemLoader, Template, TemplateNotFound, select_autoescape
from markupsafe import Markup

from .config import ResolvedConfig
from .html_utils import join_root_url
from .pages import Page, render_markdown


class TemplateEngine:
    """Template rendering engine using Jinja2.

    Templates are looked up in the layouts directory first, then the pages
    directory, then the project root, so pages can ``{% include %}`` partials
    from any of them.

    Attributes:
        config: Resolved project configuration.
        data: Site data loaded from the data directory.
        base_path: URL prefix applied by ``url_for``.
        env: Jinja2 environment.
    """

    def __init__(self, config: ResolvedConfig, data: dict[str, Any], base_path: str = ""):
        """Initialize the template engine.

        Args:
            config: Resolved project configuration.
            data: Site data, exposed as top-level template variables.
            base_path: Optional URL prefix for generated links.
        """
        self.config = config
        self.data = data
        self.base_path = base_path
        self.env = Environment(
            loader=FileSystemLoader(
                [
                    config.layouts_dir,
                    config.pages_dir,
                    config.root,
                ]
            ),
            autoescape=select_autoescape(["html", "xml", "jinja"]),
        )
        self._install_globals()

    def _install_globals(self) -> None:
        """Install global variables and functions in the Jinja environment."""
        self.env.globals["site"] = self.config.site
        self.env.globals["base_path"] = self.base_path
        self.env.globals["url_for"] = self.url_for

    def url_for(self, path: str) -> str:
        """Generate a URL for a path, applying the base path if configured.

        Args:
            path: Path to generate URL for.

        Returns:
            URL with the base path prefix; absolute URLs pass through.
        """
        if path.startswith(("http://", "https://", "//")):
            return path
        return join_root_url(self.base_path, path)

    def build_context(self, page: Page) -> dict[str, Any]:
        """Assemble the rendering context for a page.

        Later sources win: site metadata, then data files, then front matter.
        """
        context: dict[str, Any] = {"site": self.config.site}
        context.update(self.data)
        context.update(page.frontmatter)
        context["base_path"] = self.base_path
        context["page"] = page
        context["scripts"] = self._scripts_tag(context.get("script"))
        return context

    def _scripts_tag(self, script: Any) -> Markup:
        if not isinstance(script, str) or not script:
            return Markup("")
        src = self.url_for(f"/assets/js/{script}")
        return Markup('<script src="{}" type="module"></script>').format(src)

    def render_page(self, page: Page) -> str:
        """Render a page with its layout.

        Args:
            page: Page object to render.

        Returns:
            Rendered HTML string.
        """
        context = self.build_context(page)
        body = Markup(self._render_body(page, context))
        layout = self._resolve_layout_template(page.layout)
        if layout is None:
            click.echo(
                f"Layout '{page.layout}' not found for {page.rel_path}; rendering body only.",
                err=True,
            )
            return str(body)
        return layout.render(**{**context, "body": body})

    def _render_body(self, page: Page, context: dict[str, Any]) -> str:
        """Render the page body.

        Args:
            page: Page object to render.
            context: Template context dictionary.

        Returns:
            Rendered body HTML.
        """
        if page.source_type == "markdown":
            return render_markdown(page.body)
        return self.render_string(page.body, context)

    def _resolve_layout_template(self, layout: str) -> Template | None:
        """Resolve and return the layout template, or None when missing.

        Args:
            layout: Layout name, with or without extension.
        """
        candidates = [f"{layout}.jinja", f"{layout}.html", layout]
        for name in candidates:
            if not (self.config.layouts_dir / name).is_file():
                continue
            try:
                return self.env.get_template(name)
            except TemplateNotFound:
                continue
        return None

    def render_string(self, template: str, context: dict[str, Any]) -> str:
        """Render a template string.

        Args:
            template: Template string to render.
            context: Variables to make available in the template.

        Returns:
            Rendered string.
        """
        tmpl = self.env.from_string(template)
        return tmpl.render(**context)
