"""cssg static site generator.

This package builds static sites from Jinja2 and Markdown pages, layouts,
data files and assets. Its development server watches the project, rebuilds
after each burst of edits and tells connected browsers to reload, swapping
stylesheets in place when only CSS changed.

The main entry point is the CLI module, which provides commands for scaffolding
new projects, building sites, and running the development server.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
