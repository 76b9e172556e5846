"""HTML utility functions for cssg.

This module focuses exclusively on HTML string manipulation.

Functions:
    join_root_url: Join a base URL with a path.
    inject_before_body_end: Insert a snippet right before the closing body tag.
"""

from __future__ import annotations

_BODY_END = "</body>"


def join_root_url(root_url: str, path: str) -> str:
    """Safely join a root URL and a path, avoiding double slashes.

    Args:
        root_url: Base URL or path prefix (e.g., https://example.com/blog).
        path: Path beginning with or without a leading slash.

    Returns:
        Combined URL with proper slash handling.

    Examples:
        >>> join_root_url('https://example.com', '/about')
        'https://example.com/about'

        >>> join_root_url('/docs/', 'about.html')
        '/docs/about.html'
    """
    suffix = path if path.startswith("/") else f"/{path}"
    if not root_url:
        return suffix
    return f"{root_url.rstrip('/')}{suffix}"


def inject_before_body_end(html: str, snippet: str) -> str:
    """Insert ``snippet`` immediately before the last ``</body>`` tag.

    The tag is matched case-insensitively. When the document has no closing
    body tag the snippet is appended.

    Args:
        html: HTML document.
        snippet: Markup to insert.

    Returns:
        The document with the snippet inserted.

    Examples:
        >>> inject_before_body_end('<body>hi</body>', '<script></script>')
        '<body>hi<script></script></body>'
    """
    index = html.lower().rfind(_BODY_END)
    if index == -1:
        return html + snippet
    return html[:index] + snippet + html[index:]
