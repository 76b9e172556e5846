"""Asset processors for cssg.

This module contains one processor per asset type. Each processor handles a
single type of asset and knows whether it runs in development or production
mode: production output is minified or optimized, development output stays
readable and fast to produce.

Key classes:
- CSSBundleProcessor: Inlines local ``@import`` rules; minifies in prod.
- JSProcessor: Minifies JavaScript with rjsmin in prod.
- ImageProcessor: Optimizes images with Pillow in prod.
- StaticAssetProcessor: Copies anything else without modification.
- AssetProcessorRegistry: Registry for managing asset processors.
"""

from __future__ import annotations

import re
import shutil
from abc import ABC, abstractmethod
from pathlib import Path

import csscompressor
from PIL import Image
from rjsmin import jsmin

# Comments are matched first so imports inside them are left alone.
IMPORT_RE = re.compile(
    r"""(?P<comment>/\*.*?\*/)"""
    r"""|@import\s+(?:url\(\s*)?["']?(?P<target>[^"')\s;]+)["']?\s*\)?\s*(?P<media>[^;]*);""",
    re.DOTALL,
)


class AssetError(Exception):
    """Raised when an asset cannot be processed.

    Attributes:
        source_path: Asset that failed.
        message: Human-readable error message.
    """

    def __init__(self, source_path: Path, message: str):
        self.source_path = source_path
        self.message = message
        super().__init__(f"{source_path}: {message}")


class BaseAssetProcessor(ABC):
    """Base class for asset processors.

    Provides shared utilities:
        - ensure_dest_dir: Creates parent directories for output files.
    """

    def __init__(self, minify: bool = False):
        self.minify = minify

    @property
    @abstractmethod
    def priority(self) -> int:
        """Return processor priority (higher = checked first)."""
        ...

    @abstractmethod
    def can_process(self, path: Path) -> bool:
        """Check if this processor can handle the given asset."""
        ...

    @abstractmethod
    def process(self, source: Path, dest: Path) -> None:
        """Process an asset file.

        Args:
            source: Source asset path.
            dest: Destination path for processed asset.

        Raises:
            AssetError: If the asset cannot be processed.
        """
        ...

    def ensure_dest_dir(self, dest: Path) -> None:
        dest.parent.mkdir(parents=True, exist_ok=True)


class CSSBundleProcessor(BaseAssetProcessor):
    """Bundles CSS by inlining local ``@import`` rules.

    Remote imports (``http://``, ``https://``, ``//``) are left in place.
    Media-qualified local imports are wrapped in an ``@media`` block.
    """

    @property
    def priority(self) -> int:
        return 90

    def can_process(self, path: Path) -> bool:
        return path.suffix.lower() == ".css"

    def process(self, source: Path, dest: Path) -> None:
        self.ensure_dest_dir(dest)
        css = self.bundle(source)
        if self.minify:
            css = minify_css(css)
        dest.write_text(css, encoding="utf-8")

    def bundle(self, source: Path, _stack: tuple[Path, ...] = ()) -> str:
        """Return the CSS of ``source`` with local imports inlined.

        Raises:
            AssetError: On a missing import target or an import cycle.
        """
        source = source.resolve()
        if source in _stack:
            chain = " -> ".join(p.name for p in (*_stack, source))
            raise AssetError(_stack[0], f"Circular @import: {chain}")
        try:
            text = source.read_text(encoding="utf-8")
        except OSError as exc:
            origin = _stack[-1] if _stack else source
            raise AssetError(origin, f"Cannot read {source}: {exc}") from exc

        def repl(match: re.Match) -> str:
            if match.group("comment"):
                return match.group(0)
            target = match.group("target")
            if target.startswith(("http://", "https://", "//")):
                return match.group(0)
            inlined = self.bundle(source.parent / target, (*_stack, source))
            media = match.group("media").strip()
            if media:
                return f"@media {media} {{\n{inlined}\n}}"
            return inlined

        return IMPORT_RE.sub(repl, text)


def minify_css(css: str) -> str:
    """Minify a stylesheet with csscompressor."""
    return csscompressor.compress(css)


class JSProcessor(BaseAssetProcessor):
    """Minifies JavaScript files with rjsmin in production mode."""

    @property
    def priority(self) -> int:
        return 80

    def can_process(self, path: Path) -> bool:
        return path.suffix.lower() in {".js", ".mjs"}

    def process(self, source: Path, dest: Path) -> None:
        self.ensure_dest_dir(dest)
        if not self.minify:
            shutil.copy2(source, dest)
            return
        with open(source, encoding="utf-8") as f_in:
            minified = jsmin(f_in.read())
        with open(dest, "w", encoding="utf-8") as f_out:
            f_out.write(minified)


class ImageProcessor(BaseAssetProcessor):
    """Optimizes image files using Pillow.

    Supports PNG, JPG, JPEG, and WebP formats. Development builds copy the
    file untouched.
    """

    SUPPORTED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp"}

    @property
    def priority(self) -> int:
        return 100

    def can_process(self, path: Path) -> bool:
        return path.suffix.lower() in self.SUPPORTED_EXTENSIONS

    def process(self, source: Path, dest: Path) -> None:
        self.ensure_dest_dir(dest)
        if not self.minify:
            shutil.copy2(source, dest)
            return
        try:
            with Image.open(source) as img:
                img.save(dest, optimize=True)
        except OSError as exc:
            raise AssetError(source, f"Cannot optimize image: {exc}") from exc


class StaticAssetProcessor(BaseAssetProcessor):
    """Copies static assets without modification.

    This is the fallback processor for assets that don't need
    special processing (fonts, SVGs, etc.).
    """

    @property
    def priority(self) -> int:
        return 0  # Lowest priority - fallback

    def can_process(self, path: Path) -> bool:
        return True

    def process(self, source: Path, dest: Path) -> None:
        self.ensure_dest_dir(dest)
        shutil.copy2(source, dest)


class AssetProcessorRegistry:
    """Registry for managing asset processors.

    New processors can be added without modifying existing code; the first
    registered processor (by priority) that accepts a file handles it.
    """

    def __init__(self):
        self._processors: list[BaseAssetProcessor] = []

    def register(self, processor: BaseAssetProcessor) -> None:
        """Register a new processor.

        Processors are stored sorted by priority (highest first).
        """
        self._processors.append(processor)
        self._processors.sort(key=lambda p: p.priority, reverse=True)

    def get_processor(self, path: Path) -> BaseAssetProcessor | None:
        """Get the appropriate processor for a file, or None."""
        for processor in self._processors:
            if processor.can_process(path):
                return processor
        return None

    def process(self, source: Path, dest: Path) -> bool:
        """Process an asset using the appropriate processor.

        Returns:
            True if a processor handled the file, False if none matched.
        """
        processor = self.get_processor(source)
        if processor is None:
            return False
        processor.process(source, dest)
        return True


def create_default_registry(mode: str = "prod") -> AssetProcessorRegistry:
    """Create a registry with default processors.

    Args:
        mode: "prod" enables minification and optimization; "dev" disables it.

    Returns:
        Configured AssetProcessorRegistry.
    """
    minify = mode == "prod"
    registry = AssetProcessorRegistry()
    registry.register(ImageProcessor(minify))
    registry.register(CSSBundleProcessor(minify))
    registry.register(JSProcessor(minify))
    registry.register(StaticAssetProcessor(minify))
    return registry
