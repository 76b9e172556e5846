"""Asset processing pipeline for cssg.

Every file below the assets directory is sent through the processor registry
and written to ``<output>/assets/<relative path>``. Files are independent of
each other, so they are processed concurrently on a thread pool.

Key components:
- AssetPipeline: Main class for managing asset processing workflow.
- Individual processors in asset_processors module for each asset type.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from .asset_processors import AssetProcessorRegistry, create_default_registry
from .config import ResolvedConfig


class AssetPipeline:
    """Handles the processing of static assets for the site.

    Attributes:
        assets_dir (Path): Directory containing source assets.
        output_dir (Path): Build output root; assets land in ``assets/`` below it.
        mode (str): "dev" or "prod".
        processor_registry (AssetProcessorRegistry): Registry of asset processors.
    """

    def __init__(
        self,
        config: ResolvedConfig,
        mode: str = "prod",
        processor_registry: AssetProcessorRegistry | None = None,
        max_workers: int | None = None,
    ):
        self.assets_dir = config.assets_dir
        self.output_dir = config.output_dir
        self.mode = mode
        self.processor_registry = processor_registry or create_default_registry(mode)
        self.max_workers = max_workers

    def sources(self) -> list[Path]:
        """Return every asset file, sorted for stable processing order."""
        if not self.assets_dir.exists():
            return []
        return sorted(p for p in self.assets_dir.rglob("*") if p.is_file())

    def destination(self, source: Path) -> Path:
        return self.output_dir / "assets" / source.relative_to(self.assets_dir)

    def run(self) -> list[Path]:
        """Execute the asset processing pipeline.

        Returns:
            Destination paths of the processed assets.

        Raises:
            AssetError: The first processing failure, after all work finished.
        """
        sources = self.sources()
        if not sources:
            return []
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            futures = [
                (source, pool.submit(self.processor_registry.process, source, self.destination(source)))
                for source in sources
            ]
        written = []
        for source, future in futures:
            if future.result():
                written.append(self.destination(source))
        return written
