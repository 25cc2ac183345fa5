"""MSI station PDF splitter.

Main components:
- SplitPipeline: classify, smooth, group, route and write one source PDF
- JobScheduler: batch queue with retries and a shared classifier rate limit
- FolderRouter: group -> destination folder path
- sync_to_destination: replay a staged run into another destination
"""

__version__ = "0.3.0"

__all__ = [
    "SplitPipeline",
    "SplitterConfig",
    "JobScheduler",
    "FolderRouter",
    "DocumentWriter",
    "sync_to_destination",
]


def __getattr__(name: str):
    """Lazy loading to keep imports light."""
    if name == "SplitPipeline":
        from msi_splitter.pipeline import SplitPipeline

        return SplitPipeline
    elif name == "SplitterConfig":
        from msi_splitter.config import SplitterConfig

        return SplitterConfig
    elif name == "JobScheduler":
        from msi_splitter.scheduler import JobScheduler

        return JobScheduler
    elif name == "FolderRouter":
        from msi_splitter.splitting.routing import FolderRouter

        return FolderRouter
    elif name == "DocumentWriter":
        from msi_splitter.output.writer import DocumentWriter

        return DocumentWriter
    elif name == "sync_to_destination":
        from msi_splitter.sync import sync_to_destination

        return sync_to_destination
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
