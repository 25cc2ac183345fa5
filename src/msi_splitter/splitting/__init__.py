"""Page smoothing, grouping, routing and naming."""

from msi_splitter.splitting.grouping import group_pages
from msi_splitter.splitting.naming import filename_base, is_counter_named, sanitize
from msi_splitter.splitting.routing import FolderRouter, FolderTaxonomy
from msi_splitter.splitting.smoothing import smooth_subtypes

__all__ = [
    "FolderRouter",
    "FolderTaxonomy",
    "filename_base",
    "group_pages",
    "is_counter_named",
    "sanitize",
    "smooth_subtypes",
]
