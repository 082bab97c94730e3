"""KB Index web route modules.

Each module exports a `router` object (APIRouter instance) included by
kbindex.web.app.

Usage:
    from kbindex.web.routes import regions
    app.include_router(regions.router)
"""

from kbindex.web.routes import collection, health, regions, settings

__all__ = [
    "regions",  # Rebased time series and statistics
    "settings",  # Global rebasing settings
    "collection",  # Weekly ingestion trigger and status
    "health",
]
