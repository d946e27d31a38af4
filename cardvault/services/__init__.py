"""
CardVault services.

Catalog access, normalization, reconciliation and progress tracking.
"""

from cardvault.services.asset_store import AssetStore
from cardvault.services.catalog_client import CatalogClient, CatalogFetchError, group_sets
from cardvault.services.normalizer import extract_image_refs, normalize
from cardvault.services.notifier import InMemoryNotifier, Notifier, NullNotifier
from cardvault.services.progress import (
    ProgressTracker,
    SetProgress,
    progress_percent,
    recompute_progress,
)
from cardvault.services.reconciler import ReconcileResult, Reconciler, SetUnavailableError
from cardvault.services.set_admin import delete_set, rescan_missing_images

__all__ = [
    "AssetStore",
    "CatalogClient",
    "CatalogFetchError",
    "InMemoryNotifier",
    "Notifier",
    "NullNotifier",
    "ProgressTracker",
    "ReconcileResult",
    "Reconciler",
    "SetProgress",
    "SetUnavailableError",
    "delete_set",
    "extract_image_refs",
    "group_sets",
    "normalize",
    "progress_percent",
    "recompute_progress",
    "rescan_missing_images",
]
