"""Batch execution and render manifests."""

from icns.batch.executor import BatchItem, BatchReport, ItemStatus, clamp_concurrency, run_batch
from icns.batch.manifest import load_manifest

__all__ = ["BatchItem", "BatchReport", "ItemStatus", "clamp_concurrency", "load_manifest", "run_batch"]
