"""
Data Models Layer.

This package contains the Pydantic configuration model and the dataclasses
used to describe download references and the outcome of a run.
"""

from .config import DEFAULT_COPY_MAPPINGS, CopyMapping, SyncConfig
from .report import DownloadReference, ItemResult, ItemStatus, RunReport

__all__ = [
    "DEFAULT_COPY_MAPPINGS",
    "CopyMapping",
    "DownloadReference",
    "ItemResult",
    "ItemStatus",
    "RunReport",
    "SyncConfig",
]
