"""Enrichment orchestration: concurrency gate, fusion and the orchestrator."""

from .concurrency import run_bounded, run_degraded
from .fusion import finalize_fields, merge_slice
from .orchestrator import EnrichmentOrchestrator

__all__ = [
    "run_bounded",
    "run_degraded",
    "finalize_fields",
    "merge_slice",
    "EnrichmentOrchestrator",
]
