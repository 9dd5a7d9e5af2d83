"""
Ingestion - one fetch/aggregate/store cycle over all configured scopes
"""

from .orchestrator import CycleReport, IngestionOrchestrator, ScopeResult

__all__ = ["IngestionOrchestrator", "CycleReport", "ScopeResult"]
