"""Summary package: pure aggregation plus the loader that feeds it."""

from ledgerbook.summary.engine import compute_summary
from ledgerbook.summary.service import StaleResultError, SummaryService

__all__ = ["StaleResultError", "SummaryService", "compute_summary"]
