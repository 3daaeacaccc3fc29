"""Aggregation module for tasting reports.

- normalize: loose rating records -> strict ratings keyed by blind number
- engine: per-wine averages, overall strategies, ranking (pure)
- views: rounding and reveal-gated redaction for serialization
- summary: loads a tasting snapshot through repo and runs the engine
"""

from blindtaste.aggregation.engine import (
    AggregateRow,
    OverallStrategy,
    Report,
    compute_report,
)

__all__ = ["AggregateRow", "OverallStrategy", "Report", "compute_report"]
