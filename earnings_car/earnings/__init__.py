"""Earnings timeline: data model, provider reconciliation, EPS normalization, breakpoints."""

from earnings_car.earnings.breakpoints import (
    BreakpointThresholds,
    compute_yoy_metrics,
    detect_breakpoints,
    find_anchor,
)
from earnings_car.earnings.eps_normalizer import (
    EpsNormalizationOptions,
    apply_normalized_eps,
    apply_split_adjustment,
    eps_from_net_income,
    normalize_eps,
    ratio_eps_facts,
    split_adjustment_factor,
)
from earnings_car.earnings.models import (
    Breakpoint,
    BreakpointFlags,
    EarningsRecord,
    EpsFact,
    EpsFactSources,
    NormalizedEpsPoint,
    Provenance,
    SplitEvent,
    Timing,
    earnings_records_from_frame,
    eps_facts_from_pairs,
)
from earnings_car.earnings.reconciliation import (
    filter_earnings_by_range,
    reconcile_earnings,
    reconcile_providers,
)

__all__ = [
    # Models
    "Timing",
    "Provenance",
    "EarningsRecord",
    "SplitEvent",
    "EpsFact",
    "EpsFactSources",
    "NormalizedEpsPoint",
    "Breakpoint",
    "BreakpointFlags",
    "earnings_records_from_frame",
    "eps_facts_from_pairs",
    # Reconciliation
    "reconcile_earnings",
    "reconcile_providers",
    "filter_earnings_by_range",
    # EPS normalization
    "EpsNormalizationOptions",
    "normalize_eps",
    "apply_normalized_eps",
    "split_adjustment_factor",
    "apply_split_adjustment",
    "eps_from_net_income",
    "ratio_eps_facts",
    # Breakpoints
    "BreakpointThresholds",
    "find_anchor",
    "compute_yoy_metrics",
    "detect_breakpoints",
]
