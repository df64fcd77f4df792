"""Ledger and target derivations."""

from fundlove.ledger.engine import (
    DEFAULT_PAGE_SIZE,
    LedgerView,
    apply_patch,
    build_view,
    compute_balance,
    ensure_owner,
    find,
    is_owner,
    recent,
)
from fundlove.ledger.target_tracker import (
    TargetProgress,
    compute_progress,
    end_date_for,
    progress_percent,
    restart_window,
)

__all__ = [
    "DEFAULT_PAGE_SIZE",
    "LedgerView",
    "apply_patch",
    "build_view",
    "compute_balance",
    "ensure_owner",
    "find",
    "is_owner",
    "recent",
    "TargetProgress",
    "compute_progress",
    "end_date_for",
    "progress_percent",
    "restart_window",
]
