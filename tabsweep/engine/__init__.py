"""Tab reconciliation engine: classification and safe closing."""

from .duplicates import mark_duplicates
from .models import (
    BrowserProvider,
    Classification,
    CloseFailure,
    ClosePlan,
    CloseResult,
    Tab,
    toggle_selected,
    with_selection,
)
from .pinned import filter_pinned
from .pipeline import classify_snapshot, load_classification
from .reconcile import execute_plan, plan_closures, reconcile_and_close
from .session import TabSession
from .staleness import mark_stale
from .urls import are_similar_urls, edit_distance
from .worker import CloseInProgressError, CloseWorker

__all__ = [
    "BrowserProvider",
    "Classification",
    "CloseFailure",
    "CloseInProgressError",
    "ClosePlan",
    "CloseResult",
    "CloseWorker",
    "Tab",
    "TabSession",
    "are_similar_urls",
    "classify_snapshot",
    "edit_distance",
    "execute_plan",
    "filter_pinned",
    "load_classification",
    "mark_duplicates",
    "mark_stale",
    "plan_closures",
    "reconcile_and_close",
    "toggle_selected",
    "with_selection",
]
