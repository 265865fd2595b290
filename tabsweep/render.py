"""Plain-text and JSON views of a classification."""

from __future__ import annotations

from typing import Dict, List, Optional

from tabsweep.engine.models import Classification, ClosePlan, CloseResult, Tab

TITLE_MAX_LEN = 60


def _truncate(text: str, limit: int = TITLE_MAX_LEN) -> str:
    text = " ".join((text or "").split())
    if len(text) <= limit:
        return text
    return text[: limit - 1].rstrip() + "…"


def _flags(tab: Tab) -> str:
    parts = []
    if tab.duplicate_of is not None:
        parts.append(f"dup of #{tab.duplicate_of + 1}")
    if tab.is_stale:
        parts.append("stale")
    return ", ".join(parts)


def render_tab_line(idx: int, tab: Tab) -> str:
    box = "[x]" if tab.selected else "[ ]"
    flags = _flags(tab)
    suffix = f"  ({flags})" if flags else ""
    title = _truncate(tab.title) or "(untitled)"
    return f"{box} #{idx + 1:<3} W{tab.window_index}:T{tab.tab_index:<3} {title}  <{tab.url}>{suffix}"


def render_text(classification: Classification) -> str:
    lines: List[str] = []
    if classification.error:
        lines.append(f"Could not read tabs: {classification.error}")
        return "\n".join(lines) + "\n"

    for idx, tab in enumerate(classification.tabs):
        lines.append(render_tab_line(idx, tab))
    if lines:
        lines.append("")
    lines.append(
        f"{len(classification.tabs)} tabs, "
        f"{classification.duplicate_count} duplicates, "
        f"{classification.stale_count} stale, "
        f"{len(classification.selected_urls)} selected"
    )
    if classification.pinned_urls:
        lines.append(f"Pinned (hidden): {len(classification.pinned_urls)} URLs")
    if classification.empty_windows:
        windows = ", ".join(str(w) for w in classification.empty_windows)
        lines.append(f"Windows holding only pinned tabs: {windows}")
    return "\n".join(lines) + "\n"


def render_plan(plan: ClosePlan) -> str:
    lines = [f"close tab {tab} of window {window}" for window, tab in plan.tab_closes]
    lines.extend(f"close window {window}" for window in plan.window_closes)
    if not lines:
        lines.append("nothing to close")
    return "\n".join(lines) + "\n"


def _tab_payload(tab: Tab) -> Dict:
    return {
        "window": tab.window_index,
        "tab": tab.tab_index,
        "title": tab.title,
        "url": tab.url,
        "lastVisit": tab.last_visit.isoformat() if tab.last_visit else None,
        "stale": tab.is_stale,
        "duplicateOf": tab.duplicate_of,
        "selected": tab.selected,
    }


def classification_payload(
    classification: Classification,
    result: Optional[CloseResult] = None,
    plan: Optional[ClosePlan] = None,
) -> Dict:
    payload: Dict = {
        "status": "error" if classification.error else "ok",
        "reason": classification.error or "",
        "tabs": [_tab_payload(tab) for tab in classification.tabs],
        "emptyWindows": list(classification.empty_windows),
        "pinnedUrls": sorted(classification.pinned_urls),
        "counts": {
            "total": len(classification.tabs),
            "duplicates": classification.duplicate_count,
            "stale": classification.stale_count,
            "selected": len(classification.selected_urls),
        },
    }
    if result is not None:
        payload["close"] = {
            "status": result.status,
            "closed": result.closed,
            "planned": result.planned,
            "failures": [{"target": f.target, "message": f.message} for f in result.failures],
            "error": result.error or "",
        }
    if plan is not None:
        payload["plan"] = {
            "tabCloses": [[window, tab] for window, tab in plan.tab_closes],
            "windowCloses": list(plan.window_closes),
        }
    return payload
