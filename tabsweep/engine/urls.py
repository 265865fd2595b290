"""URL normalization and fuzzy similarity for duplicate detection."""

from __future__ import annotations

from typing import Tuple

SIMILARITY_THRESHOLD = 0.70
SCHEME_PREFIXES = ("http://", "https://")


def _split_url(url: str) -> Tuple[str, str]:
    rest = url
    for prefix in SCHEME_PREFIXES:
        if rest.startswith(prefix):
            rest = rest[len(prefix):]
            break
    if rest.startswith("www."):
        rest = rest[4:]
    domain, _, path = rest.partition("/")
    if path.endswith("/"):
        path = path[:-1]
    return domain.lower(), path


def normalize_domain(url: str) -> str:
    return _split_url(url)[0]


def normalize_path(url: str) -> str:
    """Everything after the first slash past the domain, query included."""
    return _split_url(url)[1]


def edit_distance(lhs: str, rhs: str) -> int:
    if lhs == rhs:
        return 0
    if not lhs:
        return len(rhs)
    if not rhs:
        return len(lhs)

    previous = list(range(len(rhs) + 1))
    for i, lch in enumerate(lhs, start=1):
        current = [i]
        for j, rch in enumerate(rhs, start=1):
            cost = 0 if lch == rch else 1
            current.append(
                min(
                    previous[j] + 1,
                    current[j - 1] + 1,
                    previous[j - 1] + cost,
                )
            )
        previous = current
    return previous[-1]


def path_similarity(lhs: str, rhs: str) -> float:
    lhs_norm = lhs.lower()
    rhs_norm = rhs.lower()
    if lhs_norm == rhs_norm:
        return 1.0
    if not lhs_norm or not rhs_norm:
        return 0.0
    longest = max(len(lhs_norm), len(rhs_norm))
    return 1.0 - edit_distance(lhs_norm, rhs_norm) / longest


def are_similar_urls(lhs: str, rhs: str, threshold: float = SIMILARITY_THRESHOLD) -> bool:
    lhs_domain, lhs_path = _split_url(lhs)
    rhs_domain, rhs_path = _split_url(rhs)
    if lhs_domain != rhs_domain:
        return False
    return path_similarity(lhs_path, rhs_path) > threshold
