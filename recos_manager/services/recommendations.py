"""
In-memory rules applied to rows fetched from the data store: text search,
dashboard counters and similar-recommendation suggestions.
"""
from typing import Any, Dict, Iterable, List

from recos_manager.models.database_models import Status
from recos_manager.models.schemas import RecommendationStats
from recos_manager.utils.helpers import contains_ci


def matches_search(row: Dict[str, Any], search: str) -> bool:
    """Case-insensitive substring match over title, description and tags."""
    if contains_ci(row.get("title"), search) or contains_ci(row.get("description"), search):
        return True
    return any(contains_ci(tag, search) for tag in row.get("tags") or [])


def filter_recommendations(rows: Iterable[Dict[str, Any]], search: str = "") -> List[Dict[str, Any]]:
    search = (search or "").strip()
    if not search:
        return list(rows)
    return [row for row in rows if matches_search(row, search)]


def compute_stats(rows: Iterable[Dict[str, Any]]) -> RecommendationStats:
    stats = RecommendationStats()
    for row in rows:
        stats.total += 1
        status = row.get("status")
        if status == Status.DRAFT.value:
            stats.draft += 1
        elif status == Status.APPROVED.value:
            stats.approved += 1
        elif status == Status.IMPLEMENTED.value:
            stats.implemented += 1
    return stats


def find_similar(
    rows: Iterable[Dict[str, Any]],
    category: str,
    context: str = "",
    limit: int = 3,
) -> List[Dict[str, Any]]:
    """
    Up to *limit* same-category rows whose context or description contains
    *context*.  An empty context matches every row of the category.
    """
    context = (context or "").strip()
    similar: List[Dict[str, Any]] = []
    for row in rows:
        if row.get("category") != category:
            continue
        if context and not (
            contains_ci(row.get("context"), context)
            or contains_ci(row.get("description"), context)
        ):
            continue
        similar.append(row)
        if len(similar) >= limit:
            break
    return similar
