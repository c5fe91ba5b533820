from __future__ import annotations

from typing import Dict, Iterable, List

from scanbridge.normalization.results import ScanResult

TOTAL_ROW = "TOTAL"


def level_columns(results: Iterable[ScanResult]) -> List[str]:
    """Union of the level columns of ``results``, in first-seen order."""
    columns: List[str] = []
    for result in results:
        for level in result.levels:
            if level not in columns:
                columns.append(level)
    return columns


def aggregate(results: Iterable[ScanResult]) -> List[Dict[str, int | str]]:
    """One row per result plus a grand-total row.

    Each result keeps its own scale: a lint ``warning`` lands in the
    ``warning`` column, never in ``medium``.
    """
    results = list(results)
    columns = level_columns(results)
    rows: List[Dict[str, int | str]] = []
    grand: Dict[str, int | str] = {"tool": TOTAL_ROW, "total": 0, **{level: 0 for level in columns}}
    for result in results:
        summary = result.summary
        row: Dict[str, int | str] = {"tool": result.tool, "total": summary["total"]}
        for level in columns:
            row[level] = summary.get(level, 0)
            grand[level] += row[level]
        grand["total"] += summary["total"]
        rows.append(row)
    rows.append(grand)
    return rows
