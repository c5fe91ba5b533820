from __future__ import annotations

import json
from typing import Iterable, List

from scanbridge.normalization.findings import Finding
from scanbridge.normalization.results import ScanResult
from scanbridge.services.aggregator import aggregate, level_columns

EXIT_CLEAN = 0
EXIT_FINDINGS = 1
EXIT_ERROR = 2

RULE = "=" * 60


def render_json(result: ScanResult) -> str:
    return json.dumps(result.to_dict(), indent=2)


def render_json_many(results: Iterable[ScanResult], errors: dict[str, str] | None = None) -> str:
    payload: dict = {"results": [result.to_dict() for result in results]}
    if errors:
        payload["errors"] = errors
    return json.dumps(payload, indent=2)


def sort_findings(result: ScanResult) -> List[Finding]:
    order = {level: index for index, level in enumerate(result.levels)}
    return sorted(result.findings, key=lambda f: order.get(f.severity.value, len(order)))


def _metadata(result: ScanResult) -> List[tuple[str, str]]:
    lines = [("Tool", f"{result.tool} {result.version}"), ("Target", result.scan_path)]
    if result.config:
        lines.append(("Config", result.config))
    if result.framework:
        lines.append(("Framework", result.framework))
    if result.os:
        lines.append(("OS", f"{result.os.family} {result.os.name}"))
    lines.append(("Date", result.scan_date.isoformat()))
    return lines


def render_table(rows: List[dict], columns: List[str]) -> str:
    headers = ["tool", "total", *columns]
    widths = [max([len(h), *(len(str(row.get(h, 0))) for row in rows)]) for h in headers]
    lines = ["  ".join(h.upper().ljust(w) for h, w in zip(headers, widths))]
    lines.append("  ".join("-" * w for w in widths))
    for row in rows:
        lines.append("  ".join(str(row.get(h, 0)).ljust(w) for h, w in zip(headers, widths)))
    return "\n".join(lines)


def render_text(result: ScanResult) -> str:
    lines = [RULE, f"{result.tool} report", RULE]
    lines.extend(f"{label}: {value}" for label, value in _metadata(result))
    lines.append("")

    summary = result.summary
    lines.append(f"Total findings: {summary['total']}")
    lines.append("  " + "  ".join(f"{level}: {summary[level]}" for level in result.levels))
    for key in ("passed", "skipped"):
        if key in summary:
            lines.append(f"  {key}: {summary[key]}")
    lines.append("")

    if not result.findings:
        lines.append("No findings.")
    for finding in sort_findings(result):
        lines.append(f"[{finding.severity.value.upper()}] {finding.id}")
        lines.extend(f"    {label}: {value}" for label, value in finding.details())
        lines.append("")

    lines.append(render_table(aggregate([result]), list(result.levels)))
    return "\n".join(lines)


def render_text_many(results: List[ScanResult], errors: dict[str, str] | None = None) -> str:
    blocks = [render_text(result) for result in results]
    if errors:
        blocks.append("\n".join(["Errors:", *(f"  {tool}: {message}" for tool, message in errors.items())]))
    blocks.append(render_table(aggregate(results), level_columns(results)))
    return "\n\n".join(blocks)


def exit_code(result: ScanResult) -> int:
    return EXIT_FINDINGS if result.total else EXIT_CLEAN


def combined_exit_code(results: Iterable[ScanResult], errors: dict[str, str] | None = None) -> int:
    if errors:
        return EXIT_ERROR
    return EXIT_FINDINGS if any(result.total for result in results) else EXIT_CLEAN
