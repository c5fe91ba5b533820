from __future__ import annotations

from typing import List

from scanbridge.adapters.base import detect_tool_version, ensure_installed, parsing, require_path, run_json
from scanbridge.normalization.findings import IacFinding
from scanbridge.normalization.results import ScanResult
from scanbridge.normalization.severity import map_checkov


def _line_range(check: dict) -> tuple[int | None, int | None]:
    line_range = check.get("file_line_range") or []
    start = line_range[0] if len(line_range) > 0 else None
    end = line_range[1] if len(line_range) > 1 else None
    return start, end


def transform_checkov(
    data: dict | list, scan_path: str, framework: str | None = None, version: str = "unknown"
) -> ScanResult[IacFinding]:
    # One object per framework when several were scanned, a single object otherwise.
    reports = data if isinstance(data, list) else [data]
    findings: List[IacFinding] = []
    passed = 0
    skipped = 0
    for report in reports:
        # Empty scans print the bare summary object.
        summary = report.get("summary") or report
        passed += summary.get("passed", 0) or 0
        skipped += summary.get("skipped", 0) or 0
        for check in (report.get("results") or {}).get("failed_checks") or []:
            check_id = check.get("check_id", "unknown")
            start, end = _line_range(check)
            guideline = check.get("guideline")
            findings.append(
                IacFinding(
                    id=check_id,
                    severity=map_checkov(check_id),
                    message=check.get("check_name") or check_id,
                    resource=check.get("resource", ""),
                    file=check.get("file_path", ""),
                    line=start,
                    end_line=end,
                    resolution=guideline,
                    references=[guideline] if guideline else [],
                )
            )
    return ScanResult[IacFinding](
        tool="checkov",
        version=version,
        scan_path=scan_path,
        framework=framework,
        findings=findings,
        passed=passed,
        skipped=skipped,
    )


def run_checkov(target: str, framework: str | None = None) -> ScanResult[IacFinding]:
    require_path(target)
    ensure_installed("checkov")
    args = ["-d", target, "-o", "json", "--compact"]
    if framework:
        args.extend(["--framework", framework])
    data = run_json("checkov", args, accepted_codes=(0, 1), empty=[], expect=(dict, list))
    with parsing("checkov"):
        return transform_checkov(data, target, framework, detect_tool_version("checkov"))
