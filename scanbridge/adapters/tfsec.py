from __future__ import annotations

from scanbridge.adapters.base import detect_tool_version, ensure_installed, parsing, require_path, run_json
from scanbridge.normalization.findings import IacFinding
from scanbridge.normalization.results import ScanResult
from scanbridge.normalization.severity import map_tfsec


def transform_tfsec(data: dict, scan_path: str, version: str = "unknown") -> ScanResult[IacFinding]:
    findings = []
    for issue in data.get("results") or []:
        location = issue.get("location") or {}
        findings.append(
            IacFinding(
                id=issue.get("long_id") or issue.get("rule_id") or "unknown",
                severity=map_tfsec(issue.get("severity")),
                message=issue.get("description") or issue.get("rule_description") or "",
                resource=issue.get("resource", ""),
                file=location.get("filename", ""),
                line=location.get("start_line"),
                end_line=location.get("end_line"),
                resolution=issue.get("resolution"),
                impact=issue.get("impact"),
                references=list(issue.get("links") or []),
            )
        )
    return ScanResult[IacFinding](
        tool="tfsec",
        version=version,
        scan_path=scan_path,
        framework="terraform",
        findings=findings,
    )


def run_tfsec(target: str) -> ScanResult[IacFinding]:
    require_path(target)
    ensure_installed("tfsec")
    data = run_json("tfsec", ["--format", "json", target], accepted_codes=(0, 1), expect=dict)
    with parsing("tfsec"):
        return transform_tfsec(data, target, detect_tool_version("tfsec"))
