from __future__ import annotations

from scanbridge.adapters.base import detect_tool_version, ensure_installed, parsing, require_path, run_json
from scanbridge.normalization.findings import DockerfileFinding
from scanbridge.normalization.results import LintResult
from scanbridge.normalization.severity import map_hadolint


def transform_hadolint(data: list, dockerfile: str, version: str = "unknown") -> LintResult:
    findings = [
        DockerfileFinding(
            id=issue.get("code", "unknown"),
            severity=map_hadolint(issue.get("level")),
            line=issue.get("line"),
            column=issue.get("column"),
            message=issue.get("message", ""),
            file=issue.get("file", dockerfile),
        )
        for issue in data or []
    ]
    return LintResult(tool="hadolint", version=version, scan_path=dockerfile, findings=findings)


def run_hadolint(dockerfile: str) -> LintResult:
    require_path(dockerfile)
    ensure_installed("hadolint")
    # hadolint exits 1 when any rule fires at or above its failure threshold.
    data = run_json("hadolint", ["-f", "json", dockerfile], accepted_codes=(0, 1), empty=[], expect=list)
    with parsing("hadolint"):
        return transform_hadolint(data, dockerfile, detect_tool_version("hadolint"))
