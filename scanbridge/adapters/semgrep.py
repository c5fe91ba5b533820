from __future__ import annotations

from typing import List

from scanbridge.adapters.base import detect_tool_version, ensure_installed, parsing, require_path, run_json
from scanbridge.normalization.findings import CodeFinding
from scanbridge.normalization.results import ScanResult
from scanbridge.normalization.severity import map_semgrep

CONFIGS = {
    "auto": "auto",
    "security-audit": "p/security-audit",
    "owasp-top-ten": "p/owasp-top-ten",
    "cwe-top-25": "p/cwe-top-25",
    "default": "p/default",
    "javascript": "p/javascript",
    "typescript": "p/typescript",
    "python": "p/python",
    "golang": "p/golang",
    "java": "p/java",
    "ruby": "p/ruby",
}


def _as_list(value) -> List[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [value]
    return [str(item) for item in value]


def transform_finding(result: dict) -> CodeFinding:
    extra = result.get("extra") or {}
    metadata = extra.get("metadata") or {}
    cwes = _as_list(metadata.get("cwe"))
    return CodeFinding(
        id=result.get("check_id", "unknown"),
        severity=map_semgrep(extra.get("severity"), cwes),
        message=extra.get("message", ""),
        file=result.get("path", ""),
        line=(result.get("start") or {}).get("line"),
        end_line=(result.get("end") or {}).get("line"),
        code=extra.get("lines") or "",
        cwes=cwes,
        owasp=_as_list(metadata.get("owasp")),
        category=metadata.get("category") or "security",
        fix=extra.get("fix"),
        references=_as_list(metadata.get("references")),
    )


def transform_semgrep(
    data: dict, scan_path: str, config: str = "auto", version: str | None = None
) -> ScanResult[CodeFinding]:
    findings = [transform_finding(r) for r in data.get("results") or []]
    return ScanResult[CodeFinding](
        tool="semgrep",
        version=data.get("version") or version or "unknown",
        scan_path=scan_path,
        config=config,
        findings=findings,
    )


def resolve_config(name: str) -> str:
    return CONFIGS.get(name, name)


def run_semgrep(target: str, config: str = "auto") -> ScanResult[CodeFinding]:
    require_path(target)
    ensure_installed("semgrep")
    args = ["scan", "--config", resolve_config(config), "--json", target]
    # Exit code 1 means "findings present".
    data = run_json("semgrep", args, accepted_codes=(0, 1), expect=dict)
    version = None if data.get("version") else detect_tool_version("semgrep")
    with parsing("semgrep"):
        return transform_semgrep(data, target, config, version)
