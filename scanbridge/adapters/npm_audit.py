from __future__ import annotations

from pathlib import Path
from typing import List

from scanbridge.adapters.base import detect_tool_version, ensure_installed, parsing, require_path, run_json
from scanbridge.errors import ToolExecutionError
from scanbridge.normalization.findings import PackageFinding
from scanbridge.normalization.results import ScanResult
from scanbridge.normalization.severity import map_npm


def _fixed_version(vuln: dict) -> str | None:
    fix = vuln.get("fixAvailable")
    if isinstance(fix, dict):
        return fix.get("version")
    return None


def _advisory_id(detail: dict) -> str:
    url = detail.get("url") or ""
    tail = url.rstrip("/").split("/")[-1] if url else ""
    return tail or f"npm-{detail.get('source')}"


def transform_npm_audit(data: dict, scan_path: str, version: str = "unknown") -> ScanResult[PackageFinding]:
    findings: List[PackageFinding] = []
    for package, vuln in (data.get("vulnerabilities") or {}).items():
        details = [entry for entry in vuln.get("via", []) if isinstance(entry, dict)]
        for detail in details:
            cvss = (detail.get("cvss") or {}).get("score")
            findings.append(
                PackageFinding(
                    id=_advisory_id(detail),
                    severity=map_npm(detail.get("severity")),
                    package=package,
                    installed_version=vuln.get("range", ""),
                    fixed_version=_fixed_version(vuln),
                    title=detail.get("title") or f"Vulnerability in {package}",
                    cvss=cvss or None,
                    cwes=list(detail.get("cwe") or []),
                    references=[detail["url"]] if detail.get("url") else [],
                )
            )
        # Packages flagged only through other packages still get a row.
        if not details:
            findings.append(
                PackageFinding(
                    id=f"npm-{package}",
                    severity=map_npm(vuln.get("severity")),
                    package=package,
                    installed_version=vuln.get("range", ""),
                    fixed_version=_fixed_version(vuln),
                    title=f"Vulnerability in {package}",
                )
            )

    return ScanResult[PackageFinding](
        tool="npm-audit",
        version=version,
        scan_path=scan_path,
        findings=findings,
    )


def run_npm_audit(target: str) -> ScanResult[PackageFinding]:
    path = require_path(target)
    ensure_installed("npm")
    workdir = path.parent if path.is_file() else path
    # npm audit exits 1 whenever vulnerabilities exist; the JSON is what matters.
    data = run_json("npm", ["audit", "--json"], accepted_codes=None, expect=dict, workdir=Path(workdir))
    if data.get("error") and "vulnerabilities" not in data:
        error = data["error"]
        raise ToolExecutionError("npm", None, error.get("summary") if isinstance(error, dict) else str(error))
    with parsing("npm"):
        return transform_npm_audit(data, target, detect_tool_version("npm"))
