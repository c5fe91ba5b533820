from __future__ import annotations

from typing import List

from scanbridge.adapters.base import detect_tool_version, ensure_installed, parsing, require_path, run_json
from scanbridge.normalization.findings import SecretFinding
from scanbridge.normalization.results import ScanResult, utcnow
from scanbridge.normalization.severity import SECRET_CWES, map_gitleaks

REDACTED = "***REDACTED***"


def redact_secret(secret: str | None) -> str:
    """Keep at most the first and last four characters of a secret."""
    if not secret or len(secret) <= 8:
        return REDACTED
    return secret[:4] + REDACTED + secret[-4:]


def short_commit(commit: str | None) -> str:
    return commit[:7] if commit else "staged"


def transform_gitleaks(data: list | None, scan_path: str, version: str = "unknown") -> ScanResult[SecretFinding]:
    findings: List[SecretFinding] = []
    for leak in data or []:
        severity = map_gitleaks(leak.get("RuleID"))
        findings.append(
            SecretFinding(
                id=leak.get("RuleID") or "unknown",
                severity=severity,
                description=leak.get("Description") or "",
                file=leak.get("File") or "",
                line=leak.get("StartLine"),
                secret=redact_secret(leak.get("Secret")),
                commit=short_commit(leak.get("Commit")),
                author=leak.get("Email") or "unknown",
                date=leak.get("Date") or utcnow().isoformat(),
                cwes=list(SECRET_CWES.get(severity, [])),
            )
        )
    return ScanResult[SecretFinding](tool="gitleaks", version=version, scan_path=scan_path, findings=findings)


def run_gitleaks(target: str) -> ScanResult[SecretFinding]:
    require_path(target)
    ensure_installed("gitleaks")
    args = [
        "detect",
        "--source",
        target,
        "--report-format",
        "json",
        "--report-path",
        "/dev/stdout",
        "--no-banner",
    ]
    # gitleaks exits 1 when leaks were found.
    data = run_json("gitleaks", args, accepted_codes=(0, 1), empty=[], expect=(list, type(None)))
    with parsing("gitleaks"):
        return transform_gitleaks(data, target, detect_tool_version("gitleaks"))
