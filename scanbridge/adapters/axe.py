from __future__ import annotations

from pathlib import Path
from typing import List

from scanbridge.adapters.base import detect_tool_version, ensure_installed, parsing, run_json
from scanbridge.config import get_settings
from scanbridge.errors import TargetNotFoundError
from scanbridge.normalization.findings import AccessibilityFinding
from scanbridge.normalization.results import ScanResult
from scanbridge.normalization.severity import map_axe
from scanbridge.web.fetch import is_url, probe_url

WCAG_TAGS = ("wcag2a", "wcag2aa", "wcag21aa")


def _targets(nodes: list) -> List[str]:
    selectors: List[str] = []
    for node in nodes or []:
        for target in node.get("target") or []:
            # Selectors inside iframes/shadow roots come back as nested lists.
            selectors.append(" ".join(target) if isinstance(target, list) else str(target))
    return selectors


def transform_axe(data: list | dict, scan_path: str, version: str = "unknown") -> ScanResult[AccessibilityFinding]:
    pages = data if isinstance(data, list) else [data]
    findings: List[AccessibilityFinding] = []
    for page in pages:
        url = page.get("url", scan_path)
        for violation in page.get("violations") or []:
            findings.append(
                AccessibilityFinding(
                    id=violation.get("id", "unknown"),
                    severity=map_axe(violation.get("impact")),
                    help=violation.get("help") or violation.get("description") or "",
                    description=violation.get("description") or "",
                    help_url=violation.get("helpUrl"),
                    url=url,
                    tags=list(violation.get("tags") or []),
                    targets=_targets(violation.get("nodes")),
                )
            )
    return ScanResult[AccessibilityFinding](
        tool="axe-core",
        version=version,
        scan_path=scan_path,
        config=",".join(WCAG_TAGS),
        findings=findings,
    )


def resolve_target(target: str) -> str:
    """Return a URL axe can load, failing fast when the page is not there."""
    if is_url(target):
        probe_url(target, timeout_ms=get_settings().web_timeout_ms)
        return target
    path = Path(target)
    if not path.is_file():
        raise TargetNotFoundError(target)
    return path.resolve().as_uri()


def run_axe(target: str) -> ScanResult[AccessibilityFinding]:
    url = resolve_target(target)
    ensure_installed("axe")
    data = run_json("axe", [url, "--tags", ",".join(WCAG_TAGS), "--stdout"], accepted_codes=(0, 1), expect=(list, dict))
    with parsing("axe"):
        return transform_axe(data, target, detect_tool_version("axe"))
