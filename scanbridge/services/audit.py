from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List

import structlog

from scanbridge.adapters import gitleaks, hadolint, semgrep, tfsec, trivy
from scanbridge.adapters.base import require_path
from scanbridge.errors import ScanBridgeError
from scanbridge.normalization.results import ScanResult
from scanbridge.services.reporting import combined_exit_code

logger = structlog.get_logger(__name__)

DEFAULT_TOOLS = ["gitleaks", "semgrep", "trivy", "hadolint", "tfsec"]


def _run_hadolint(target: str) -> ScanResult:
    dockerfile = find_dockerfile(target)
    return hadolint.run_hadolint(str(dockerfile))


TOOL_MAP: Dict[str, Callable[[str], ScanResult]] = {
    "gitleaks": lambda target: gitleaks.run_gitleaks(target),
    "semgrep": lambda target: semgrep.run_semgrep(target),
    "trivy": lambda target: trivy.run_trivy_fs(target),
    "hadolint": _run_hadolint,
    "tfsec": lambda target: tfsec.run_tfsec(target),
}


@dataclass
class AuditReport:
    target: str
    results: List[ScanResult] = field(default_factory=list)
    errors: Dict[str, str] = field(default_factory=dict)
    skipped: List[str] = field(default_factory=list)

    @property
    def exit_code(self) -> int:
        return combined_exit_code(self.results, self.errors)


def find_dockerfile(target: str | Path) -> Path | None:
    root = Path(target)
    if root.is_file():
        return root if root.name == "Dockerfile" else None
    direct = root / "Dockerfile"
    if direct.is_file():
        return direct
    return next((p for p in sorted(root.rglob("Dockerfile")) if p.is_file()), None)


def parse_tools(value: str | None) -> List[str]:
    if not value:
        return list(DEFAULT_TOOLS)
    tools = [tool.strip().lower() for tool in value.split(",") if tool.strip()]
    unknown = [tool for tool in tools if tool not in TOOL_MAP]
    if unknown:
        raise ValueError(f"Unknown tool(s): {', '.join(unknown)}. Choose from {', '.join(TOOL_MAP)}")
    return tools


def _execute_tool(tool: str, target: str) -> ScanResult:
    logger.info("audit.tool_started", tool=tool, target=target)
    return TOOL_MAP[tool](target)


async def _execute_tool_async(tool: str, target: str) -> ScanResult:
    return await asyncio.to_thread(_execute_tool, tool, target)


def run_audit(target: str, tools: List[str] | None = None) -> AuditReport:
    """Run every selected tool against ``target`` concurrently.

    A tool that fails is recorded in ``errors`` and does not stop the
    others. Results keep the order the tools were requested in.
    """
    require_path(target)
    selected = list(tools or DEFAULT_TOOLS)
    report = AuditReport(target=target)
    if "hadolint" in selected and find_dockerfile(target) is None:
        logger.info("audit.tool_skipped", tool="hadolint", reason="no Dockerfile")
        selected.remove("hadolint")
        report.skipped.append("hadolint")

    async def runner() -> list:
        return await asyncio.gather(
            *[_execute_tool_async(tool, target) for tool in selected],
            return_exceptions=True,
        )

    outcomes = asyncio.run(runner())

    for tool, outcome in zip(selected, outcomes):
        if isinstance(outcome, ScanBridgeError):
            logger.warning("audit.tool_failed", tool=tool, error=str(outcome))
            report.errors[tool] = str(outcome)
        elif isinstance(outcome, BaseException):
            raise outcome
        else:
            report.results.append(outcome)
    logger.info(
        "audit.finished",
        target=target,
        tools=selected,
        failed=list(report.errors),
        findings=sum(result.total for result in report.results),
    )
    return report
