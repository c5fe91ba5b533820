from __future__ import annotations

import json
import os
import re
import subprocess
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from typing import Any, Iterable, Iterator, List

import structlog

from scanbridge.config import ToolSettings, get_settings
from scanbridge.errors import (
    TargetNotFoundError,
    ToolExecutionError,
    ToolNotInstalledError,
    ToolOutputParseError,
)

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ToolSpec:
    name: str
    probe_args: tuple[str, ...] = ("--version",)
    version_pattern: str | None = None
    install: str = ""


TOOLS: dict[str, ToolSpec] = {
    "npm": ToolSpec("npm", install="npm ships with Node.js (https://nodejs.org)"),
    "trivy": ToolSpec("trivy", version_pattern=r"Version:\s*(\S+)", install="brew install trivy"),
    "semgrep": ToolSpec("semgrep", install="pip install semgrep | brew install semgrep"),
    "tfsec": ToolSpec("tfsec", install="brew install tfsec"),
    "checkov": ToolSpec("checkov", install="pip install checkov"),
    "hadolint": ToolSpec(
        "hadolint",
        version_pattern=r"Haskell Dockerfile Linter (\S+)",
        install="brew install hadolint",
    ),
    "gitleaks": ToolSpec(
        "gitleaks",
        probe_args=("version",),
        install="brew install gitleaks | go install github.com/gitleaks/gitleaks/v8@latest",
    ),
    "axe": ToolSpec("axe", install="npm install -g @axe-core/cli"),
}


@dataclass
class ToolResult:
    success: bool
    output: str
    error: str | None = None
    return_code: int | None = None
    command: list[str] | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None
    duration_seconds: float | None = None
    failure_reason: str | None = None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def run_command(
    cmd: List[str],
    timeout: int | None = None,
    env: dict[str, str] | None = None,
    workdir: str | Path | None = None,
) -> ToolResult:
    environment = os.environ.copy()
    environment.update(env or {})

    logger.debug("tool.run", command=cmd, workdir=str(workdir) if workdir else None, timeout=timeout)
    started_at = _utcnow()
    try:
        proc = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
            cwd=workdir,
            env=environment,
        )
    except subprocess.TimeoutExpired as exc:
        finished_at = _utcnow()
        logger.warning("tool.timeout", command=cmd, timeout=timeout)
        return ToolResult(
            success=False,
            output=_as_text(exc.stdout),
            error="timeout",
            command=cmd,
            started_at=started_at,
            finished_at=finished_at,
            duration_seconds=(finished_at - started_at).total_seconds(),
            failure_reason="timeout",
        )
    except OSError as exc:
        finished_at = _utcnow()
        logger.warning("tool.spawn_failed", command=cmd, error=str(exc))
        return ToolResult(
            success=False,
            output="",
            error=str(exc),
            command=cmd,
            started_at=started_at,
            finished_at=finished_at,
            duration_seconds=(finished_at - started_at).total_seconds(),
            failure_reason="crash",
        )

    finished_at = _utcnow()
    logger.debug(
        "tool.finished",
        command=cmd,
        returncode=proc.returncode,
        duration_seconds=(finished_at - started_at).total_seconds(),
    )
    return ToolResult(
        success=proc.returncode == 0,
        output=proc.stdout or "",
        error=proc.stderr or None,
        return_code=proc.returncode,
        command=cmd,
        started_at=started_at,
        finished_at=finished_at,
        duration_seconds=(finished_at - started_at).total_seconds(),
        failure_reason=None if proc.returncode == 0 else "non-zero-exit",
    )


def _as_text(value: str | bytes | None) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode(errors="replace")
    return value


def _probe(binary: str, probe_args: tuple[str, ...]) -> subprocess.CompletedProcess | None:
    try:
        return subprocess.run(
            [binary, *probe_args], capture_output=True, text=True, timeout=30, check=False
        )
    except (OSError, subprocess.TimeoutExpired):
        return None


def is_installed(tool: str) -> bool:
    spec = TOOLS[tool]
    proc = _probe(get_settings().binary_for(tool), spec.probe_args)
    return proc is not None and proc.returncode == 0


def ensure_installed(tool: str) -> None:
    if not is_installed(tool):
        logger.info("tool.missing", tool=tool)
        raise ToolNotInstalledError(tool, TOOLS[tool].install)


@lru_cache(maxsize=32)
def detect_tool_version(tool: str) -> str:
    spec = TOOLS[tool]
    proc = _probe(get_settings().binary_for(tool), spec.probe_args)
    if proc is None:
        return "unknown"
    output = (proc.stdout or proc.stderr or "").strip()
    if not output:
        return "unknown"
    if spec.version_pattern:
        match = re.search(spec.version_pattern, output)
        return match.group(1) if match else "unknown"
    return output.splitlines()[0].strip()


def run_json(
    tool: str,
    args: List[str],
    *,
    accepted_codes: Iterable[int] | None = (0,),
    empty: Any = None,
    expect: type | tuple[type, ...] | None = None,
    config: ToolSettings | None = None,
    workdir: str | Path | None = None,
) -> Any:
    """Run ``tool`` with ``args`` and return its stdout parsed as JSON.

    ``accepted_codes`` lists the exit codes that mean the scan completed
    (``None`` accepts any). Output that is blank returns ``empty`` when
    given, otherwise it is a parse error like any other non-JSON output.
    ``expect`` is the top-level JSON type the transformer needs.
    """
    settings = get_settings()
    config = config or settings.get_tool_config(tool)
    cmd = [settings.binary_for(tool), *args]
    result = run_command(cmd, timeout=config.timeout_seconds, env=config.env, workdir=workdir)

    if result.failure_reason == "crash":
        raise ToolExecutionError(tool, None, result.error)
    if result.failure_reason == "timeout":
        limit = f" after {config.timeout_seconds}s" if config.timeout_seconds else ""
        raise ToolExecutionError(tool, None, f"timed out{limit}")

    codes = None if accepted_codes is None else set(accepted_codes)
    if codes is not None and result.return_code not in codes:
        raise ToolExecutionError(tool, result.return_code, result.error or result.output)

    text = result.output.strip()
    if not text:
        if empty is not None:
            return empty
        raise ToolOutputParseError(tool, "no output", result.error)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ToolOutputParseError(tool, str(exc), result.error) from exc
    if expect is not None and not isinstance(data, expect):
        raise ToolOutputParseError(tool, f"unexpected top-level JSON {type(data).__name__}", result.error)
    return data


@contextmanager
def parsing(tool: str) -> Iterator[None]:
    """Report JSON that parsed but does not have the shape ``tool`` documents."""
    try:
        yield
    except (AttributeError, TypeError, KeyError, ValueError) as exc:
        logger.warning("tool.unexpected_output", tool=tool, error=str(exc))
        raise ToolOutputParseError(tool, f"unexpected output shape: {exc}") from exc


def require_path(target: str | Path) -> Path:
    path = Path(target)
    if not path.exists():
        raise TargetNotFoundError(str(target))
    return path
