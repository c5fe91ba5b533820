from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, List

import structlog

from scanbridge import __version__
from scanbridge.config import get_settings
from scanbridge.errors import TargetNotFoundError
from scanbridge.normalization.findings import WebResourceFinding
from scanbridge.normalization.results import ScanResult
from scanbridge.normalization.severity import map_web_resource
from scanbridge.web import validators
from scanbridge.web.fetch import fetch_first, is_url

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Resource:
    key: str
    file: str
    paths: tuple[str, ...]
    validate: Callable[[str], List[validators.Issue]]
    missing_level: str
    missing_fix: str


RESOURCES: dict[str, Resource] = {
    "robots": Resource(
        "robots",
        "robots.txt",
        ("robots.txt",),
        validators.validate_robots,
        validators.RECOMMENDED,
        "Create robots.txt at the site root",
    ),
    "security": Resource(
        "security",
        "security.txt",
        (".well-known/security.txt", "security.txt"),
        validators.validate_security_txt,
        validators.IMPORTANT,
        "Create .well-known/security.txt with Contact and Expires fields",
    ),
    "sitemap": Resource(
        "sitemap",
        "sitemap.xml",
        ("sitemap.xml", "sitemap_index.xml"),
        validators.validate_sitemap,
        validators.CRITICAL,
        "Create sitemap.xml listing the site's canonical URLs",
    ),
    "llms": Resource(
        "llms",
        "llms.txt",
        ("llms.txt",),
        validators.validate_llms_txt,
        validators.RECOMMENDED,
        "Create llms.txt per the llmstxt.org format",
    ),
}


def parse_only(value: str | None) -> List[str]:
    if not value:
        return list(RESOURCES)
    keys = [key.strip().lower() for key in value.split(",") if key.strip()]
    unknown = [key for key in keys if key not in RESOURCES]
    if unknown:
        raise ValueError(f"Unknown resource(s): {', '.join(unknown)}. Choose from {', '.join(RESOURCES)}")
    return keys


def _read_local(root: Path, paths: Iterable[str]) -> tuple[str | None, str]:
    source = str(root)
    for path in paths:
        candidate = root / path
        source = str(candidate)
        if candidate.is_file():
            return candidate.read_text(encoding="utf-8", errors="replace"), source
    return None, source


def _to_finding(resource: Resource, issue: validators.Issue, source: str) -> WebResourceFinding:
    return WebResourceFinding(
        id=f"{resource.key}-{issue.check}",
        severity=map_web_resource(issue.level),
        file=resource.file,
        check=issue.check,
        message=issue.message,
        fix=issue.fix,
        source=source,
        line=issue.line,
    )


def check_web_resources(
    target: str, only: Iterable[str] | None = None, timeout_ms: int | None = None
) -> ScanResult[WebResourceFinding]:
    """Fetch or read each selected resource and validate it.

    A resource that cannot be found is itself a finding, graded by how
    much crawlers depend on it.
    """
    keys = list(only) if only else list(RESOURCES)
    timeout_ms = timeout_ms or get_settings().web_timeout_ms
    remote = is_url(target)
    root = Path(target)
    if not remote and not root.is_dir():
        raise TargetNotFoundError(target, "not a URL or directory")

    findings: List[WebResourceFinding] = []
    for key in keys:
        resource = RESOURCES[key]
        if remote:
            content, source = fetch_first(target, list(resource.paths), timeout_ms)
        else:
            content, source = _read_local(root, resource.paths)

        if content is None:
            logger.info("web.resource_missing", resource=resource.file, target=target)
            missing = validators.Issue(
                resource.missing_level, "not-found", f"{resource.file} not found", resource.missing_fix
            )
            findings.append(_to_finding(resource, missing, source))
            continue

        issues = resource.validate(content)
        logger.debug("web.resource_checked", resource=resource.file, source=source, issues=len(issues))
        findings.extend(_to_finding(resource, issue, source) for issue in issues)

    return ScanResult[WebResourceFinding](
        tool="web-resource-checker",
        version=__version__,
        scan_path=target,
        config=",".join(keys),
        findings=findings,
    )
