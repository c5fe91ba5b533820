"""Rule checks for the well-known files a site publishes at its root.

Each validator returns a list of ``Issue`` tuples graded on the
critical / important / recommended scale; the checker maps that onto the
canonical severities.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import List, Optional
from urllib.parse import urlparse
from xml.etree import ElementTree

CRITICAL = "critical"
IMPORTANT = "important"
RECOMMENDED = "recommended"


@dataclass(frozen=True)
class Issue:
    level: str
    check: str
    message: str
    fix: str
    line: Optional[int] = None


def _lines(content: str):
    for number, raw in enumerate(re.split(r"\r?\n", content), start=1):
        yield number, raw.strip()


# robots.txt -----------------------------------------------------------------

ROBOTS_DIRECTIVES = ("user-agent", "disallow", "allow", "sitemap", "crawl-delay", "host")
ROBOTS_MAX_BYTES = 512_000


def validate_robots(content: str) -> List[Issue]:
    if not content.strip():
        return [Issue(IMPORTANT, "empty-file", "robots.txt is empty", "Add User-agent and Disallow/Allow directives")]

    issues: List[Issue] = []
    size = len(content.encode("utf-8"))
    if size > ROBOTS_MAX_BYTES:
        issues.append(
            Issue(IMPORTANT, "file-too-large", f"robots.txt is {size / 1024:.1f}KB (max 500KB)", "Reduce file size or simplify rules")
        )

    groups: list[dict] = []
    sitemaps: list[tuple[int, str]] = []
    for number, line in _lines(content):
        if not line or line.startswith("#"):
            continue
        if ":" not in line:
            issues.append(
                Issue(IMPORTANT, "syntax-error", f"Invalid syntax at line {number}: missing colon", "Use format: Directive: value", number)
            )
            continue
        directive, value = (part.strip() for part in line.split(":", 1))
        directive = directive.lower()
        if directive not in ROBOTS_DIRECTIVES:
            issues.append(
                Issue(
                    RECOMMENDED,
                    "unknown-directive",
                    f'Unknown directive "{directive}" at line {number}',
                    f"Valid directives: {', '.join(ROBOTS_DIRECTIVES)}",
                    number,
                )
            )
        elif directive == "user-agent":
            groups.append({"agent": value, "disallow": [], "allow": [], "line": number})
        elif directive == "sitemap":
            sitemaps.append((number, value))
        elif directive in ("disallow", "allow"):
            if not groups:
                issues.append(
                    Issue(
                        IMPORTANT,
                        "directive-without-agent",
                        f"{directive} at line {number} has no preceding User-agent",
                        "Add User-agent: * before this directive",
                        number,
                    )
                )
                continue
            groups[-1][directive].append(value)

    if not groups:
        issues.append(Issue(IMPORTANT, "no-user-agent", "No User-agent directive found", "Add User-agent: * to apply rules to all crawlers"))
    elif not any(group["agent"] == "*" for group in groups):
        issues.append(
            Issue(RECOMMENDED, "no-wildcard-agent", "No wildcard User-agent: * found", "Add User-agent: * as fallback for unspecified crawlers")
        )

    if not sitemaps:
        issues.append(
            Issue(RECOMMENDED, "missing-sitemap", "No Sitemap directive found", "Add Sitemap: https://example.com/sitemap.xml for better discoverability")
        )
    for number, url in sitemaps:
        if not url.startswith(("http://", "https://")):
            issues.append(
                Issue(
                    IMPORTANT,
                    "relative-sitemap-url",
                    f"Sitemap URL at line {number} is not absolute",
                    "Use absolute URL: Sitemap: https://example.com/sitemap.xml",
                    number,
                )
            )

    for group in groups:
        if group["agent"] == "*" and "/" in group["disallow"] and not group["allow"]:
            issues.append(
                Issue(
                    CRITICAL,
                    "blocking-all",
                    "Disallow: / blocks all crawlers from entire site",
                    "Remove or modify if unintended. This prevents search engine indexing.",
                    group["line"],
                )
            )
    return issues


# security.txt (RFC 9116) -------------------------------------------------------

SECURITY_REQUIRED = ("contact", "expires")
SECURITY_OPTIONAL = ("encryption", "acknowledgments", "preferred-languages", "canonical", "policy", "hiring")
SECURITY_FIELDS = SECURITY_REQUIRED + SECURITY_OPTIONAL
ISO_TIMESTAMP = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d{3})?(Z|[+-]\d{2}:\d{2})$")
EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def _parse_timestamp(value: str) -> datetime | None:
    """Parse an RFC 3339 timestamp; impossible dates such as Feb 30 give ``None``."""
    if not ISO_TIMESTAMP.match(value):
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def _has_host(url: str) -> bool:
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return bool(parsed.netloc) and not any(char.isspace() for char in url)


def validate_security_txt(content: str, now: datetime | None = None) -> List[Issue]:
    if not content.strip():
        return [Issue(CRITICAL, "empty-file", "security.txt is empty", "Add Contact and Expires fields per RFC 9116")]

    now = now or datetime.now(timezone.utc)
    issues: List[Issue] = []
    fields: dict[str, list[tuple[int, str]]] = {}
    for number, line in _lines(content):
        if not line or line.startswith("#"):
            continue
        if ":" not in line:
            issues.append(
                Issue(IMPORTANT, "syntax-error", f"Invalid syntax at line {number}: missing colon", "Use format: Field: value", number)
            )
            continue
        name, value = (part.strip() for part in line.split(":", 1))
        name = name.lower()
        if name not in SECURITY_FIELDS:
            issues.append(
                Issue(
                    RECOMMENDED,
                    "unknown-field",
                    f'Unknown field "{name}" at line {number}',
                    f"Valid fields: {', '.join(SECURITY_FIELDS)}",
                    number,
                )
            )
            continue
        fields.setdefault(name, []).append((number, value))

    contacts = fields.get("contact", [])
    expires = fields.get("expires", [])
    if not contacts:
        issues.append(
            Issue(
                CRITICAL,
                "missing-contact",
                "Missing required Contact field",
                "Add Contact: mailto:security@example.com or Contact: https://example.com/security",
            )
        )
    if not expires:
        issues.append(Issue(CRITICAL, "missing-expires", "Missing required Expires field", "Add Expires: 2025-12-31T23:59:59.000Z"))
    elif len(expires) > 1:
        issues.append(
            Issue(IMPORTANT, "multiple-expires", "Multiple Expires fields found (only one allowed)", "Keep only one Expires field")
        )

    if expires:
        number, value = expires[0]
        expires_at = _parse_timestamp(value)
        if expires_at is None:
            issues.append(
                Issue(
                    IMPORTANT,
                    "invalid-expires-format",
                    "Expires field is not in ISO 8601 format",
                    "Use format: YYYY-MM-DDTHH:MM:SS.sssZ (e.g., 2025-12-31T23:59:59.000Z)",
                    number,
                )
            )
        elif expires_at <= now:
            issues.append(Issue(CRITICAL, "expired", "Expires date is in the past", "Update Expires to a future date", number))
        elif expires_at > now + timedelta(days=365):
            issues.append(
                Issue(
                    RECOMMENDED,
                    "expires-too-far",
                    "Expires date is more than 1 year in future",
                    "RFC 9116 recommends setting validity to maximum 1 year",
                    number,
                )
            )

    for number, value in contacts:
        lowered = value.lower()
        if not lowered.startswith(("mailto:", "https://", "tel:")):
            issues.append(
                Issue(
                    IMPORTANT,
                    "invalid-contact-format",
                    f"Contact at line {number} should start with mailto:, https://, or tel:",
                    "Use format: Contact: mailto:security@example.com",
                    number,
                )
            )
        elif lowered.startswith("mailto:") and not EMAIL.match(value[7:]):
            issues.append(
                Issue(
                    IMPORTANT,
                    "invalid-email",
                    f"Invalid email format in Contact at line {number}",
                    "Use valid email: mailto:security@example.com",
                    number,
                )
            )
        elif lowered.startswith("https://") and not _has_host(value):
            issues.append(
                Issue(
                    IMPORTANT,
                    "invalid-url",
                    f"Invalid URL format in Contact at line {number}",
                    "Use valid URL: https://example.com/security",
                    number,
                )
            )

    if "canonical" not in fields:
        issues.append(
            Issue(RECOMMENDED, "missing-canonical", "Missing Canonical field", "Add Canonical: https://example.com/.well-known/security.txt")
        )
    return issues


# sitemap.xml ----------------------------------------------------------------

SITEMAP_MAX_URLS = 50_000
SITEMAP_MAX_BYTES = 52_428_800


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _child_text(element: ElementTree.Element, name: str) -> str | None:
    for child in element:
        if _local(child.tag) == name:
            return (child.text or "").strip()
    return None


def validate_sitemap(content: str) -> List[Issue]:
    if not content.strip():
        return [Issue(CRITICAL, "empty-file", "Sitemap file is empty", "Add valid sitemap XML content")]

    issues: List[Issue] = []
    size = len(content.encode("utf-8"))
    if size > SITEMAP_MAX_BYTES:
        issues.append(
            Issue(
                CRITICAL,
                "file-too-large",
                f"Sitemap is {size / 1024 / 1024:.1f}MB (max 50MB)",
                "Split into multiple sitemaps or use gzip compression",
            )
        )

    try:
        root = ElementTree.fromstring(content)
    except ElementTree.ParseError as exc:
        issues.append(Issue(CRITICAL, "invalid-xml", f"Invalid XML: {exc}", "Fix XML syntax errors"))
        return issues

    kind = _local(root.tag)
    if kind == "urlset":
        entries = [child for child in root if _local(child.tag) == "url"]
        if not entries:
            issues.append(Issue(CRITICAL, "no-urls", "Sitemap contains no URLs", "Add at least one <url><loc>...</loc></url> entry"))
            return issues
        if len(entries) > SITEMAP_MAX_URLS:
            issues.append(
                Issue(
                    CRITICAL,
                    "exceeds-limit",
                    f"Sitemap contains {len(entries)} URLs (max 50,000)",
                    "Split into multiple sitemaps and use sitemap index",
                )
            )
        missing_loc = relative = invalid = missing_lastmod = 0
        for entry in entries:
            loc = _child_text(entry, "loc")
            if not loc:
                missing_loc += 1
                continue
            if not loc.startswith(("http://", "https://")):
                relative += 1
            elif not _has_host(loc):
                invalid += 1
            if not _child_text(entry, "lastmod"):
                missing_lastmod += 1
        if missing_loc:
            issues.append(
                Issue(
                    CRITICAL,
                    "missing-loc",
                    f"{missing_loc} URL entries missing <loc> element",
                    "Add <loc>https://example.com/page</loc> to each URL entry",
                )
            )
        if relative:
            issues.append(
                Issue(CRITICAL, "relative-url", f"{relative} URLs are relative (must be absolute)", "Use absolute URLs starting with https://")
            )
        if invalid:
            issues.append(
                Issue(
                    IMPORTANT,
                    "invalid-url",
                    f"{invalid} URLs have invalid format",
                    "Ensure all URLs are valid and properly encoded",
                )
            )
        if missing_lastmod:
            issues.append(
                Issue(
                    RECOMMENDED,
                    "missing-lastmod",
                    f"{missing_lastmod}/{len(entries)} URLs missing <lastmod>",
                    "Add <lastmod>YYYY-MM-DD</lastmod> to improve crawl efficiency",
                )
            )
    elif kind == "sitemapindex":
        entries = [child for child in root if _local(child.tag) == "sitemap"]
        if not entries:
            issues.append(
                Issue(CRITICAL, "no-sitemaps", "Sitemap index contains no sitemaps", "Add at least one <sitemap><loc>...</loc></sitemap> entry")
            )
            return issues
        missing_loc = sum(1 for entry in entries if not _child_text(entry, "loc"))
        if missing_loc:
            issues.append(
                Issue(
                    CRITICAL,
                    "missing-sitemap-loc",
                    f"{missing_loc} sitemap entries missing <loc>",
                    "Add <loc>https://example.com/sitemap.xml</loc> to each entry",
                )
            )
    else:
        issues.append(
            Issue(
                CRITICAL,
                "missing-root",
                "Missing <urlset> or <sitemapindex> root element",
                'Wrap URLs in <urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
            )
        )
    return issues


# llms.txt (llmstxt.org) ----------------------------------------------------------

LINK = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")


def validate_llms_txt(content: str) -> List[Issue]:
    if not content.strip():
        return [Issue(CRITICAL, "empty-file", "llms.txt is empty", "Add H1 title and content per llmstxt.org specification")]

    issues: List[Issue] = []
    lines = re.split(r"\r?\n", content)
    title_line = None
    summary: list[str] = []
    summary_done = False
    sections: list[str] = []
    links: list[str] = []
    for number, line in enumerate(lines, start=1):
        if title_line is None and line.startswith("# "):
            title_line = number
            continue
        if line.startswith("> ") and not summary_done:
            summary.append(line[2:].strip())
            continue
        if summary and not line.strip():
            summary_done = True
        if line.startswith("## "):
            sections.append(line[3:].strip())
            continue
        links.extend(url for _, url in LINK.findall(line))

    if title_line is None:
        issues.append(Issue(CRITICAL, "missing-title", "Missing H1 title at start of file", "Start file with # Your Site Name"))
    else:
        first_content = next(number for number, line in enumerate(lines, start=1) if line.strip())
        if first_content != title_line:
            issues.append(
                Issue(
                    IMPORTANT,
                    "title-not-first",
                    f"H1 title found at line {title_line}, should be first",
                    "Move H1 title to the beginning of the file",
                    title_line,
                )
            )

    summary_text = " ".join(summary)
    if not summary_text:
        issues.append(
            Issue(IMPORTANT, "missing-summary", "Missing summary blockquote after title", "Add > Brief description of your site after the H1 title")
        )
    elif len(summary_text) < 20:
        issues.append(
            Issue(
                RECOMMENDED,
                "summary-too-short",
                f"Summary is very short ({len(summary_text)} chars)",
                "Add more context to help LLMs understand your site",
            )
        )

    if not sections:
        issues.append(Issue(RECOMMENDED, "no-sections", "No H2 sections found", "Add ## Section headings to organize content"))
    elif not any(section.lower() == "optional" for section in sections):
        issues.append(
            Issue(RECOMMENDED, "no-optional-section", 'No "Optional" section found', "Add ## Optional section for less critical resources")
        )

    if not links:
        issues.append(
            Issue(
                RECOMMENDED,
                "no-links",
                "No markdown links found",
                "Add links in format: - [Link Text](https://example.com/page): Description",
            )
        )
    else:
        invalid = sum(1 for url in links if not url.startswith(("http://", "https://", "/")))
        if invalid:
            issues.append(
                Issue(
                    IMPORTANT,
                    "invalid-links",
                    f"{invalid} link(s) have potentially invalid URLs",
                    "Use absolute URLs (https://...) or root-relative paths (/...)",
                )
            )
    return issues
