"""Per-tool translation of raw severity tokens into the canonical scale.

Each tool's raw severity is mapped exactly once, inside its transformer.
Unknown input falls to the least alarming bucket the tool's scale allows,
never to ``critical``.

The Checkov and Gitleaks tables are heuristics over check and rule
identifiers. Neither tool certifies them; they are versioned so that
reports can say which table produced a severity.
"""
from __future__ import annotations

from typing import Iterable

from scanbridge.normalization.findings import LintLevel, Severity

NPM_SEVERITIES = {
    "critical": Severity.CRITICAL,
    "high": Severity.HIGH,
    "moderate": Severity.MEDIUM,
    "low": Severity.LOW,
}

# Trivy and tfsec share the same upper-case vocabulary.
LEVEL_SEVERITIES = {
    "CRITICAL": Severity.CRITICAL,
    "HIGH": Severity.HIGH,
    "MEDIUM": Severity.MEDIUM,
    "LOW": Severity.LOW,
}

SEMGREP_SEVERITIES = {
    "ERROR": Severity.HIGH,
    "WARNING": Severity.MEDIUM,
    "INFO": Severity.LOW,
}

# SQL injection, OS command injection, code injection, insecure deserialization.
SEMGREP_CRITICAL_CWES = frozenset({"CWE-89", "CWE-78", "CWE-94", "CWE-502"})

AXE_IMPACTS = {
    "critical": Severity.CRITICAL,
    "serious": Severity.HIGH,
    "moderate": Severity.MEDIUM,
    "minor": Severity.LOW,
}

WEB_RESOURCE_SEVERITIES = {
    "critical": Severity.HIGH,
    "important": Severity.MEDIUM,
    "recommended": Severity.LOW,
}

CHECKOV_RULES_VERSION = "1"

# First matching rule wins; substrings are matched against the check ID as-is.
CHECKOV_RULES: tuple[tuple[tuple[str, ...], Severity], ...] = (
    (("CRITICAL",), Severity.CRITICAL),
    (("encryption", "public", "secret"), Severity.HIGH),
    (("logging", "backup"), Severity.MEDIUM),
)
CHECKOV_DEFAULT = Severity.MEDIUM

GITLEAKS_RULES_VERSION = "1"

# Insertion order matters for the substring pass.
GITLEAKS_RULES = {
    "aws-access-key-id": Severity.CRITICAL,
    "aws-secret-access-key": Severity.CRITICAL,
    "gcp-api-key": Severity.CRITICAL,
    "azure-storage-key": Severity.CRITICAL,
    "private-key": Severity.CRITICAL,
    "ssh-private-key": Severity.CRITICAL,
    "rsa-private-key": Severity.CRITICAL,
    "password": Severity.HIGH,
    "api-key": Severity.HIGH,
    "github-pat": Severity.HIGH,
    "gitlab-pat": Severity.HIGH,
    "npm-access-token": Severity.HIGH,
    "slack-token": Severity.HIGH,
    "stripe-api-key": Severity.HIGH,
    "twilio-api-key": Severity.HIGH,
    "sendgrid-api-key": Severity.HIGH,
    "mailchimp-api-key": Severity.HIGH,
    "generic-api-key": Severity.MEDIUM,
    "jwt": Severity.MEDIUM,
    "oauth-token": Severity.MEDIUM,
    "bearer-token": Severity.MEDIUM,
    "generic-credential": Severity.LOW,
    "password-in-url": Severity.LOW,
}
GITLEAKS_DEFAULT = Severity.MEDIUM

SECRET_CWES = {
    Severity.CRITICAL: ["CWE-798", "CWE-321"],
    Severity.HIGH: ["CWE-798", "CWE-259"],
    Severity.MEDIUM: ["CWE-312"],
    Severity.LOW: ["CWE-312"],
}


def map_npm(raw: str | None) -> Severity:
    return NPM_SEVERITIES.get((raw or "").lower(), Severity.INFO)


def map_trivy(raw: str | None) -> Severity:
    return LEVEL_SEVERITIES.get((raw or "").upper(), Severity.INFO)


map_tfsec = map_trivy


def cwe_id(entry: str) -> str:
    """``"CWE-89: Improper Neutralization ..."`` -> ``"CWE-89"``."""
    return entry.split(":", 1)[0].strip().upper()


def map_semgrep(raw: str | None, cwes: Iterable[str] = ()) -> Severity:
    if any(cwe_id(cwe) in SEMGREP_CRITICAL_CWES for cwe in cwes):
        return Severity.CRITICAL
    return SEMGREP_SEVERITIES.get((raw or "").upper(), Severity.INFO)


def map_checkov(check_id: str | None) -> Severity:
    check_id = check_id or ""
    for needles, severity in CHECKOV_RULES:
        if any(needle in check_id for needle in needles):
            return severity
    return CHECKOV_DEFAULT


def map_hadolint(raw: str | None) -> LintLevel:
    try:
        return LintLevel((raw or "").lower())
    except ValueError:
        return LintLevel.INFO


def normalize_rule_id(rule_id: str) -> str:
    return rule_id.lower().replace("_", "-")


def map_gitleaks(rule_id: str | None) -> Severity:
    rule = normalize_rule_id(rule_id or "").strip()
    if not rule:
        return GITLEAKS_DEFAULT
    if rule in GITLEAKS_RULES:
        return GITLEAKS_RULES[rule]
    for key, severity in GITLEAKS_RULES.items():
        if key in rule or rule in key:
            return severity
    return GITLEAKS_DEFAULT


def map_axe(impact: str | None) -> Severity:
    return AXE_IMPACTS.get((impact or "").lower(), Severity.INFO)


def map_web_resource(level: str | None) -> Severity:
    return WEB_RESOURCE_SEVERITIES.get((level or "").lower(), Severity.INFO)
