from __future__ import annotations

import pytest

from scanbridge.normalization.findings import LintLevel, Severity
from scanbridge.normalization import severity


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("critical", Severity.CRITICAL),
        ("high", Severity.HIGH),
        ("moderate", Severity.MEDIUM),
        ("low", Severity.LOW),
        ("info", Severity.INFO),
        (None, Severity.INFO),
    ],
)
def test_npm_severity(raw, expected):
    assert severity.map_npm(raw) == expected


def test_trivy_and_tfsec_are_case_insensitive():
    assert severity.map_trivy("critical") == Severity.CRITICAL
    assert severity.map_tfsec("Medium") == Severity.MEDIUM
    assert severity.map_trivy("UNKNOWN") == Severity.INFO


def test_semgrep_injection_cwe_overrides_reported_level():
    cwes = ["CWE-89: Improper Neutralization of Special Elements used in an SQL Command ('SQL Injection')"]
    assert severity.map_semgrep("WARNING", cwes) == Severity.CRITICAL
    assert severity.map_semgrep("INFO", ["cwe-502"]) == Severity.CRITICAL


def test_semgrep_without_override():
    assert severity.map_semgrep("ERROR", ["CWE-79: Cross-site Scripting"]) == Severity.HIGH
    assert severity.map_semgrep("WARNING") == Severity.MEDIUM
    assert severity.map_semgrep("INFO") == Severity.LOW
    assert severity.map_semgrep("EXPERIMENT") == Severity.INFO


@pytest.mark.parametrize(
    "check_id, expected",
    [
        ("CKV_AWS_CRITICAL_1", Severity.CRITICAL),
        ("CKV_AWS_encryption_at_rest", Severity.HIGH),
        ("CKV_public_bucket", Severity.HIGH),
        ("CKV_backup_enabled", Severity.MEDIUM),
        ("CKV_AWS_20", Severity.MEDIUM),
        (None, Severity.MEDIUM),
    ],
)
def test_checkov_rule_table(check_id, expected):
    assert severity.map_checkov(check_id) == expected


def test_hadolint_keeps_its_own_scale():
    assert severity.map_hadolint("warning") == LintLevel.WARNING
    assert severity.map_hadolint("style") == LintLevel.STYLE
    assert severity.map_hadolint("bogus") == LintLevel.INFO


@pytest.mark.parametrize(
    "rule_id, expected",
    [
        ("aws-access-key-id", Severity.CRITICAL),
        ("AWS_ACCESS_KEY_ID", Severity.CRITICAL),
        ("github-pat", Severity.HIGH),
        ("jwt", Severity.MEDIUM),
        ("generic-credential", Severity.LOW),
        ("github-pat-fine-grained", Severity.HIGH),
        ("something-new", Severity.MEDIUM),
        ("", Severity.MEDIUM),
        (None, Severity.MEDIUM),
    ],
)
def test_gitleaks_rule_lookup(rule_id, expected):
    assert severity.map_gitleaks(rule_id) == expected


def test_axe_and_web_resource_scales():
    assert severity.map_axe("serious") == Severity.HIGH
    assert severity.map_axe("minor") == Severity.LOW
    assert severity.map_web_resource("critical") == Severity.HIGH
    assert severity.map_web_resource("important") == Severity.MEDIUM
    assert severity.map_web_resource("recommended") == Severity.LOW


def test_unknown_input_never_maps_to_critical():
    mappers = [
        severity.map_npm,
        severity.map_trivy,
        severity.map_semgrep,
        severity.map_checkov,
        severity.map_gitleaks,
        severity.map_axe,
        severity.map_web_resource,
    ]
    for mapper in mappers:
        assert mapper("not-a-real-level") != Severity.CRITICAL
