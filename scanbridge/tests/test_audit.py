from __future__ import annotations

import pytest

from scanbridge.errors import TargetNotFoundError, ToolExecutionError
from scanbridge.normalization.findings import SecretFinding, Severity
from scanbridge.normalization.results import ScanResult
from scanbridge.services import audit


def _clean(tool: str):
    return lambda target: ScanResult[SecretFinding](tool=tool, scan_path=target)


def _leaky(target: str) -> ScanResult[SecretFinding]:
    finding = SecretFinding(
        id="github-pat",
        severity=Severity.HIGH,
        description="GitHub Personal Access Token",
        file=".env",
        line=1,
        secret="ghp_***REDACTED***abcd",
        commit="staged",
        author="unknown",
        date="2024-01-15T10:00:00Z",
    )
    return ScanResult[SecretFinding](tool="gitleaks", scan_path=target, findings=[finding])


def _broken(target: str):
    raise ToolExecutionError("trivy", 1, "database download failed")


@pytest.fixture
def tools(monkeypatch):
    for name in audit.DEFAULT_TOOLS:
        monkeypatch.setitem(audit.TOOL_MAP, name, _clean(name))
    return monkeypatch


def test_clean_audit_exits_zero(tools, tmp_path):
    report = audit.run_audit(str(tmp_path))

    assert [r.tool for r in report.results] == ["gitleaks", "semgrep", "trivy", "tfsec"]
    assert report.skipped == ["hadolint"]
    assert report.exit_code == 0


def test_findings_exit_one(tools, tmp_path):
    tools.setitem(audit.TOOL_MAP, "gitleaks", _leaky)

    report = audit.run_audit(str(tmp_path), ["gitleaks", "semgrep"])

    assert report.errors == {}
    assert report.exit_code == 1


def test_operational_error_wins_over_findings(tools, tmp_path):
    tools.setitem(audit.TOOL_MAP, "gitleaks", _leaky)
    tools.setitem(audit.TOOL_MAP, "trivy", _broken)

    report = audit.run_audit(str(tmp_path))

    assert "database download failed" in report.errors["trivy"]
    assert [r.tool for r in report.results] == ["gitleaks", "semgrep", "tfsec"]
    assert report.exit_code == 2


def test_hadolint_runs_when_dockerfile_present(tools, tmp_path):
    (tmp_path / "docker").mkdir()
    (tmp_path / "docker" / "Dockerfile").write_text("FROM alpine:3.19\n")

    report = audit.run_audit(str(tmp_path), ["hadolint"])

    assert report.skipped == []
    assert [r.tool for r in report.results] == ["hadolint"]
    assert audit.find_dockerfile(tmp_path) == tmp_path / "docker" / "Dockerfile"


def test_missing_target(tools, tmp_path):
    with pytest.raises(TargetNotFoundError):
        audit.run_audit(str(tmp_path / "nope"))


def test_parse_tools():
    assert audit.parse_tools(None) == audit.DEFAULT_TOOLS
    assert audit.parse_tools("Semgrep,gitleaks") == ["semgrep", "gitleaks"]
    with pytest.raises(ValueError):
        audit.parse_tools("nmap")
