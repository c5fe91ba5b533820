from __future__ import annotations

from typing import List

from scanbridge.adapters.base import detect_tool_version, ensure_installed, parsing, require_path, run_json
from scanbridge.normalization.findings import PackageFinding
from scanbridge.normalization.results import OperatingSystem, ScanResult
from scanbridge.normalization.severity import map_trivy


def first_v3_score(cvss: dict | None) -> float | None:
    """First ``V3Score`` in source order (nvd, ghsa, redhat, ...), not the highest."""
    for source in (cvss or {}).values():
        if isinstance(source, dict) and source.get("V3Score"):
            return source["V3Score"]
    return None


def _iter_vulnerabilities(data: dict):
    for target in data.get("Results") or []:
        for vuln in target.get("Vulnerabilities") or []:
            yield vuln


def _to_finding(vuln: dict, with_layer: bool) -> PackageFinding:
    vuln_id = vuln.get("VulnerabilityID", "unknown")
    layer = (vuln.get("Layer") or {}).get("DiffID") if with_layer else None
    return PackageFinding(
        id=vuln_id,
        severity=map_trivy(vuln.get("Severity")),
        package=vuln.get("PkgName", ""),
        installed_version=vuln.get("InstalledVersion", ""),
        fixed_version=vuln.get("FixedVersion") or None,
        title=vuln.get("Title") or vuln_id,
        description=vuln.get("Description"),
        cvss=first_v3_score(vuln.get("CVSS")),
        cwes=list(vuln.get("CweIDs") or []),
        references=list(vuln.get("References") or []),
        layer=layer,
    )


def transform_trivy_fs(data: dict, scan_path: str, version: str = "unknown") -> ScanResult[PackageFinding]:
    findings: List[PackageFinding] = [_to_finding(v, with_layer=False) for v in _iter_vulnerabilities(data)]
    return ScanResult[PackageFinding](tool="trivy", version=version, scan_path=scan_path, findings=findings)


def transform_trivy_image(data: dict, image: str, version: str = "unknown") -> ScanResult[PackageFinding]:
    findings: List[PackageFinding] = [_to_finding(v, with_layer=True) for v in _iter_vulnerabilities(data)]
    os_info = (data.get("Metadata") or {}).get("OS")
    return ScanResult[PackageFinding](
        tool="trivy",
        version=version,
        scan_path=image,
        os=OperatingSystem(family=os_info.get("Family", ""), name=os_info.get("Name", "")) if os_info else None,
        findings=findings,
    )


def run_trivy_fs(target: str) -> ScanResult[PackageFinding]:
    require_path(target)
    ensure_installed("trivy")
    data = run_json("trivy", ["fs", "--format", "json", "--scanners", "vuln", target], expect=dict)
    with parsing("trivy"):
        return transform_trivy_fs(data, target, detect_tool_version("trivy"))


def run_trivy_image(image: str) -> ScanResult[PackageFinding]:
    ensure_installed("trivy")
    data = run_json("trivy", ["image", "--format", "json", "--scanners", "vuln", image], expect=dict)
    with parsing("trivy"):
        return transform_trivy_image(data, image, detect_tool_version("trivy"))
