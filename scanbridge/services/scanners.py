from __future__ import annotations

from pathlib import Path

import structlog

from scanbridge.adapters import checkov, npm_audit, tfsec, trivy
from scanbridge.adapters.base import ensure_installed, is_installed, require_path
from scanbridge.errors import ScanBridgeError
from scanbridge.normalization.results import ScanResult

logger = structlog.get_logger(__name__)

SCA_SCANNERS = ("npm", "trivy")
IAC_SCANNERS = ("tfsec", "checkov")

TERRAFORM_MARKERS = ("main.tf", "terraform.tf")
OTHER_IAC_MARKERS = ("template.yaml", "template.json", "deployment.yaml", "k8s")


class NoScannerError(ScanBridgeError):
    def __init__(self, command: str):
        super().__init__(f"No suitable scanner found. Run 'scanbridge {command} --check' to see available scanners.")


def has_lockfile(target: str | Path) -> bool:
    path = Path(target)
    return path.name == "package-lock.json" or (path / "package-lock.json").exists()


def detect_sca_scanner(target: str) -> str:
    # Trivy covers every ecosystem npm does and more.
    if is_installed("trivy"):
        return "trivy"
    if has_lockfile(target) and is_installed("npm"):
        return "npm"
    raise NoScannerError("sca")


def detect_iac_scanner(target: str) -> str:
    root = Path(target)
    terraform = any((root / marker).exists() for marker in TERRAFORM_MARKERS)
    mixed = any((root / marker).exists() for marker in OTHER_IAC_MARKERS)
    # tfsec only reads Terraform; anything mixed goes to Checkov.
    if terraform and not mixed and is_installed("tfsec"):
        return "tfsec"
    if is_installed("checkov"):
        return "checkov"
    if is_installed("tfsec"):
        return "tfsec"
    raise NoScannerError("iac")


def run_sca(target: str, scanner: str = "auto") -> ScanResult:
    require_path(target)
    if scanner == "auto":
        scanner = detect_sca_scanner(target)
        logger.info("sca.scanner_detected", scanner=scanner, target=target)
    else:
        ensure_installed(scanner)
    if scanner == "npm":
        return npm_audit.run_npm_audit(target)
    return trivy.run_trivy_fs(target)


def run_iac(target: str, scanner: str = "auto", framework: str | None = None) -> ScanResult:
    require_path(target)
    if scanner == "auto":
        scanner = detect_iac_scanner(target)
        logger.info("iac.scanner_detected", scanner=scanner, target=target)
    else:
        ensure_installed(scanner)
    if scanner == "tfsec":
        return tfsec.run_tfsec(target)
    return checkov.run_checkov(target, framework)
