from __future__ import annotations

from enum import Enum
from typing import Callable, List, Optional

import typer

from scanbridge.adapters import axe, gitleaks, hadolint, semgrep, trivy
from scanbridge.adapters.base import TOOLS, detect_tool_version, is_installed
from scanbridge.config import get_settings
from scanbridge.errors import ScanBridgeError
from scanbridge.log import configure_logging
from scanbridge.normalization.results import ScanResult
from scanbridge.services import audit as audit_service
from scanbridge.services import reporting, scanners
from scanbridge.web import checker

app = typer.Typer(help="Run security scanners and report their findings in one shape", no_args_is_help=True)
container_app = typer.Typer(help="Dockerfile linting and container image scanning", no_args_is_help=True)
app.add_typer(container_app, name="container")


class ScaScanner(str, Enum):
    auto = "auto"
    npm = "npm"
    trivy = "trivy"


class IacScanner(str, Enum):
    auto = "auto"
    tfsec = "tfsec"
    checkov = "checkov"


JSON_OPTION = typer.Option(False, "--json", help="Print the unified JSON result instead of text")
CHECK_OPTION = typer.Option(False, "--check", help="Report whether the backing tools are installed and exit")
VERBOSE_OPTION = typer.Option(False, "--verbose", "-v", help="Log tool invocations to stderr")


def _fail(message: str) -> None:
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(code=reporting.EXIT_ERROR)


def _check(tools: List[str], any_of: bool = False) -> None:
    """Probe each tool; with ``any_of`` one installed candidate is enough."""
    installed = []
    for tool in tools:
        if is_installed(tool):
            installed.append(tool)
            typer.echo(f"{tool} is installed (version: {detect_tool_version(tool)})")
        else:
            typer.echo(f"{tool} is not installed. Install with: {TOOLS[tool].install}", err=True)
    ok = bool(installed) if any_of else len(installed) == len(tools)
    raise typer.Exit(code=reporting.EXIT_CLEAN if ok else reporting.EXIT_ERROR)


def _start(
    verbose: bool, check: bool, tools: List[str], target: Optional[str], any_of: bool = False
) -> str:
    configure_logging(verbose=verbose, level=get_settings().log_level)
    if check:
        _check(tools, any_of)
    if not target:
        _fail("No target specified.")
    return target


def _report(run: Callable[[], ScanResult], as_json: bool) -> None:
    try:
        result = run()
    except ScanBridgeError as exc:
        _fail(str(exc))
    typer.echo(reporting.render_json(result) if as_json else reporting.render_text(result))
    raise typer.Exit(code=reporting.exit_code(result))


@app.command()
def sca(
    target: Optional[str] = typer.Argument(None, help="Project directory or package-lock.json"),
    scanner: ScaScanner = typer.Option(ScaScanner.auto, "--scanner", "-s", help="Dependency scanner to use"),
    as_json: bool = JSON_OPTION,
    check: bool = CHECK_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """Scan dependencies for known vulnerabilities (npm audit or Trivy)."""
    tools = list(scanners.SCA_SCANNERS) if scanner == ScaScanner.auto else [scanner.value]
    target = _start(verbose, check, tools, target, any_of=scanner == ScaScanner.auto)
    _report(lambda: scanners.run_sca(target, scanner.value), as_json)


@app.command()
def sast(
    target: Optional[str] = typer.Argument(None, help="Directory or file to analyze"),
    config: str = typer.Option("auto", "--config", "-c", help="Rule pack preset or Semgrep config"),
    list_configs: bool = typer.Option(False, "--list-configs", help="List the named rule pack presets"),
    as_json: bool = JSON_OPTION,
    check: bool = CHECK_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """Static analysis with Semgrep."""
    if list_configs:
        for name, value in semgrep.CONFIGS.items():
            typer.echo(f"{name:<16} {value}")
        raise typer.Exit(code=reporting.EXIT_CLEAN)
    target = _start(verbose, check, ["semgrep"], target)
    _report(lambda: semgrep.run_semgrep(target, config), as_json)


@app.command()
def iac(
    target: Optional[str] = typer.Argument(None, help="Infrastructure-as-code directory"),
    scanner: IacScanner = typer.Option(IacScanner.auto, "--scanner", "-s", help="IaC scanner to use"),
    framework: Optional[str] = typer.Option(None, "--framework", "-f", help="Checkov framework filter"),
    as_json: bool = JSON_OPTION,
    check: bool = CHECK_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """Scan Terraform, CloudFormation and Kubernetes files (tfsec or Checkov)."""
    tools = list(scanners.IAC_SCANNERS) if scanner == IacScanner.auto else [scanner.value]
    target = _start(verbose, check, tools, target, any_of=scanner == IacScanner.auto)
    _report(lambda: scanners.run_iac(target, scanner.value, framework), as_json)


@container_app.command("lint")
def container_lint(
    dockerfile: Optional[str] = typer.Argument(None, help="Path to a Dockerfile"),
    as_json: bool = JSON_OPTION,
    check: bool = CHECK_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """Lint a Dockerfile with Hadolint."""
    dockerfile = _start(verbose, check, ["hadolint"], dockerfile)
    _report(lambda: hadolint.run_hadolint(dockerfile), as_json)


@container_app.command("image")
def container_image(
    image: Optional[str] = typer.Argument(None, help="Image reference, e.g. nginx:1.25"),
    as_json: bool = JSON_OPTION,
    check: bool = CHECK_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """Scan a container image for vulnerable packages with Trivy."""
    image = _start(verbose, check, ["trivy"], image)
    _report(lambda: trivy.run_trivy_image(image), as_json)


@app.command()
def secrets(
    target: Optional[str] = typer.Argument(None, help="Repository or directory to scan"),
    as_json: bool = JSON_OPTION,
    check: bool = CHECK_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """Detect committed secrets with Gitleaks. Secret values are always redacted."""
    target = _start(verbose, check, ["gitleaks"], target)
    _report(lambda: gitleaks.run_gitleaks(target), as_json)


@app.command()
def a11y(
    target: Optional[str] = typer.Argument(None, help="HTML file or URL"),
    as_json: bool = JSON_OPTION,
    check: bool = CHECK_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """Check a page against WCAG 2.1 AA with axe-core."""
    target = _start(verbose, check, ["axe"], target)
    _report(lambda: axe.run_axe(target), as_json)


@app.command("web-resources")
def web_resources(
    target: Optional[str] = typer.Argument(None, help="Site URL or local build directory"),
    only: Optional[str] = typer.Option(None, "--only", help="Comma-separated subset of robots,security,sitemap,llms"),
    timeout: Optional[int] = typer.Option(None, "--timeout", help="Per-request timeout in milliseconds"),
    as_json: bool = JSON_OPTION,
    check: bool = CHECK_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """Validate robots.txt, security.txt, sitemap.xml and llms.txt."""
    configure_logging(verbose=verbose, level=get_settings().log_level)
    if check:
        typer.echo("web-resources needs no external tools")
        raise typer.Exit(code=reporting.EXIT_CLEAN)
    if not target:
        _fail("No target specified.")
    try:
        keys = checker.parse_only(only)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--only")
    _report(lambda: checker.check_web_resources(target, keys, timeout), as_json)


@app.command()
def audit(
    target: Optional[str] = typer.Argument(None, help="Project directory"),
    tools: Optional[str] = typer.Option(
        None, "--tools", help=f"Comma-separated subset of {','.join(audit_service.DEFAULT_TOOLS)}"
    ),
    as_json: bool = JSON_OPTION,
    check: bool = CHECK_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """Run several scanners concurrently and print one cross-tool summary."""
    try:
        selected = audit_service.parse_tools(tools)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--tools")
    target = _start(verbose, check, selected, target)
    try:
        report = audit_service.run_audit(target, selected)
    except ScanBridgeError as exc:
        _fail(str(exc))
    if as_json:
        typer.echo(reporting.render_json_many(report.results, report.errors))
    else:
        typer.echo(reporting.render_text_many(report.results, report.errors))
    raise typer.Exit(code=report.exit_code)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
