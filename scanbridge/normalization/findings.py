from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Severity(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"


class LintLevel(str, Enum):
    """Hadolint's own scale. Not interchangeable with ``Severity``."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    STYLE = "style"


class Finding(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    id: str
    severity: Severity

    def details(self) -> List[tuple[str, str]]:
        """Label/value pairs used by the text reporter."""
        return []


class PackageFinding(Finding):
    package: str
    installed_version: str = ""
    fixed_version: Optional[str] = None
    title: str
    description: Optional[str] = None
    cvss: Optional[float] = None
    cwes: List[str] = Field(default_factory=list)
    references: List[str] = Field(default_factory=list)
    layer: Optional[str] = None

    def details(self) -> List[tuple[str, str]]:
        lines = [("Package", f"{self.package}@{self.installed_version}")]
        if self.fixed_version:
            lines.append(("Fixed in", self.fixed_version))
        lines.append(("Title", self.title))
        if self.cvss:
            lines.append(("CVSS", str(self.cvss)))
        if self.cwes:
            lines.append(("CWEs", ", ".join(self.cwes)))
        if self.layer:
            lines.append(("Layer", self.layer))
        return lines


class CodeFinding(Finding):
    message: str
    file: str
    line: Optional[int] = None
    end_line: Optional[int] = None
    code: str = ""
    cwes: List[str] = Field(default_factory=list)
    owasp: List[str] = Field(default_factory=list)
    category: str = "security"
    fix: Optional[str] = None
    references: List[str] = Field(default_factory=list)

    def details(self) -> List[tuple[str, str]]:
        lines = [("File", f"{self.file}:{self.line}"), ("Message", self.message)]
        if self.cwes:
            lines.append(("CWEs", ", ".join(self.cwes)))
        if self.owasp:
            lines.append(("OWASP", ", ".join(self.owasp)))
        if self.fix:
            lines.append(("Fix", self.fix))
        if self.code.strip():
            lines.append(("Code", self.code.strip()))
        return lines


class IacFinding(Finding):
    message: str
    resource: str = ""
    file: str = ""
    line: Optional[int] = None
    end_line: Optional[int] = None
    resolution: Optional[str] = None
    impact: Optional[str] = None
    references: List[str] = Field(default_factory=list)

    def details(self) -> List[tuple[str, str]]:
        lines = [
            ("Resource", self.resource),
            ("File", f"{self.file}:{self.line}"),
            ("Issue", self.message),
        ]
        if self.resolution:
            lines.append(("Resolution", self.resolution))
        return lines


class DockerfileFinding(Finding):
    severity: LintLevel
    line: Optional[int] = None
    column: Optional[int] = None
    message: str
    file: str = ""

    def details(self) -> List[tuple[str, str]]:
        return [("Line", str(self.line)), ("Message", self.message)]


class SecretFinding(Finding):
    description: str
    file: str
    line: Optional[int] = None
    secret: str
    commit: str
    author: str
    date: str
    cwes: List[str] = Field(default_factory=list)

    def details(self) -> List[tuple[str, str]]:
        return [
            ("Description", self.description),
            ("File", f"{self.file}:{self.line}"),
            ("Secret", self.secret),
            ("Commit", self.commit),
            ("CWEs", ", ".join(self.cwes)),
        ]


class AccessibilityFinding(Finding):
    help: str
    description: str = ""
    help_url: Optional[str] = None
    url: str = ""
    tags: List[str] = Field(default_factory=list)
    targets: List[str] = Field(default_factory=list)

    def details(self) -> List[tuple[str, str]]:
        lines = [("Page", self.url), ("Issue", self.help)]
        if self.targets:
            lines.append(("Elements", ", ".join(self.targets[:5])))
        if self.help_url:
            lines.append(("Reference", self.help_url))
        return lines


class WebResourceFinding(Finding):
    file: str
    check: str
    message: str
    fix: str = ""
    source: str = ""
    line: Optional[int] = None

    def details(self) -> List[tuple[str, str]]:
        lines = [("File", self.file), ("Issue", self.message)]
        if self.fix:
            lines.append(("Fix", self.fix))
        return lines
