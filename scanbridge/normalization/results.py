from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, ClassVar, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator
from pydantic.alias_generators import to_camel

from scanbridge.normalization.findings import DockerfileFinding, Finding, LintLevel, Severity

FindingT = TypeVar("FindingT", bound=Finding)

# Summary entries supplied by the tool itself; they cannot be derived from findings.
TOOL_COUNTS = ("passed", "skipped")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OperatingSystem(BaseModel):
    model_config = ConfigDict(frozen=True)

    family: str
    name: str


class ScanResult(BaseModel, Generic[FindingT]):
    """One tool run over one target.

    ``summary`` is computed from ``findings`` on every access, so the totals
    cannot drift from the list they describe.
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    levels: ClassVar[tuple[str, ...]] = tuple(level.value for level in Severity)

    tool: str
    version: str = "unknown"
    scan_path: str
    scan_date: datetime = Field(default_factory=utcnow)
    config: Optional[str] = None
    framework: Optional[str] = None
    os: Optional[OperatingSystem] = None
    findings: List[FindingT] = Field(default_factory=list)
    passed: Optional[int] = Field(default=None, exclude=True)
    skipped: Optional[int] = Field(default=None, exclude=True)

    @model_validator(mode="before")
    @classmethod
    def _lift_tool_counts(cls, data: Any) -> Any:
        if not isinstance(data, dict) or not isinstance(data.get("summary"), dict):
            return data
        summary = data["summary"]
        data = {key: value for key, value in data.items() if key != "summary"}
        for key in TOOL_COUNTS:
            if summary.get(key) is not None and key not in data:
                data[key] = summary[key]
        return data

    @computed_field
    @property
    def summary(self) -> Dict[str, int]:
        counts = {"total": len(self.findings)}
        for level in self.levels:
            counts[level] = sum(1 for f in self.findings if f.severity.value == level)
        for key in TOOL_COUNTS:
            value = getattr(self, key)
            if value is not None:
                counts[key] = value
        return counts

    @property
    def total(self) -> int:
        return len(self.findings)

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class LintResult(ScanResult[DockerfileFinding]):
    """Dockerfile lint results, summarized on Hadolint's own four levels."""

    levels: ClassVar[tuple[str, ...]] = tuple(level.value for level in LintLevel)
