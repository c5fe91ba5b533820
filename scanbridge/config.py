from __future__ import annotations

import os
from functools import lru_cache
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


class ToolSettings(BaseModel):
    timeout_seconds: int | None = None
    env: dict[str, str] = Field(default_factory=dict)


class Settings(BaseSettings):
    app_name: str = "scanbridge"
    npm_path: str = Field(default=os.environ.get("NPM_PATH", "npm"))
    trivy_path: str = Field(default=os.environ.get("TRIVY_PATH", "trivy"))
    semgrep_path: str = Field(default=os.environ.get("SEMGREP_PATH", "semgrep"))
    tfsec_path: str = Field(default=os.environ.get("TFSEC_PATH", "tfsec"))
    checkov_path: str = Field(default=os.environ.get("CHECKOV_PATH", "checkov"))
    hadolint_path: str = Field(default=os.environ.get("HADOLINT_PATH", "hadolint"))
    gitleaks_path: str = Field(default=os.environ.get("GITLEAKS_PATH", "gitleaks"))
    axe_path: str = Field(default=os.environ.get("AXE_PATH", "axe"))
    web_timeout_ms: int = Field(
        default=10000,
        description="Per-request timeout for web resource fetches, in milliseconds",
    )
    user_agent: str = "scanbridge-web-resource-checker/0.3"
    log_level: str = Field(default=os.environ.get("SCANBRIDGE_LOG_LEVEL", "WARNING"))
    tool_settings: dict[str, ToolSettings] = Field(
        default_factory=lambda: {
            "default": ToolSettings(),
            "trivy": ToolSettings(env={"TRIVY_NO_PROGRESS": "true"}),
            "semgrep": ToolSettings(env={"SEMGREP_SEND_METRICS": "off"}),
        }
    )

    def binary_for(self, tool: str) -> str:
        return getattr(self, f"{tool}_path")

    def get_tool_config(self, tool: str) -> ToolSettings:
        base = self.tool_settings.get("default", ToolSettings())
        specific = self.tool_settings.get(tool)
        if specific:
            merged = {**base.model_dump(), **specific.model_dump(exclude_none=True)}
            merged["env"] = {**base.env, **specific.env}
            return ToolSettings(**merged)
        return base

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    return Settings()
