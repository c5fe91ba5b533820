from __future__ import annotations


class ScanBridgeError(Exception):
    """Operational failure: the scan itself could not run.

    Findings are never reported through this hierarchy.
    """

    exit_code = 2


class ToolNotInstalledError(ScanBridgeError):
    def __init__(self, tool: str, guidance: str | None = None):
        self.tool = tool
        self.guidance = guidance
        message = f"{tool} is not installed."
        if guidance:
            message = f"{message} Install with: {guidance}"
        super().__init__(message)


class ToolOutputParseError(ScanBridgeError):
    def __init__(self, tool: str, reason: str, stderr: str | None = None):
        self.tool = tool
        self.reason = reason
        self.stderr = stderr
        message = f"Failed to parse {tool} output: {reason}"
        if stderr:
            message = f"{message} ({_first_line(stderr)})"
        super().__init__(message)


class ToolExecutionError(ScanBridgeError):
    def __init__(self, tool: str, return_code: int | None, stderr: str | None = None):
        self.tool = tool
        self.return_code = return_code
        self.stderr = stderr
        if return_code is None:
            message = f"{tool} did not complete"
        else:
            message = f"{tool} exited with code {return_code}"
        if stderr:
            message = f"{message}: {_first_line(stderr)}"
        super().__init__(message)


class TargetNotFoundError(ScanBridgeError):
    def __init__(self, target: str, reason: str | None = None):
        self.target = target
        message = f"Target not found: {target}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


def _first_line(text: str) -> str:
    for line in text.splitlines():
        if line.strip():
            return line.strip()
    return ""
