"""
Code execution models for AceMock
"""

from enum import Enum

from pydantic import Field

from acemock.models.feedback import CamelModel


class RunResult(CamelModel):
    """Captured output of one remote run."""

    stdout: str = ""
    stderr: str = ""
    exit_code: int | None = None
    signal: str | None = None


class SandboxResult(CamelModel):
    """Result posted back by the browser sandbox runner."""

    logs: list[str] = Field(default_factory=list)
    result: str = ""
    error: str = ""


class ExecutionStatus(str, Enum):
    """How a run request ended.

    ERROR and TIMEOUT mean the execution backend failed; a candidate
    program that exits non-zero is still OK.
    """

    OK = "ok"
    UNSUPPORTED = "unsupported"
    ERROR = "error"
    TIMEOUT = "timeout"


class ExecutionBackend(str, Enum):
    """Where the code ran."""

    REMOTE = "remote"
    SANDBOX = "sandbox"
    NONE = "none"


class ExecutionOutcome(CamelModel):
    """Program-output panel contents for a run request."""

    status: ExecutionStatus
    backend: ExecutionBackend = ExecutionBackend.NONE
    runtime: str | None = None
    version: str | None = None
    result: RunResult | None = None
    sandbox: SandboxResult | None = None
    logs: list[str] = Field(default_factory=list)
    message: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == ExecutionStatus.OK
