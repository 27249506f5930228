"""Pydantic models for the notebook conversion subsystem."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict


class OutputFormat(str, Enum):
    SCRIPT = "script"
    MARKDOWN = "markdown"


class ConversionError(Exception):
    """Raised when the external converter fails for one document."""

    def __init__(
        self,
        document: Document,
        format: OutputFormat,
        command: list[str],
        returncode: int | None,
        stderr: str = "",
        reason: str | None = None,
    ) -> None:
        self.document = document
        self.format = format
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        if reason is None:
            reason = f"exited with status {returncode}"
        msg = f"{format.value} conversion of {document.name} failed: {reason}"
        if stderr:
            msg = f"{msg}\n{stderr.rstrip()}"
        super().__init__(msg)


class Document(BaseModel):
    """A notebook file in the source directory."""

    model_config = ConfigDict(frozen=True)

    name: str
    path: Path

    @property
    def stem(self) -> str:
        return Path(self.name).stem


class ConversionJob(BaseModel):
    """One external converter invocation: a document rendered to one format."""

    model_config = ConfigDict(frozen=True)

    document: Document
    format: OutputFormat
    output_dir: Path
    command: list[str]


class ConversionResult(BaseModel):
    """Outcome of a successful conversion job."""

    job: ConversionJob
    artifact: Path
    duration: float = 0.0
    stdout: str = ""
    stderr: str = ""
