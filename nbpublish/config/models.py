from pydantic import BaseModel, Field, field_validator
from typing import Literal


class PathsConfig(BaseModel):
    source_dir: str = "notebooks"
    markdown_dir: str = "markdown"
    script_dir: str = "scripts"
    publish_dir: str = "../documentation/src/examples"


class NbconvertConfig(BaseModel):
    command: list[str] = Field(default_factory=lambda: ["jupyter", "nbconvert"])
    kernel_name: str = "python3"
    template: str | None = None
    cell_timeout: int | None = Field(default=None, gt=0)
    process_timeout: float | None = Field(default=None, gt=0)

    @field_validator("command")
    @classmethod
    def _command_not_empty(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("nbconvert command must not be empty")
        return v


class BuildConfig(BaseModel):
    document_extension: str = ".ipynb"
    sort_documents: bool = True
    clean: bool = True
    on_error: Literal["halt", "continue"] = "halt"
    publish: bool = True
    publish_on_failure: bool = False

    @field_validator("document_extension")
    @classmethod
    def _extension_has_dot(cls, v: str) -> str:
        if not v:
            raise ValueError("document_extension must not be empty")
        return v if v.startswith(".") else f".{v}"


class NbPublishConfig(BaseModel):
    paths: PathsConfig = Field(default_factory=PathsConfig)
    nbconvert: NbconvertConfig = Field(default_factory=NbconvertConfig)
    build: BuildConfig = Field(default_factory=BuildConfig)
    log_level: Literal["debug", "info", "warn", "error"] = "info"
    log_format: Literal["text", "json"] = "text"
