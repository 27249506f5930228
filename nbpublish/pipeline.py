"""BuildPipeline — converts every notebook in the source directory, then publishes."""

from __future__ import annotations

import logging
import time
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from nbpublish.config.models import NbPublishConfig
from nbpublish.converter import (
    ConversionError,
    ConversionJob,
    ConversionResult,
    Document,
    NotebookConverter,
    OutputFormat,
    clean_output_dirs,
    ensure_output_dirs,
    list_documents,
)
from nbpublish.output import publish_tree

logger = logging.getLogger(__name__)


class BuildState(str, Enum):
    DONE = "done"
    FAILED = "failed"


class DocumentResult(BaseModel):
    """Per-document outcome: both artifacts, or the error that stopped it."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    document: Document
    script: ConversionResult | None = None
    markdown: ConversionResult | None = None
    error: ConversionError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.script is not None and self.markdown is not None


class BuildReport(BaseModel):
    documents: list[DocumentResult] = Field(default_factory=list)
    published: Path | None = None
    state: BuildState = BuildState.DONE
    duration: float = 0.0

    @property
    def succeeded(self) -> list[DocumentResult]:
        return [r for r in self.documents if r.ok]

    @property
    def failed(self) -> list[DocumentResult]:
        return [r for r in self.documents if not r.ok]


class BuildPipeline:
    """Sequential notebook build.

    For each document the script conversion runs before the markdown one.
    With ``on_error="halt"`` the first failure ends the run and nothing is
    published; with ``"continue"`` the failure is recorded and the next
    document is processed.
    """

    def __init__(
        self,
        config: NbPublishConfig,
        converter: NotebookConverter | None = None,
    ) -> None:
        self.config = config
        self.converter = converter or NotebookConverter(config.nbconvert)

    # -- Public API ----------------------------------------------------------

    def documents(self) -> list[Document]:
        build = self.config.build
        return list_documents(
            self.config.paths.source_dir,
            build.document_extension,
            sort=build.sort_documents,
        )

    def plan(self) -> list[ConversionJob]:
        """Jobs a build would run, in order, without running them."""
        paths = self.config.paths
        jobs = []
        for doc in self.documents():
            jobs.append(self.converter.job(doc, OutputFormat.SCRIPT, paths.script_dir))
            jobs.append(self.converter.job(doc, OutputFormat.MARKDOWN, paths.markdown_dir))
        return jobs

    def convert_document(self, document: Document) -> DocumentResult:
        """Convert one document to script, then to executed markdown."""
        paths = self.config.paths
        result = DocumentResult(document=document)
        try:
            result.script = self.converter.to_script(document, paths.script_dir)
            result.markdown = self.converter.to_markdown(document, paths.markdown_dir)
        except ConversionError as e:
            result.error = e
        return result

    def run(self) -> BuildReport:
        start = time.monotonic()
        build = self.config.build
        report = BuildReport()

        docs = self.documents()
        if build.clean:
            clean_output_dirs(self.config.paths)
        else:
            ensure_output_dirs(self.config.paths)
        logger.info(
            "building %d notebook(s) from %s", len(docs), self.config.paths.source_dir
        )

        for doc in docs:
            result = self.convert_document(doc)
            report.documents.append(result)
            if result.error is None:
                continue
            logger.error("%s", result.error)
            report.state = BuildState.FAILED
            if build.on_error == "halt":
                logger.error("halting build at %s", doc.name)
                break

        if self._should_publish(report):
            report.published = publish_tree(
                self.config.paths.markdown_dir, self.config.paths.publish_dir
            )

        report.duration = time.monotonic() - start
        logger.info(
            "build %s: %d ok, %d failed (%.1fs)",
            report.state.value,
            len(report.succeeded),
            len(report.failed),
            report.duration,
        )
        return report

    def publish(self) -> Path:
        """Publish the existing markdown tree without converting anything."""
        return publish_tree(self.config.paths.markdown_dir, self.config.paths.publish_dir)

    # -- Internal ------------------------------------------------------------

    def _should_publish(self, report: BuildReport) -> bool:
        build = self.config.build
        if not build.publish:
            return False
        if report.state is BuildState.DONE:
            return True
        return build.on_error == "continue" and build.publish_on_failure
