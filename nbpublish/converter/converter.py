"""Notebook converter wrapping `jupyter nbconvert` as an external process."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import time
from pathlib import Path

from nbpublish.config.models import NbconvertConfig, PathsConfig
from nbpublish.converter.models import (
    ConversionError,
    ConversionJob,
    ConversionResult,
    Document,
    OutputFormat,
)

logger = logging.getLogger(__name__)


def list_documents(
    source_dir: str | Path, extension: str = ".ipynb", *, sort: bool = True
) -> list[Document]:
    """Return the notebooks in ``source_dir`` whose name ends with ``extension``.

    Only regular files directly inside ``source_dir`` are considered. With
    ``sort=False`` the order is whatever the filesystem listing yields.
    Raises FileNotFoundError if ``source_dir`` does not exist.
    """
    root = Path(source_dir)
    if not root.is_dir():
        raise FileNotFoundError(f"Source directory not found: {root}")

    names = os.listdir(root)
    if sort:
        names = sorted(names)

    docs = []
    for name in names:
        path = root / name
        if name.endswith(extension) and path.is_file():
            docs.append(Document(name=name, path=path))
    return docs


def ensure_output_dirs(paths: PathsConfig) -> list[Path]:
    """Create the script and markdown roots if missing. Returns both roots."""
    roots = []
    for label, directory in (
        ("markdown", paths.markdown_dir),
        ("script", paths.script_dir),
    ):
        root = Path(directory)
        if not root.is_dir():
            logger.info('creating %s output directory at "%s"', label, root)
            root.mkdir(parents=True, exist_ok=True)
        roots.append(root)
    return roots


def clean_output_dirs(paths: PathsConfig) -> list[Path]:
    """Empty the script and markdown roots, creating them if missing.

    Refuses to touch a root that holds the source directory.
    """
    source = Path(paths.source_dir).resolve()
    roots = ensure_output_dirs(paths)
    for root in roots:
        resolved = root.resolve()
        if source == resolved or source.is_relative_to(resolved):
            raise ValueError(
                f"Output directory {root} contains the source directory {paths.source_dir}"
            )
    for root in roots:
        for child in root.iterdir():
            if child.is_dir() and not child.is_symlink():
                shutil.rmtree(child)
            else:
                child.unlink()
        logger.debug("cleared %s", root)
    return roots


class NotebookConverter:
    """Runs the external converter once per (document, format).

    Each call spawns one process and waits for it; nothing runs concurrently.
    """

    def __init__(self, config: NbconvertConfig) -> None:
        self._config = config

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def build_command(
        self, document: Document, format: OutputFormat, output_dir: str | Path
    ) -> list[str]:
        """Return the argv for converting ``document`` to ``format``."""
        cmd = [
            *self._config.command,
            f"--ExecutePreprocessor.kernel_name={self._config.kernel_name}",
            f"--to={format.value}",
            f"--output-dir={output_dir}",
        ]
        if format is OutputFormat.MARKDOWN:
            if self._config.template:
                cmd.append(f"--template={self._config.template}")
            if self._config.cell_timeout is not None:
                cmd.append(f"--ExecutePreprocessor.timeout={self._config.cell_timeout}")
            cmd.append("--execute")
        cmd.append(str(document.path))
        return cmd

    def job(
        self, document: Document, format: OutputFormat, output_dir: str | Path
    ) -> ConversionJob:
        return ConversionJob(
            document=document,
            format=format,
            output_dir=Path(output_dir),
            command=self.build_command(document, format, output_dir),
        )

    def to_script(self, document: Document, output_dir: str | Path) -> ConversionResult:
        """Convert a notebook to a runnable source script."""
        return self.run(self.job(document, OutputFormat.SCRIPT, output_dir))

    def to_markdown(self, document: Document, output_dir: str | Path) -> ConversionResult:
        """Execute a notebook and render it, outputs included, as markdown."""
        return self.run(self.job(document, OutputFormat.MARKDOWN, output_dir))

    def run(self, job: ConversionJob) -> ConversionResult:
        """Run one conversion job. Raises ConversionError on any failure."""
        doc = job.document
        logger.info("converting %s to %s", doc.name, job.format.value)
        logger.debug("running %s", " ".join(job.command))
        _clear_artifacts(job)

        start = time.monotonic()
        try:
            proc = subprocess.run(
                job.command,
                capture_output=True,
                text=True,
                timeout=self._config.process_timeout,
            )
        except FileNotFoundError as e:
            raise ConversionError(
                doc, job.format, job.command, None,
                reason=f"converter not found: {job.command[0]}",
            ) from e
        except subprocess.TimeoutExpired as e:
            raise ConversionError(
                doc, job.format, job.command, None,
                stderr=_decode(e.stderr),
                reason=f"timed out after {self._config.process_timeout}s",
            ) from e
        duration = time.monotonic() - start

        if proc.returncode != 0:
            logger.error(
                "%s conversion of %s exited %d",
                job.format.value, doc.name, proc.returncode,
            )
            raise ConversionError(
                doc, job.format, job.command, proc.returncode, stderr=proc.stderr
            )

        artifact = _find_artifact(job)
        if artifact is None:
            raise ConversionError(
                doc, job.format, job.command, proc.returncode,
                stderr=proc.stderr,
                reason=f"no artifact for {doc.stem} in {job.output_dir}",
            )

        logger.info("wrote %s (%.1fs)", artifact, duration)
        return ConversionResult(
            job=job,
            artifact=artifact,
            duration=duration,
            stdout=proc.stdout,
            stderr=proc.stderr,
        )


def _clear_artifacts(job: ConversionJob) -> None:
    """Remove what an earlier run wrote for this document and format."""
    out = job.output_dir
    if not out.is_dir():
        return
    stem = job.document.stem
    if job.format is OutputFormat.MARKDOWN:
        stale = [out / f"{stem}.md", out / f"{stem}_files"]
    else:
        stale = [p for p in out.iterdir() if p.is_file() and p.stem == stem]
    for path in stale:
        if path.is_dir():
            shutil.rmtree(path)
        elif path.exists():
            logger.debug("removing stale artifact %s", path)
            path.unlink()


def _find_artifact(job: ConversionJob) -> Path | None:
    """Locate the file the converter wrote for ``job``.

    Markdown is always ``<stem>.md``; the script extension depends on the
    kernel language, so the newest file with a matching stem wins.
    """
    stem = job.document.stem
    if job.format is OutputFormat.MARKDOWN:
        md = job.output_dir / f"{stem}.md"
        return md if md.is_file() else None

    if not job.output_dir.is_dir():
        return None
    candidates = [
        p for p in job.output_dir.iterdir()
        if p.is_file() and p.stem == stem
    ]
    if not candidates:
        return None
    return max(candidates, key=lambda p: p.stat().st_mtime)


def _decode(data: bytes | str | None) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode(errors="replace")
    return data
