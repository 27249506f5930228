"""Shared test fixtures for nbpublish."""

import json
import logging
import sys
from pathlib import Path

import pytest

from nbpublish.config.models import (
    BuildConfig,
    NbconvertConfig,
    NbPublishConfig,
    PathsConfig,
)

FAKE_NBCONVERT = Path(__file__).parent / "fake_nbconvert.py"


def write_notebook(path: Path, *cells: tuple[str, str]) -> Path:
    """Write a minimal nbformat-4 notebook. Cells are (cell_type, source) pairs."""
    nb_cells = []
    for cell_type, source in cells:
        cell = {"cell_type": cell_type, "metadata": {}, "source": [source]}
        if cell_type == "code":
            cell["execution_count"] = None
            cell["outputs"] = []
        nb_cells.append(cell)
    nb = {
        "cells": nb_cells,
        "metadata": {"kernelspec": {"name": "python3", "language": "python"}},
        "nbformat": 4,
        "nbformat_minor": 5,
    }
    path.write_text(json.dumps(nb))
    return path


@pytest.fixture
def project(tmp_path):
    """A project root with an empty notebooks/ dir and an existing publish parent."""
    (tmp_path / "notebooks").mkdir()
    (tmp_path / "site").mkdir()
    return tmp_path


@pytest.fixture
def make_config(project):
    def _make(**build_kwargs) -> NbPublishConfig:
        return NbPublishConfig(
            paths=PathsConfig(
                source_dir=str(project / "notebooks"),
                markdown_dir=str(project / "markdown"),
                script_dir=str(project / "scripts"),
                publish_dir=str(project / "site" / "examples"),
            ),
            nbconvert=NbconvertConfig(
                command=[sys.executable, str(FAKE_NBCONVERT)],
                kernel_name="python3",
            ),
            build=BuildConfig(**build_kwargs),
        )

    return _make


@pytest.fixture
def sample_config(make_config):
    return make_config()


@pytest.fixture
def notebooks(project):
    """Two valid notebooks plus a non-notebook file."""
    src = project / "notebooks"
    write_notebook(
        src / "particle.ipynb",
        ("markdown", "# Particle in a box"),
        ("code", "x = 1 + 1\nprint(x)"),
    )
    write_notebook(
        src / "spin.ipynb",
        ("markdown", "# Spin chain"),
        ("code", "print('spin')"),
    )
    (src / "readme.txt").write_text("not a notebook")
    return src


@pytest.fixture(autouse=True)
def _no_config_env(monkeypatch):
    monkeypatch.delenv("NBPUBLISH_CONFIG", raising=False)


@pytest.fixture(autouse=True)
def _reset_nbpublish_logger():
    yield
    logger = logging.getLogger("nbpublish")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
