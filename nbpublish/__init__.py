"""nbpublish - convert notebooks to scripts and executed markdown, then publish."""

from nbpublish.config import NbPublishConfig, load_config
from nbpublish.converter import NotebookConverter, list_documents
from nbpublish.output import publish_tree
from nbpublish.pipeline import BuildPipeline, BuildReport

__version__ = "0.1.0"

__all__ = [
    "BuildPipeline",
    "BuildReport",
    "NbPublishConfig",
    "NotebookConverter",
    "list_documents",
    "load_config",
    "publish_tree",
]
