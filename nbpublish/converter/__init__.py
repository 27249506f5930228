"""Notebook conversion subsystem — drives the external nbconvert tool."""

from nbpublish.converter.converter import (
    NotebookConverter,
    clean_output_dirs,
    ensure_output_dirs,
    list_documents,
)
from nbpublish.converter.models import (
    ConversionError,
    ConversionJob,
    ConversionResult,
    Document,
    OutputFormat,
)

__all__ = [
    "ConversionError",
    "ConversionJob",
    "ConversionResult",
    "Document",
    "NotebookConverter",
    "OutputFormat",
    "clean_output_dirs",
    "ensure_output_dirs",
    "list_documents",
]
