from .loader import load_config
from .models import (
    BuildConfig,
    NbconvertConfig,
    NbPublishConfig,
    PathsConfig,
)

__all__ = [
    "BuildConfig",
    "NbconvertConfig",
    "NbPublishConfig",
    "PathsConfig",
    "load_config",
]
