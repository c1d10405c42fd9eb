"""Convert imported 3D scenes into engine-native mesh, animation and material files."""

from .config import ConversionOptions
from .errors import (
    ArtifactWriteError,
    CodecError,
    ConversionError,
    SceneLoadError,
    UnresolvedNameError,
)
from .pipeline import ConversionResult, ConversionWorker, Milestone, ProgressEvent, run_conversion

__version__ = "0.1.0"

__all__ = [
    "ArtifactWriteError",
    "CodecError",
    "ConversionError",
    "ConversionOptions",
    "ConversionResult",
    "ConversionWorker",
    "Milestone",
    "ProgressEvent",
    "SceneLoadError",
    "UnresolvedNameError",
    "run_conversion",
]
