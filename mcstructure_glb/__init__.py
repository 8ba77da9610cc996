"""Bedrock .mcstructure -> binary glTF conversion."""

from .assembler import AssemblyResult, assemble, lattice_position
from .cache import MaterialCache
from .config import Settings
from .convert import ConversionResult, convert_bytes, convert_file
from .errors import ConversionError, ExportError, FormatError, ResolutionWarning, WarningLog
from .resolver import ModelResolver

__all__ = [
    "AssemblyResult",
    "ConversionError",
    "ConversionResult",
    "ExportError",
    "FormatError",
    "MaterialCache",
    "ModelResolver",
    "ResolutionWarning",
    "Settings",
    "WarningLog",
    "assemble",
    "convert_bytes",
    "convert_file",
    "lattice_position",
]

__version__ = "1.0.0"
