"""Reader for parenthesis-delimited STF scene description files."""

from stfreader.config import ReaderConfig
from stfreader.diagnostics import Diagnostic, DiagnosticKind
from stfreader.errors import (
    ConfigurationError,
    DiagnosticError,
    LexError,
    STFError,
    StructuralError,
    UnterminatedBlockError,
)
from stfreader.parser.dispatch import DispatchTable
from stfreader.parser.reader import STFReader
from stfreader.parser.units import Unit
from stfreader.world_sound import (
    SoundRegion,
    SoundSource,
    WorldSoundFile,
    WorldSoundResult,
    load_world_sound,
    loads_world_sound,
)

__all__ = [
    "ConfigurationError",
    "Diagnostic",
    "DiagnosticError",
    "DiagnosticKind",
    "DispatchTable",
    "LexError",
    "ReaderConfig",
    "STFError",
    "STFReader",
    "SoundRegion",
    "SoundSource",
    "StructuralError",
    "Unit",
    "UnterminatedBlockError",
    "WorldSoundFile",
    "WorldSoundResult",
    "load_world_sound",
    "loads_world_sound",
]
