"""World sound files: point sound sources and track-bound sound regions.

A world sound file looks like::

    SIMISA@@@@@@@@@@JINX0w0t______
    Tr_Worldsoundfile (
        Soundsource ( Position ( -120.5 12 344 ) Filename ( "church_bell.sms" ) )
        Soundregion (
            Soundregiontracktype ( 2 )
            Soundregionroty ( 1.57 )
            TrItemId ( 0 17 )
        )
    )
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from stfreader.config import ReaderConfig
from stfreader.diagnostics import Diagnostic, DiagnosticKind
from stfreader.errors import STFError
from stfreader.parser.dispatch import DispatchTable
from stfreader.parser.reader import STFReader
from stfreader.parser.units import Unit

logger = logging.getLogger(__name__)

ROOT_NAME = "tr_worldsoundfile"
NO_TRACK_TYPE = -1
NO_TRACK_NODE = -1


@dataclass(slots=True, frozen=True)
class SoundSource:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    file_name: str | None = None


@dataclass(slots=True, frozen=True)
class SoundRegion:
    track_type: int = NO_TRACK_TYPE
    # None when the file gives no rotation.
    rot_y: float | None = None
    track_node_ids: tuple[int, ...] = ()


@dataclass(slots=True, frozen=True)
class WorldSoundFile:
    sources: tuple[SoundSource, ...] = ()
    regions: tuple[SoundRegion, ...] = ()


@dataclass(slots=True, frozen=True)
class WorldSoundResult:
    world_sound: WorldSoundFile
    diagnostics: tuple[Diagnostic, ...] = ()
    has_root: bool = True

    @property
    def warnings(self) -> list[str]:
        return [str(diagnostic) for diagnostic in self.diagnostics]


def parse_world_sound_file(reader: STFReader) -> WorldSoundFile:
    sources: list[SoundSource] = []
    regions: list[SoundRegion] = []

    reader.match_exact("(")
    reader.parse_block(
        DispatchTable(
            {
                "soundsource": lambda: sources.append(parse_sound_source(reader)),
                "soundregion": lambda: regions.append(parse_sound_region(reader)),
            }
        )
    )
    return WorldSoundFile(sources=tuple(sources), regions=tuple(regions))


def parse_sound_source(reader: STFReader) -> SoundSource:
    file_name: str | None = None
    position = (0.0, 0.0, 0.0)

    def read_file_name() -> None:
        nonlocal file_name
        file_name = reader.read_string_block()

    def read_position() -> None:
        nonlocal position
        reader.match_exact("(")
        position = (
            reader.read_float(Unit.NONE, 0.0),
            reader.read_float(Unit.NONE, 0.0),
            reader.read_float(Unit.NONE, 0.0),
        )
        reader.skip_rest_of_block()

    reader.match_exact("(")
    reader.parse_block(
        DispatchTable(
            {
                "filename": read_file_name,
                "position": read_position,
            }
        )
    )
    x, y, z = position
    return SoundSource(x=x, y=y, z=z, file_name=file_name)


def parse_sound_region(reader: STFReader) -> SoundRegion:
    track_type = NO_TRACK_TYPE
    rot_y: float | None = None
    track_node_ids: list[int] = []

    def read_track_type() -> None:
        nonlocal track_type
        track_type = reader.read_int_block(NO_TRACK_TYPE)

    def read_rot_y() -> None:
        nonlocal rot_y
        rot_y = reader.read_float_block(Unit.NONE, None)

    def read_track_item() -> None:
        reader.match_exact("(")
        reader.read_int(0)  # item type, unused
        node_id = reader.read_int(NO_TRACK_NODE)
        if node_id != NO_TRACK_NODE:
            track_node_ids.append(node_id)
        reader.skip_rest_of_block()

    reader.match_exact("(")
    reader.parse_block(
        DispatchTable(
            {
                "soundregiontracktype": read_track_type,
                "soundregionroty": read_rot_y,
                "tritemid": read_track_item,
            }
        )
    )
    return SoundRegion(
        track_type=track_type,
        rot_y=rot_y,
        track_node_ids=tuple(track_node_ids),
    )


def loads_world_sound(
    text: str,
    *,
    path: str = "<string>",
    config: ReaderConfig | None = None,
) -> WorldSoundResult:
    """Parse world sound text.

    A missing ``Tr_Worldsoundfile`` statement is reported as a warning and
    gives an empty ``WorldSoundFile``. Fatal problems raise ``STFError``.
    """
    return _read_world_sound(STFReader(text, path=path, config=config))


def _read_world_sound(reader: STFReader) -> WorldSoundResult:
    found: list[WorldSoundFile] = []

    try:
        reader.parse_file(
            DispatchTable({ROOT_NAME: lambda: found.append(parse_world_sound_file(reader))})
        )
        if not found:
            reader.warn(DiagnosticKind.MISSING_ROOT, "Missing Tr_Worldsoundfile statement")
    except STFError as exc:
        logger.error("Failed to read world sound file %s: %s", reader.path, exc.message)
        raise

    for diagnostic in reader.diagnostics:
        logger.warning("%s", diagnostic)

    return WorldSoundResult(
        # The last statement wins if a file repeats the root.
        world_sound=found[-1] if found else WorldSoundFile(),
        diagnostics=tuple(reader.diagnostics),
        has_root=bool(found),
    )


def load_world_sound(path: str | Path, *, config: ReaderConfig | None = None) -> WorldSoundResult:
    """Read and parse a world sound file. The caller checks that it exists."""
    try:
        reader = STFReader.from_file(path, config=config)
    except STFError as exc:
        logger.error("Failed to read world sound file %s: %s", path, exc.message)
        raise
    return _read_world_sound(reader)
