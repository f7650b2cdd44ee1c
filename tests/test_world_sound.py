import logging
from concurrent.futures import ThreadPoolExecutor

import pytest

from stfreader.config import ReaderConfig
from stfreader.diagnostics import DiagnosticKind
from stfreader.errors import (
    DiagnosticError,
    LexError,
    StructuralError,
    UnterminatedBlockError,
)
from stfreader.parser.reader import STFReader
from stfreader.world_sound import (
    SoundRegion,
    SoundSource,
    WorldSoundFile,
    load_world_sound,
    loads_world_sound,
    parse_sound_region,
    parse_world_sound_file,
)

SAMPLE = """SIMISA@@@@@@@@@@JINX0w0t______

Tr_Worldsoundfile (
    Soundsource ( Position ( -120.5 12 344 ) Filename ( "church_bell.sms" ) )
    Soundsource ( Position ( 1 2 3 ) Filename ( horn.sms ) )
    Soundsource ( Filename ( "third.sms" ) Position ( 4 5 6 ) )
    Soundregion (
        Soundregiontracktype ( 2 )
        Soundregionroty ( 1.5 )
        TrItemId ( 0 17 )
        TrItemId ( 0 -1 )
        TrItemId ( 1 18 )
    )
    Soundregion ( TrItemId ( 7 42 ) )
)
"""


def _kinds(result) -> list[DiagnosticKind]:
    return [diagnostic.kind for diagnostic in result.diagnostics]


def _region(body: str) -> SoundRegion:
    return parse_sound_region(STFReader(f"( {body} )"))


def test_world_sound_file_reads_sources_and_regions():
    result = loads_world_sound(SAMPLE)

    assert result.has_root
    assert result.diagnostics == ()
    world_sound = result.world_sound
    assert world_sound.sources[0] == SoundSource(
        x=-120.5, y=12.0, z=344.0, file_name="church_bell.sms"
    )
    assert world_sound.regions == (
        SoundRegion(track_type=2, rot_y=1.5, track_node_ids=(17, 18)),
        SoundRegion(track_type=-1, rot_y=None, track_node_ids=(42,)),
    )


def test_sources_keep_file_order():
    sources = loads_world_sound(SAMPLE).world_sound.sources

    assert [source.file_name for source in sources] == [
        "church_bell.sms",
        "horn.sms",
        "third.sms",
    ]
    assert [(source.x, source.y, source.z) for source in sources[1:]] == [
        (1.0, 2.0, 3.0),
        (4.0, 5.0, 6.0),
    ]


class TestSoundRegion:
    def test_unassociated_track_item_is_dropped(self):
        assert _region("tritemid ( 7 -1 )").track_node_ids == ()

    def test_track_item_node_id_is_kept(self):
        assert _region("tritemid ( 7 42 )").track_node_ids == (42,)

    def test_track_type_defaults_to_minus_one(self):
        assert _region("soundregionroty ( 0.5 )").track_type == -1
        assert _region("soundregiontracktype ( 3 )").track_type == 3

    def test_rotation_is_unset_when_absent_or_malformed(self):
        reader = STFReader("( soundregionroty ( abc ) )")

        assert _region("").rot_y is None
        assert parse_sound_region(reader).rot_y is None
        assert [d.kind for d in reader.diagnostics] == [DiagnosticKind.TYPE_MISMATCH]

    def test_malformed_node_id_is_dropped(self):
        reader = STFReader("( tritemid ( 0 node ) )")

        assert parse_sound_region(reader).track_node_ids == ()
        assert [d.kind for d in reader.diagnostics] == [DiagnosticKind.TYPE_MISMATCH]


def test_unknown_block_does_not_stop_parsing():
    text = """
    tr_worldsoundfile (
        unknownblock ( x ( 1 ) y ( 2 ) )
        soundsource ( filename ( "a.wav" ) position ( 1 2 3 ) )
    )
    """

    result = loads_world_sound(text)

    assert result.world_sound.sources == (SoundSource(x=1.0, y=2.0, z=3.0, file_name="a.wav"),)
    assert _kinds(result) == [DiagnosticKind.UNKNOWN_TOKEN]
    assert result.diagnostics[0].line == 3


def test_position_with_unit_falls_back_to_zero():
    result = loads_world_sound("tr_worldsoundfile ( soundsource ( position ( 1m 2 3 ) ) )")

    assert result.world_sound.sources == (SoundSource(x=0.0, y=2.0, z=3.0, file_name=None),)
    assert _kinds(result) == [DiagnosticKind.UNEXPECTED_UNIT]


def test_missing_open_paren_is_fatal():
    reader = STFReader('( soundsource ( filename ( "ok.wav" ) ) soundsource filename ( "bad.wav" ) )')

    with pytest.raises(StructuralError, match="Expected '\\('"):
        parse_world_sound_file(reader)

    with pytest.raises(StructuralError):
        loads_world_sound('tr_worldsoundfile ( soundsource filename ( "a.wav" ) )')


def test_truncated_file_is_fatal():
    with pytest.raises(UnterminatedBlockError):
        loads_world_sound("tr_worldsoundfile ( soundsource ( filename ( a.wav )")


class TestMissingRoot:
    def test_empty_text(self):
        result = loads_world_sound("")

        assert result.world_sound == WorldSoundFile()
        assert not result.has_root
        assert _kinds(result) == [DiagnosticKind.MISSING_ROOT]

    def test_other_statements_only(self):
        result = loads_world_sound("tr_worldfile ( 1 )", path="a.ws")

        assert result.world_sound == WorldSoundFile(sources=(), regions=())
        assert _kinds(result) == [DiagnosticKind.UNKNOWN_TOKEN, DiagnosticKind.MISSING_ROOT]
        assert result.warnings[1].startswith("a.ws:1:")


def test_parsing_twice_gives_equal_results():
    assert loads_world_sound(SAMPLE) == loads_world_sound(SAMPLE)


def test_independent_readers_in_threads():
    with ThreadPoolExecutor(max_workers=4) as pool:
        results = list(pool.map(lambda _: loads_world_sound(SAMPLE).world_sound, range(8)))

    assert all(result == results[0] for result in results)


def test_records_are_frozen():
    world_sound = loads_world_sound(SAMPLE).world_sound

    with pytest.raises(AttributeError):
        world_sound.sources = ()  # type: ignore[misc]
    assert isinstance(world_sound.regions[0].track_node_ids, tuple)


class TestLoadFromFile:
    def test_utf16_file(self, tmp_path):
        path = tmp_path / "world.ws"
        path.write_text(SAMPLE, encoding="utf-16")

        result = load_world_sound(path)

        assert result.world_sound == loads_world_sound(SAMPLE).world_sound

    def test_diagnostics_carry_path(self, tmp_path):
        path = tmp_path / "odd.ws"
        path.write_text("tr_worldsoundfile ( mystery ( ) )\n", encoding="utf-8")

        result = load_world_sound(path)

        assert result.diagnostics[0].path == str(path)
        assert result.diagnostics[0].column == 21

    def test_strict_config(self, tmp_path):
        path = tmp_path / "odd.ws"
        path.write_text("tr_worldsoundfile ( mystery ( ) )\n", encoding="utf-8")

        with pytest.raises(DiagnosticError):
            load_world_sound(path, config=ReaderConfig(strict=True))


class TestLogging:
    def test_warnings_are_logged(self, caplog):
        caplog.set_level(logging.WARNING, logger="stfreader.world_sound")

        loads_world_sound("tr_worldsoundfile ( mystery ( ) )", path="w.ws")

        messages = [
            record.getMessage()
            for record in caplog.records
            if record.name == "stfreader.world_sound"
        ]
        assert messages == ["w.ws:1:21: Skipped unknown token 'mystery'"]

    def test_fatal_errors_are_logged(self, caplog):
        caplog.set_level(logging.ERROR, logger="stfreader.world_sound")

        with pytest.raises(StructuralError):
            loads_world_sound("tr_worldsoundfile soundsource", path="w.ws")

        assert any(
            record.levelno == logging.ERROR and "w.ws" in record.getMessage()
            for record in caplog.records
        )


def test_oversized_track_type_falls_back_to_default():
    result = loads_world_sound(
        "tr_worldsoundfile ( soundregion ( soundregiontracktype ( " + "1" * 5000 + " ) ) )"
    )

    assert result.world_sound.regions == (SoundRegion(),)
    assert _kinds(result) == [DiagnosticKind.TYPE_MISMATCH]


def test_trailing_garbage_after_root_is_ignored():
    result = loads_world_sound('tr_worldsoundfile ( ) ) "oops')

    assert result.has_root
    assert result.world_sound == WorldSoundFile()
    assert _kinds(result) == [DiagnosticKind.TRAILING_CONTENT]


def test_undecodable_file_raises_reader_error(tmp_path, caplog):
    caplog.set_level(logging.ERROR, logger="stfreader.world_sound")
    path = tmp_path / "legacy.ws"
    path.write_bytes(b'tr_worldsoundfile ( soundsource ( filename ( "caf\xe9.wav" ) ) )')

    with pytest.raises(LexError) as info:
        load_world_sound(path)

    assert info.value.path == str(path)
    assert isinstance(info.value.cause, UnicodeDecodeError)
    assert any(
        record.levelno == logging.ERROR and str(path) in record.getMessage()
        for record in caplog.records
    )


def test_undecodable_file_reads_with_explicit_encoding(tmp_path):
    path = tmp_path / "legacy.ws"
    path.write_bytes(b'tr_worldsoundfile ( soundsource ( filename ( "caf\xe9.wav" ) ) )')

    result = load_world_sound(path, config=ReaderConfig(encoding="latin-1"))

    assert result.world_sound.sources[0].file_name == "café.wav"
