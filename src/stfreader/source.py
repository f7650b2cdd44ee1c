import codecs
from pathlib import Path

from stfreader.errors import LexError

_UTF16_BOMS = (codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)


def read_source(path: str | Path, encoding: str | None = None) -> str:
    """Read an STF file as text.

    Files written by the simulator tools are UTF-16 with a byte order mark;
    hand-edited ones are usually UTF-8. Without an explicit ``encoding`` the
    BOM decides. Undecodable bytes raise ``LexError``.
    """
    with Path(path).open("rb") as handle:
        data = handle.read()

    if encoding is None:
        encoding = "utf-16" if data.startswith(_UTF16_BOMS) else "utf-8-sig"
    try:
        return data.decode(encoding)
    except UnicodeDecodeError as exc:
        raise LexError(
            f"Cannot decode file as {encoding}: {exc.reason} at byte {exc.start}",
            path=str(path),
            cause=exc,
        ) from exc
