from typing import BinaryIO
from pathlib import Path
import bencodepy
from tinytorrent.common.errors import DecodeError
from tinytorrent.torrent.metadata import (
    TEXT_ENCODING,
    TEXT_ERRORS,
    BencodeInfo,
    BencodeTorrent,
    TorrentFile,
)


def _field(d: dict, key: bytes, kind: type, default):
    # absent keys fall back to their zero value, present keys must have the right type
    if key not in d:
        return default
    value = d[key]
    if kind is int and isinstance(value, bool):
        raise DecodeError(f"field {key.decode()!r} must be an integer")
    if not isinstance(value, kind):
        raise DecodeError(
            f"field {key.decode()!r} has type {type(value).__name__}, expected {kind.__name__}"
        )
    return value


def _text(d: dict, key: bytes) -> str:
    # non UTF-8 bytes survive as surrogates so the raw value can be recovered
    return _field(d, key, bytes, b"").decode(TEXT_ENCODING, errors=TEXT_ERRORS)


def _decode_files(info: dict) -> list[TorrentFile]:
    files = []
    offset = 0
    for file_dict in _field(info, b"files", list, []):
        if not isinstance(file_dict, dict):
            raise DecodeError("entries of 'files' must be dictionaries")
        length = _field(file_dict, b"length", int, 0)
        segments = _field(file_dict, b"path", list, [])
        try:
            path = "/".join(
                seg.decode(TEXT_ENCODING, errors=TEXT_ERRORS) for seg in segments
            )
        except AttributeError as e:
            raise DecodeError("file path segments must be byte strings") from e
        files.append(TorrentFile(path, length, offset))
        offset += length
    return files


def open_torrent(stream: BinaryIO) -> BencodeTorrent:
    data = stream.read()
    try:
        metainfo = bencodepy.decode(data)
    except Exception as e:
        raise DecodeError(f"not a valid bencoded stream: {e}") from e

    if not isinstance(metainfo, dict):
        raise DecodeError("top level of a torrent must be a dictionary")

    announce = _text(metainfo, b"announce")
    info = _field(metainfo, b"info", dict, {})
    name = _text(info, b"name")
    files = _decode_files(info)

    if b"length" in info or not files:
        length = _field(info, b"length", int, 0)
        if not files:
            files = [TorrentFile(name, length, 0)]
    else:
        length = sum(f.length for f in files)

    return BencodeTorrent(
        announce=announce,
        info=BencodeInfo(
            pieces=_field(info, b"pieces", bytes, b""),
            piece_length=_field(info, b"piece length", int, 0),
            length=length,
            name=name,
            files=files,
        ),
    )


def parse_torrent_file(path: Path) -> BencodeTorrent:
    with path.open("rb") as f:
        return open_torrent(f)
