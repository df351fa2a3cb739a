import io
import bencodepy
import pytest

ANNOUNCE = "http://tracker.example/announce"


def encode_torrent(
    announce: str | None = ANNOUNCE,
    name: str | None = "sample",
    length: int | None = 1024,
    piece_length: int | None = 512,
    pieces: bytes | None = b"\x00" * 40,
    files: list[dict] | None = None,
    **extra,
) -> bytes:
    info = {}
    if name is not None:
        info[b"name"] = name.encode("utf-8")
    if length is not None:
        info[b"length"] = length
    if piece_length is not None:
        info[b"piece length"] = piece_length
    if pieces is not None:
        info[b"pieces"] = pieces
    if files is not None:
        info[b"files"] = files
    metainfo = {b"info": info}
    if announce is not None:
        metainfo[b"announce"] = announce.encode("utf-8")
    for key, value in extra.items():
        metainfo[key.replace("_", " ").encode()] = value
    return bencodepy.encode(metainfo)


@pytest.fixture
def sample_stream():
    return io.BytesIO(encode_torrent())


@pytest.fixture
def peer_id():
    return b"\x01" * 20
