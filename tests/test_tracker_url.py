import hashlib
from urllib.parse import parse_qs, urlsplit
import pytest
from conftest import ANNOUNCE
from tinytorrent.common.errors import UrlParseError
from tinytorrent.torrent.metadata import TorrentMetadata
from tinytorrent.tracker.url import build_tracker_url, parse_announce


def make_torrent(announce=ANNOUNCE, info_hash=None, total_length=1024):
    return TorrentMetadata(
        announce=announce,
        info_hash=info_hash if info_hash is not None else hashlib.sha1(b"sample").digest(),
        piece_hashes=(b"\x00" * 20, b"\x00" * 20),
        piece_length=512,
        total_length=total_length,
        name="sample",
    )


def query_of(url: str) -> dict[str, bytes]:
    params = parse_qs(urlsplit(url).query, encoding="latin-1", strict_parsing=True)
    return {key: values[0].encode("latin-1") for key, values in params.items()}


def test_build_tracker_url_end_to_end(peer_id):
    torrent = make_torrent()

    url = build_tracker_url(torrent, peer_id, 6881)

    parts = urlsplit(url)
    assert f"{parts.scheme}://{parts.netloc}{parts.path}" == ANNOUNCE
    query = query_of(url)
    assert query == {
        "info_hash": torrent.info_hash,
        "peer_id": peer_id,
        "port": b"6881",
        "uploaded": b"0",
        "downloaded": b"0",
        "compact": b"1",
        "left": b"1024",
    }
    assert "peer_id=%01%01%01" in url


def test_raw_bytes_survive_percent_encoding():
    info_hash = bytes(range(236, 256))
    peer_id = b" +&=?%#/\x00\xff" * 2
    url = build_tracker_url(make_torrent(info_hash=info_hash), peer_id, 65535)

    query = query_of(url)
    assert query["info_hash"] == info_hash
    assert query["peer_id"] == peer_id
    assert query["port"] == b"65535"


def test_existing_query_is_replaced(peer_id):
    torrent = make_torrent(announce="https://tracker.example:8443/ann?passkey=abc#frag")

    url = build_tracker_url(torrent, peer_id, 6881)

    parts = urlsplit(url)
    assert parts.netloc == "tracker.example:8443"
    assert parts.path == "/ann"
    assert parts.fragment == "frag"
    assert "passkey" not in query_of(url)


def test_params_are_sorted(peer_id):
    url = build_tracker_url(make_torrent(), peer_id, 6881)
    keys = [pair.split("=")[0] for pair in urlsplit(url).query.split("&")]
    assert keys == sorted(keys)


@pytest.mark.parametrize(
    "announce",
    [
        "",
        "not a url",
        "tracker.example/announce",
        "http://",
        "http://[::1/announce",
        "http://tracker.example:notaport/announce",
        "http://tracker.example:99999/announce",
        "http://tracker.example/ann\nounce",
    ],
)
def test_unparseable_announce_raises(announce, peer_id):
    with pytest.raises(UrlParseError):
        build_tracker_url(make_torrent(announce=announce), peer_id, 6881)


def test_parse_announce_accepts_udp():
    assert parse_announce("udp://tracker.example:1337").hostname == "tracker.example"


@pytest.mark.parametrize("bad_peer_id", [b"", b"\x01" * 19, b"\x01" * 21])
def test_peer_id_must_be_20_bytes(bad_peer_id):
    with pytest.raises(ValueError, match="peer id"):
        build_tracker_url(make_torrent(), bad_peer_id, 6881)


@pytest.mark.parametrize("port", [-1, 65536])
def test_port_must_fit_16_bits(port, peer_id):
    with pytest.raises(ValueError, match="16 bits"):
        build_tracker_url(make_torrent(), peer_id, port)


def test_announce_with_undecodable_bytes_raises(peer_id):
    announce = b"http://tracker.example/\xff".decode("utf-8", errors="surrogateescape")
    with pytest.raises(UrlParseError, match="invalid characters"):
        build_tracker_url(make_torrent(announce=announce), peer_id, 6881)
