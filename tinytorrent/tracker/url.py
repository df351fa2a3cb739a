from urllib.parse import SplitResult, urlencode, urlsplit, urlunsplit
from tinytorrent.common.errors import UrlParseError
from tinytorrent.torrent.metadata import TorrentMetadata

PEER_ID_LENGTH = 20


def parse_announce(announce: str) -> SplitResult:
    """Split an announce URL, rejecting anything without a scheme and host."""
    if not announce:
        raise UrlParseError("announce URL is empty")
    if any(
        ch.isspace() or ord(ch) < 0x20 or ord(ch) == 0x7F or "\udc80" <= ch <= "\udcff"
        for ch in announce
    ):
        raise UrlParseError(f"announce URL contains invalid characters: {announce!r}")
    try:
        parts = urlsplit(announce)
        _ = parts.port  # raises ValueError on a non-numeric or out of range port
    except ValueError as e:
        raise UrlParseError(f"cannot parse announce URL {announce!r}: {e}") from e
    if not parts.scheme or not parts.netloc or not parts.hostname:
        raise UrlParseError(f"announce URL {announce!r} needs a scheme and a host")
    return parts


def announce_params(
    info_hash: bytes,
    peer_id: bytes,
    port: int,
    left: int,
    uploaded: int = 0,
    downloaded: int = 0,
    event: str | None = None,
) -> list[tuple[str, bytes | str]]:
    if len(peer_id) != PEER_ID_LENGTH:
        raise ValueError(f"peer id must be {PEER_ID_LENGTH} bytes, got {len(peer_id)}")
    if not 0 <= port <= 0xFFFF:
        raise ValueError(f"port {port} does not fit in 16 bits")
    params = {
        "info_hash": bytes(info_hash),  # bytes; urlencode percent-encodes
        "peer_id": bytes(peer_id),  # bytes; urlencode percent-encodes
        "port": str(port),
        "uploaded": str(uploaded),
        "downloaded": str(downloaded),
        "compact": "1",
        "left": str(left),
    }
    if event:
        params["event"] = event
    return sorted(params.items())


def build_tracker_url(torrent: TorrentMetadata, peer_id: bytes, port: int) -> str:
    base = parse_announce(torrent.announce)
    query = urlencode(
        announce_params(torrent.info_hash, peer_id, port, torrent.total_length)
    )
    return urlunsplit(base._replace(query=query))
