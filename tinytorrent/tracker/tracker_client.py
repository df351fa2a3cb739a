import httpx
from urllib.parse import urlencode
import socket
import struct
import bencodepy
import logging
from typing import Optional
from tinytorrent.common.errors import TrackerError
from tinytorrent.torrent.metadata import TorrentMetadata
from tinytorrent.tracker.url import announce_params, parse_announce

logger = logging.getLogger(__name__)

COMPACT_PEER_SIZE = 6  # 4 byte IPv4 address + 2 byte port


def decode_compact_peers(peers_raw: bytes) -> list[tuple[str, int]]:
    if len(peers_raw) % COMPACT_PEER_SIZE != 0:
        raise TrackerError(
            f"compact peer list length {len(peers_raw)} is not a multiple of 6"
        )
    peers = []
    for i in range(0, len(peers_raw), COMPACT_PEER_SIZE):
        ip = socket.inet_ntoa(peers_raw[i : i + 4])
        peer_port = struct.unpack(">H", peers_raw[i + 4 : i + 6])[0]
        peers.append((ip, peer_port))
    return peers


def _message(decoded: dict, key: bytes) -> str:
    try:
        return decoded[key].decode("utf-8", errors="replace")
    except (AttributeError, TypeError) as e:
        raise TrackerError(f"Tracker sent a non-string {key.decode()!r}") from e


class TrackerClient:
    __slots__ = (
        "announce_url",
        "info_hash",
        "peer_id",
        "port",
        "total_length",
        "uploaded",
        "downloaded",
        "left",
        "interval",
        "min_interval",
        "tracker_id",
        "complete",
        "incomplete",
        "timeout",
        "transport",
    )

    def __init__(
        self,
        announce_url: str,
        info_hash: bytes,
        peer_id: bytes,
        port: int,
        total_length: int,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.announce_url = announce_url
        self.info_hash = info_hash
        self.peer_id = peer_id
        self.port = port
        self.total_length = total_length
        self.uploaded = 0
        self.downloaded = 0
        self.left = total_length
        self.interval = None
        self.min_interval = None
        self.tracker_id = None
        self.complete = None
        self.incomplete = None
        self.timeout = timeout
        self.transport = transport  # swapped for httpx.MockTransport in tests

    @classmethod
    def for_torrent(
        cls, torrent: TorrentMetadata, peer_id: bytes, port: int, **kwargs
    ) -> "TrackerClient":
        return cls(
            torrent.announce,
            torrent.info_hash,
            peer_id,
            port,
            torrent.total_length,
            **kwargs,
        )

    def build_url(self, event: Optional[str] = None) -> str:
        base = parse_announce(self.announce_url)
        if base.scheme not in {"http", "https"}:
            raise TrackerError(f"Unsupported tracker protocol: {base.scheme}")
        params = announce_params(
            self.info_hash,
            self.peer_id,
            self.port,
            self.left,
            uploaded=self.uploaded,
            downloaded=self.downloaded,
            event=event,
        )
        if self.tracker_id:
            params.append(("trackerid", self.tracker_id))
        return base._replace(query=urlencode(params)).geturl()

    def _handle_response(self, content: bytes) -> list[tuple[str, int]]:
        try:
            decoded = bencodepy.decode(content)
        except Exception as e:
            raise TrackerError(f"Tracker sent an invalid response: {e}") from e
        if not isinstance(decoded, dict):
            raise TrackerError("Tracker response is not a dictionary")

        if b"failure reason" in decoded:
            raise TrackerError(
                f"Tracker failure: {_message(decoded, b'failure reason')}"
            )
        if b"warning message" in decoded:
            logger.warning(
                f"Tracker warning: {_message(decoded, b'warning message')}"
            )

        self.interval = decoded.get(b"interval")
        self.min_interval = decoded.get(b"min interval")
        self.tracker_id = decoded.get(b"tracker id", self.tracker_id)
        self.complete = decoded.get(b"complete")
        self.incomplete = decoded.get(b"incomplete")

        peers_raw = decoded.get(b"peers", b"")
        if isinstance(peers_raw, bytes):
            return decode_compact_peers(peers_raw)
        try:
            return [(peer[b"ip"].decode(), peer[b"port"]) for peer in peers_raw]
        except (KeyError, TypeError, AttributeError) as e:
            raise TrackerError("Tracker returned a malformed peer list") from e

    async def announce(self, event: Optional[str] = None) -> list[tuple[str, int]]:
        url = self.build_url(event)
        logger.debug(f"Announcing to tracker: {url}")
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self.transport
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise TrackerError(f"Tracker request failed: {e}") from e

        peers = self._handle_response(response.content)
        logger.info(
            f"Tracker returned {len(peers)} peers (interval={self.interval}, "
            f"seeders={self.complete}, leechers={self.incomplete})"
        )
        return peers

    async def started(self) -> list[tuple[str, int]]:
        return await self.announce(event="started")
