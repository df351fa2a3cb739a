import hashlib
from tinytorrent.common.errors import (
    BuildError,
    MalformedInputError,
    PiecesEmptyError,
)
from tinytorrent.torrent.metadata import BencodeTorrent, TorrentMetadata, raw_text

HASH_LENGTH = 20  # SHA-1 digest size


class BuildResult:
    """Outcome of build_torrent.

    A splitting failure still yields a populated ``torrent`` next to the
    ``error``; callers must check ``ok`` (or call ``unwrap``) before trusting it.
    """

    __slots__ = ("torrent", "error")

    def __init__(
        self,
        torrent: TorrentMetadata | None = None,
        error: BuildError | None = None,
    ):
        self.torrent = torrent
        self.error = error

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> TorrentMetadata:
        if self.error is not None:
            raise self.error
        return self.torrent


def split_piece_hashes(pieces: bytes) -> tuple[bytes, ...]:
    if not pieces or len(pieces) % HASH_LENGTH != 0:
        raise MalformedInputError("hash data length is not a multiple of 20")
    return tuple(
        bytes(pieces[i : i + HASH_LENGTH]) for i in range(0, len(pieces), HASH_LENGTH)
    )


def build_torrent(bto: BencodeTorrent) -> BuildResult:
    info = bto.info
    if not info.pieces:
        return BuildResult(error=PiecesEmptyError("pieces field is empty"))

    # identity hash covers the name only, not the bencoded info dictionary
    info_hash = hashlib.sha1(raw_text(info.name)).digest()

    error = None
    try:
        piece_hashes = split_piece_hashes(info.pieces)
    except MalformedInputError as e:
        piece_hashes = ()
        error = e

    torrent = TorrentMetadata(
        announce=bto.announce,
        info_hash=info_hash,
        piece_hashes=piece_hashes,
        piece_length=info.piece_length,
        total_length=info.length,
        name=info.name,
        files=info.files,
    )
    return BuildResult(torrent, error)
