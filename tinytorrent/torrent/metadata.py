# torrent text fields are UTF-8 by convention; other bytes are kept as surrogates
TEXT_ENCODING = "utf-8"
TEXT_ERRORS = "surrogateescape"


def raw_text(text: str) -> bytes:
    return text.encode(TEXT_ENCODING, errors=TEXT_ERRORS)


def printable(text: str) -> str:
    return raw_text(text).decode(TEXT_ENCODING, errors="replace")


class TorrentFile:
    __slots__ = ("path", "length", "offset")

    def __init__(self, path: str, length: int, offset: int):
        self.path = path
        self.length = length
        self.offset = offset

    def __eq__(self, other):
        if not isinstance(other, TorrentFile):
            return NotImplemented
        return (self.path, self.length, self.offset) == (
            other.path,
            other.length,
            other.offset,
        )

    def __repr__(self):
        return f"TorrentFile({self.path!r}, {self.length}, {self.offset})"


# Mirrors the "info" dictionary of a .torrent file, straight out of the decoder
class BencodeInfo:
    __slots__ = ("pieces", "piece_length", "length", "name", "files")

    def __init__(
        self,
        pieces: bytes = b"",
        piece_length: int = 0,
        length: int = 0,
        name: str = "",
        files: list[TorrentFile] | None = None,
    ):
        self.pieces = pieces
        self.piece_length = piece_length
        self.length = length
        self.name = name
        self.files = files if files is not None else []


class BencodeTorrent:
    __slots__ = ("announce", "info")

    def __init__(self, announce: str = "", info: BencodeInfo | None = None):
        self.announce = announce
        self.info = info if info is not None else BencodeInfo()


class TorrentMetadata:
    """Immutable description of a torrent, built once from a decoded file."""

    __slots__ = (
        "announce",
        "info_hash",
        "piece_hashes",
        "piece_length",
        "total_length",
        "name",
        "files",
    )

    def __init__(
        self,
        announce: str,
        info_hash: bytes,
        piece_hashes: tuple[bytes, ...],
        piece_length: int,
        total_length: int,
        name: str,
        files: tuple[TorrentFile, ...] = (),
    ):
        object.__setattr__(self, "announce", announce)
        object.__setattr__(self, "info_hash", info_hash)
        object.__setattr__(self, "piece_hashes", tuple(piece_hashes))
        object.__setattr__(self, "piece_length", piece_length)
        object.__setattr__(self, "total_length", total_length)
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "files", tuple(files))

    def __setattr__(self, key, value):
        raise AttributeError(f"{type(self).__name__} is immutable (tried to set {key!r})")

    def __delattr__(self, key):
        raise AttributeError(f"{type(self).__name__} is immutable (tried to delete {key!r})")

    @property
    def num_pieces(self) -> int:
        return len(self.piece_hashes)

    def piece_size(self, index: int) -> int:
        # every piece is piece_length long except possibly the last one
        if not 0 <= index < self.num_pieces:
            raise IndexError(f"piece index {index} out of range")
        if index < self.num_pieces - 1:
            return self.piece_length
        remainder = self.total_length - self.piece_length * (self.num_pieces - 1)
        return remainder if remainder > 0 else self.piece_length

    def __repr__(self):
        return (
            f"TorrentMetadata(name={self.name!r}, info_hash={self.info_hash.hex()}, "
            f"pieces={self.num_pieces}, total_length={self.total_length})"
        )
