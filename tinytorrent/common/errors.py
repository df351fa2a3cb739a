class TorrentError(Exception):
    """Base class for every error raised by tinytorrent."""


class DecodeError(TorrentError):
    """The torrent stream is not valid bencode or has mistyped fields."""


class BuildError(TorrentError):
    """The decoded torrent cannot be turned into a TorrentMetadata."""


class PiecesEmptyError(BuildError):
    pass


class MalformedInputError(BuildError):
    pass


class UrlParseError(TorrentError):
    """The announce field is not a usable URL."""


class TrackerError(TorrentError):
    """Exception raised when tracker communication fails."""
