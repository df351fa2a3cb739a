#!/usr/bin/env python3
"""
tinytorrent - read a .torrent file and build its tracker announce request.
Main entry point for the application.
"""

import asyncio
import argparse
import os
import random
import sys
from pathlib import Path
from tinytorrent.common.errors import TorrentError
from tinytorrent.common.logging import config_logging
from tinytorrent.torrent.builder import build_torrent
from tinytorrent.torrent.metadata import TorrentMetadata, printable
from tinytorrent.torrent.parser import parse_torrent_file
from tinytorrent.tracker.tracker_client import TrackerClient
from tinytorrent.tracker.url import PEER_ID_LENGTH, build_tracker_url
import logging

logger = logging.getLogger(__name__)

PEER_ID_PREFIX = b"-TN0001-"


def generate_peer_id() -> bytes:
    return PEER_ID_PREFIX + os.urandom(PEER_ID_LENGTH - len(PEER_ID_PREFIX))


def peer_id_arg(value: str) -> bytes:
    peer_id = value.encode("latin-1", errors="strict")
    if len(peer_id) != PEER_ID_LENGTH:
        raise argparse.ArgumentTypeError(
            f"peer id must be exactly {PEER_ID_LENGTH} characters"
        )
    return peer_id


def port_arg(value: str) -> int:
    port = int(value)
    if not 0 < port <= 0xFFFF:
        raise argparse.ArgumentTypeError(f"port {port} is out of range")
    return port


def load_torrent(torrent_path: Path) -> TorrentMetadata:
    logger.info(f"Parsing torrent file: {torrent_path}")
    bto = parse_torrent_file(torrent_path)
    metadata = build_torrent(bto).unwrap()
    logger.info(
        f"Parsed torrent: {printable(metadata.name)} ({metadata.num_pieces} pieces, "
        f"{metadata.total_length} bytes)"
    )
    return metadata


def print_summary(metadata: TorrentMetadata, tracker_url: str):
    print(f"\n{'='*60}")
    print(f"Torrent: {printable(metadata.name)}")
    print(f"Size: {metadata.total_length / (1024*1024):.2f} MB")
    print(f"Pieces: {metadata.num_pieces} x {metadata.piece_length / 1024:.0f} KB")
    print(f"Info hash: {metadata.info_hash.hex()}")
    print(f"Tracker: {metadata.announce}")
    if len(metadata.files) > 1:
        print(f"Files: {len(metadata.files)}")
        for f in metadata.files:
            print(f"  {printable(f.path)} ({f.length} bytes)")
    print(f"{'='*60}")
    print(f"Announce URL: {tracker_url}\n")


async def announce(
    metadata: TorrentMetadata, peer_id: bytes, port: int, timeout: float
) -> list[tuple[str, int]]:
    tracker = TrackerClient.for_torrent(metadata, peer_id, port, timeout=timeout)
    return await tracker.started()


def run(args: argparse.Namespace) -> int:
    try:
        metadata = load_torrent(args.torrent)
        tracker_url = build_tracker_url(metadata, args.peer_id, args.port)
        print_summary(metadata, tracker_url)

        if args.announce:
            peers = asyncio.run(
                announce(metadata, args.peer_id, args.port, args.timeout)
            )
            print(f"Tracker returned {len(peers)} peers:")
            for ip, peer_port in peers:
                print(f"  {ip}:{peer_port}")
    except (TorrentError, OSError) as e:
        logger.error(f"Failed to process {args.torrent}: {e}", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="tinytorrent - decode a .torrent file and build its tracker announce URL",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s
  %(prog)s ubuntu.torrent -p 6881
  %(prog)s file.torrent --announce -v
        """,
    )

    parser.add_argument(
        "torrent",
        type=Path,
        nargs="?",
        default=Path("data.torrent"),
        help="Path to the .torrent file (default: data.torrent)",
    )

    parser.add_argument(
        "-p", "--port",
        type=port_arg,
        default=None,
        help="Port this client listens on (default: random in 6881-6889)",
    )

    parser.add_argument(
        "--peer-id",
        type=peer_id_arg,
        default=None,
        help="20 character peer id (default: random with prefix -TN0001-)",
    )

    parser.add_argument(
        "--announce",
        action="store_true",
        help="Send the announce request to the tracker and list the peers",
    )

    parser.add_argument(
        "--timeout",
        type=float,
        default=10.0,
        help="Tracker request timeout in seconds (default: 10)",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    parser.add_argument(
        "--log-file",
        default="tinytorrent.log.jsonl",
        help="Name of the JSON log file under data/logs/ (default: tinytorrent.log.jsonl)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for tinytorrent."""
    args = build_parser().parse_args(argv)
    if args.port is None:
        args.port = random.randint(6881, 6889)
    if args.peer_id is None:
        args.peer_id = generate_peer_id()

    config_logging(args.log_file, verbose=args.verbose)
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
