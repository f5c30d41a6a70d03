import argparse
import random
from typing import List, Optional

import honeypot_log
from command_log import CommandLog
from fake_fs import build_file_system
from ftp_honeypot import (
    DEFAULT_PASV_IP,
    DEFAULT_RETR_PAYLOAD,
    DEFAULT_WELCOME_MESSAGE,
    HoneypotConfig,
    start_ftp_honeypot,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Decoy FTP: an FTP honeypot serving a fake, read-only directory tree."
    )
    parser.add_argument(
        '-a', '--address',
        default='0.0.0.0',  # Listen on all network interfaces
        help='The IP address to bind to (default: 0.0.0.0)'
    )
    parser.add_argument(
        '-p', '--port',
        type=int,
        default=2121,
        help='Port to listen on (default: 2121)'
    )
    parser.add_argument(
        '--pasv-ip',
        default=DEFAULT_PASV_IP,
        help=f'IPv4 address advertised in PASV replies (default: {DEFAULT_PASV_IP})'
    )
    parser.add_argument(
        '--banner',
        default=DEFAULT_WELCOME_MESSAGE,
        help='Text sent after 220 when a client connects'
    )
    parser.add_argument(
        '--payload-file',
        help='File whose bytes are sent for every RETR (default: built-in note)'
    )
    parser.add_argument(
        '--command-log',
        default='commands.jsonl',
        help='JSON-lines file receiving every client command (default: commands.jsonl)'
    )
    parser.add_argument(
        '--log-file',
        default='honeypot.log',
        help="Operational log file, '-' to log to stdout only (default: honeypot.log)"
    )
    parser.add_argument(
        '--data-timeout',
        type=float,
        default=None,
        help='Seconds to wait for a data connection (default: wait forever)'
    )
    parser.add_argument(
        '--seed',
        type=int,
        default=None,
        help='Seed for the generated directory tree'
    )
    return parser


def load_config(args: argparse.Namespace) -> HoneypotConfig:
    payload = DEFAULT_RETR_PAYLOAD
    if args.payload_file:
        with open(args.payload_file, "rb") as f:
            payload = f.read()
    return HoneypotConfig(
        welcome_message=args.banner,
        pasv_ip=args.pasv_ip,
        retr_payload=payload,
        data_timeout=args.data_timeout,
    )


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = load_config(args)
    except (OSError, ValueError) as e:
        parser.error(str(e))

    honeypot_log.set_log_file(None if args.log_file == '-' else args.log_file)
    root = build_file_system(random.Random(args.seed))
    print(f"[+] Starting FTP Honeypot on {args.address}:{args.port}")
    start_ftp_honeypot(args.address, args.port, root, CommandLog(args.command_log), config)


if __name__ == '__main__':
    main()
