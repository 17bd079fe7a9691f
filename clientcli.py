import socket
import sys
import argparse
from config import HOST, PORT, DEFAULT_PARAMETERS
from session import DuplexSession
from logging_util import setup_logger, level_for


def parse_target(target: str, default_port: int = PORT):
    """Split ``host:port`` (or bare ``host``) into a (host, port) pair."""
    host, sep, port = target.rpartition(':')
    if not sep:
        return target or HOST, default_port
    if not port.isdigit() or not 0 < int(port) < 65536:
        raise ValueError(f"invalid port in target {target!r}")
    return host or HOST, int(port)


class Client:
    """Dialer role: opens one outbound connection, then chats over it."""

    def __init__(self, host=HOST, port=PORT, params=DEFAULT_PARAMETERS, logger=None):
        self.host = host
        self.port = port
        self.params = params
        self.logger = logger or setup_logger("client")
        self.client_socket = None

    def connect(self):
        self.logger.info(f"Connecting to {self.host}:{self.port}...")
        self.client_socket = socket.create_connection((self.host, self.port))
        self.logger.info(f"Connected to server at {self.host}:{self.port}")
        return self.client_socket

    def start(self, lines=None) -> int:
        session = DuplexSession(self.connect(), self.params, logger=self.logger)
        try:
            return session.run(lines)
        finally:
            session.close()
            self.logger.info("Disconnected from server")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="DH chat client (dialer role)")
    parser.add_argument("target", nargs="?", default=f"{HOST}:{PORT}", help="Server as host:port")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    logger = setup_logger("client", level_for(args.verbose))
    try:
        host, port = parse_target(args.target)
    except ValueError as e:
        logger.error(str(e))
        return 2
    try:
        return Client(host=host, port=port, logger=logger).start()
    except OSError as e:
        logger.error(f"Connection error: {e}")
        return 1
    except KeyboardInterrupt:
        return 0


if __name__ == '__main__':
    sys.exit(main())
