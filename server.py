import socket
import sys
import argparse
from config import LISTEN_HOST, PORT, BACKLOG, DEFAULT_PARAMETERS
from session import DuplexSession
from logging_util import setup_logger, level_for


class Server:
    """Listener role: accepts exactly one peer, then chats with it."""

    def __init__(self, host=LISTEN_HOST, port=PORT, params=DEFAULT_PARAMETERS, logger=None):
        self.params = params
        self.logger = logger or setup_logger("server")
        self.server_socket = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self.server_socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            self.server_socket.bind((host, port))
            self.server_socket.listen(BACKLOG)
        except OSError:
            self.server_socket.close()
            raise
        self.host, self.port = self.server_socket.getsockname()[:2]

        self.logger.info(f"Listening on {self.host}:{self.port}")

    def accept_one(self):
        """Block for the first inbound connection and stop listening."""
        self.logger.info("Waiting for client...")
        try:
            client_socket, client_address = self.server_socket.accept()
        finally:
            self.server_socket.close()
        self.logger.info(f"Client connected from {client_address[0]}:{client_address[1]}")
        return client_socket, client_address

    def start(self, lines=None) -> int:
        client_socket, _ = self.accept_one()
        session = DuplexSession(client_socket, self.params, logger=self.logger)
        try:
            return session.run(lines)
        finally:
            session.close()

    def close(self):
        self.server_socket.close()


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="DH chat server (listener role)")
    parser.add_argument("--host", default=LISTEN_HOST, help="Host to bind")
    parser.add_argument("--port", type=int, default=PORT, help="Port to listen on")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    logger = setup_logger("server", level_for(args.verbose))
    try:
        server = Server(host=args.host, port=args.port, logger=logger)
        return server.start()
    except OSError as e:
        logger.error(f"Server failed: {e}")
        return 1
    except KeyboardInterrupt:
        return 0


if __name__ == '__main__':
    sys.exit(main())
