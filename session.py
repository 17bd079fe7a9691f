"""
Duplex chat session over one connected socket.

Handshake first, then two tasks share the connection: a receiver thread
that only calls ``recv`` and a sender that only calls ``sendall``. Each
direction owns its own Keystream, so neither cipher state is shared
between threads.
"""
import socket
import threading
from enum import Enum

from config import (
    DEFAULT_PARAMETERS, JOIN_TIMEOUT, KEYSTREAM_PREVIEW_BYTES, RECV_BYTES,
    TEXT_ENCODING,
)
from key_exchange import KeyExchange, exchange
from keystream import Keystream
from logging_util import setup_logger
from utils import decode_message, describe_parameters, format_hex


class SessionState(Enum):
    HANDSHAKING = "handshaking"
    SECURE_ESTABLISHED = "secure-established"
    ACTIVE = "active"  # receiving and sending
    CLOSED = "closed"


def console_lines(prompt: str = '> '):
    """Yield lines typed on stdin until EOF."""
    while True:
        try:
            yield input(prompt)
        except EOFError:
            return


class DuplexSession:
    def __init__(self, sock, params=DEFAULT_PARAMETERS, on_message=None, logger=None):
        self.sock = sock
        self.params = params
        self.logger = logger or setup_logger("session")
        self.on_message = on_message or self._log_message
        self.state = SessionState.HANDSHAKING
        self.shared_secret = None
        self.error = None
        self.encryptor = None
        self.decryptor = None
        self._closed = threading.Event()
        self._close_lock = threading.Lock()
        self._sock_closed = False
        self._receiver = None

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def wait_closed(self, timeout=None) -> bool:
        return self._closed.wait(timeout)

    def handshake(self) -> int:
        """Run the key exchange and build one Keystream per direction."""
        if self.state is not SessionState.HANDSHAKING:
            raise RuntimeError(f"handshake not allowed in state {self.state.name}")

        self.logger.info("[DH] Starting key exchange...")
        for line in describe_parameters(self.params):
            self.logger.info(f"[DH] {line}")

        kx = KeyExchange(self.params)
        private, public = kx.generate_keypair()
        self.logger.debug(f"[DH] private_key = {private:X}")
        self.logger.info(f"[DH] -> Send our public: {public:X}")
        try:
            peer_public = exchange(self.sock, public, self.params)
        except OSError:
            self.close()
            raise
        self.logger.info(f"[DH] <- Receive their public: {peer_public:X}")

        self.shared_secret = kx.derive_shared(peer_public)
        self.logger.info(f"[DH] secret = {self.shared_secret:X}")

        self.encryptor = Keystream(self.shared_secret, self.params)
        self.decryptor = Keystream(self.shared_secret, self.params)
        preview = self.encryptor.preview(KEYSTREAM_PREVIEW_BYTES)
        self.logger.info(f"[STREAM] {format_hex('Keystream', preview)} ...")

        self.state = SessionState.SECURE_ESTABLISHED
        self.logger.info("Secure channel established!")
        return self.shared_secret

    def send_line(self, line: str) -> bytes:
        """Encrypt one input line and write it whole. Blank lines send nothing."""
        if self.encryptor is None:
            raise RuntimeError("cannot send before the handshake completes")
        text = line.strip()
        if not text:
            return b""

        plain = text.encode(TEXT_ENCODING)
        cipher = self.encryptor.encrypt_and_verify(plain)
        self.logger.debug(f"[TEST] Round-trip verified: {text!r}")
        self.logger.info(format_hex("Plain", plain))
        self.logger.info(format_hex("Cipher", cipher))
        self.sock.sendall(cipher)
        self.logger.debug(f"[+] Sent {len(cipher)} bytes")
        return cipher

    def receive_loop(self):
        """Decrypt whatever each read returns until EOF, error or close()."""
        if self.decryptor is None:
            raise RuntimeError("cannot receive before the handshake completes")
        try:
            while not self._closed.is_set():
                data = self.sock.recv(RECV_BYTES)
                if not data:
                    if not self._closed.is_set():
                        self.logger.info("Connection closed by peer.")
                    break
                self.logger.debug(f"[-] Received {len(data)} bytes")
                self.on_message(data, self.decryptor.process(data))
        except OSError as e:
            if not self._closed.is_set():
                self.error = e
                self.logger.error(f"Error receiving message: {e}")
        except Exception as e:
            self.error = e
            self.logger.exception(f"Error handling received message: {e}")
        finally:
            self._mark_closed()

    def send_loop(self, lines):
        try:
            for line in lines:
                if self._closed.is_set():
                    break
                self.send_line(line)
        except (BrokenPipeError, ConnectionResetError):
            # peer went away before the receiver saw EOF
            if not self._closed.is_set():
                self.logger.info("Connection closed by peer.")
        except OSError as e:
            if not self._closed.is_set():
                self.error = e
                self.logger.error(f"Error sending message: {e}")
        finally:
            self._mark_closed()

    def start_receiving(self) -> threading.Thread:
        self._receiver = threading.Thread(target=self.receive_loop, name="receiver", daemon=True)
        self.state = SessionState.ACTIVE
        self._receiver.start()
        return self._receiver

    def run(self, lines=None) -> int:
        """Handshake if needed, chat until either side ends, return an exit status."""
        if self.state is SessionState.HANDSHAKING:
            self.handshake()
        self.start_receiving()
        # stdin reads cannot be interrupted, so the sender runs as a daemon
        # and this thread only waits for the first loop to finish.
        sender = threading.Thread(
            target=self.send_loop,
            args=(console_lines() if lines is None else lines,),
            name="sender",
            daemon=True,
        )
        sender.start()
        self._closed.wait()
        self.close()
        return 1 if self.error else 0

    def close(self):
        with self._close_lock:
            if self._sock_closed:
                return
            self._sock_closed = True
        self._closed.set()
        try:
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass  # peer already gone
        if self._receiver is not None and self._receiver is not threading.current_thread():
            self._receiver.join(JOIN_TIMEOUT)
        self.sock.close()
        self.state = SessionState.CLOSED

    def _mark_closed(self):
        self.state = SessionState.CLOSED
        self._closed.set()

    def _log_message(self, cipher: bytes, plain: bytes):
        self.logger.info(f"[NETWORK] Received encrypted message ({len(cipher)} bytes)")
        self.logger.info(format_hex("Cipher", cipher))
        self.logger.info(format_hex("Plain", plain))
        message = decode_message(plain)
        if message is not None:
            self.logger.info(f"[DECRYPTED MSG] {message.strip()}")
