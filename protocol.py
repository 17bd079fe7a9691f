# Handshake framing: each side sends its public key as a fixed-width
# big-endian unsigned integer. After that the stream carries raw ciphertext
# with no length prefix and no delimiter.


class HandshakeError(ConnectionError):
    """Peer closed the connection before a full public key arrived."""

    def __init__(self, received: int, expected: int):
        super().__init__(f"peer closed during handshake ({received} of {expected} bytes)")
        self.received = received
        self.expected = expected


def encode_u64(value: int, width: int = 8) -> bytes:
    if not 0 <= value < 1 << (8 * width):
        raise ValueError(f"{value} does not fit in {width} unsigned bytes")
    return value.to_bytes(width, 'big')


def decode_u64(data: bytes, width: int = 8) -> int:
    if len(data) != width:
        raise ValueError(f"expected {width} bytes, got {len(data)}")
    return int.from_bytes(data, 'big')


def send_public_key(sock, public_key: int, width: int = 8):
    sock.sendall(encode_u64(public_key, width))


def recv_public_key(sock, width: int = 8) -> int:
    return decode_u64(recv_exact(sock, width), width)


def recv_exact(sock, n: int) -> bytes:
    buf = bytearray()
    while len(buf) < n:
        chunk = sock.recv(n - len(buf))
        if not chunk:
            raise HandshakeError(len(buf), n)
        buf.extend(chunk)
    return bytes(buf)
