"""
Central configuration for dhchat.
Avoids hardcoded literals spread across files.
"""
from dataclasses import dataclass

# Networking
HOST = "localhost"
LISTEN_HOST = "0.0.0.0"
PORT = 8080
BACKLOG = 1  # one peer per listener
RECV_BYTES = 512
JOIN_TIMEOUT = 2.0

# Chat
TEXT_ENCODING = "utf-8"
KEYSTREAM_PREVIEW_BYTES = 10


@dataclass(frozen=True)
class ProtocolParameters:
    """Public constants shared by both endpoints (demo only; NOT secure)."""
    modulus: int = 0xD87FA3E291B4C7F3
    generator: int = 2
    lcg_multiplier: int = 1103515245
    lcg_increment: int = 12345
    lcg_modulus: int = 2**32
    output_shift: int = 24  # keystream byte = bits 31..24 of the LCG state
    key_bytes: int = 8

    @property
    def key_bits(self) -> int:
        return self.key_bytes * 8


DEFAULT_PARAMETERS = ProtocolParameters()
