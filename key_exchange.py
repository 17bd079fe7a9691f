from dataclasses import dataclass
import random

from config import ProtocolParameters, DEFAULT_PARAMETERS
from protocol import send_public_key, recv_public_key


def modpow(base: int, exponent: int, modulus: int) -> int:
    """Square-and-multiply ``base ** exponent % modulus``."""
    result = 1
    base %= modulus
    while exponent > 0:
        if exponent & 1:
            result = (result * base) % modulus
        base = (base * base) % modulus
        exponent >>= 1
    return result


@dataclass
class KeyExchange:
    params: ProtocolParameters = DEFAULT_PARAMETERS
    private: int = 0
    public: int = 0

    def generate_keypair(self) -> tuple[int, int]:
        self.private = random.getrandbits(self.params.key_bits)
        self.public = modpow(self.params.generator, self.private, self.params.modulus)
        return self.private, self.public

    def public_component(self) -> int:
        if not self.public:
            self.generate_keypair()
        return self.public

    def derive_shared(self, other_public: int) -> int:
        if not self.public:
            self.generate_keypair()
        return derive_secret(other_public, self.private, self.params)


def derive_secret(peer_public: int, local_private: int,
                  params: ProtocolParameters = DEFAULT_PARAMETERS) -> int:
    return modpow(peer_public, local_private, params.modulus)


def exchange(sock, local_public: int, params: ProtocolParameters = DEFAULT_PARAMETERS) -> int:
    """Send our public key, then block for the peer's.

    Both roles use the same order; the 8-byte write always fits in the
    socket send buffer, so two blocking peers cannot deadlock here.
    """
    send_public_key(sock, local_public, params.key_bytes)
    return recv_public_key(sock, params.key_bytes)
