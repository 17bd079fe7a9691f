"""
LCG keystream cipher (demo only; do NOT use in production).

Each call to ``next_byte`` advances the generator, so one ``Keystream``
instance is used per direction of a session.
"""
import threading

from config import ProtocolParameters, DEFAULT_PARAMETERS


class Keystream:
    def __init__(self, seed: int, params: ProtocolParameters = DEFAULT_PARAMETERS):
        self.params = params
        self.seed = seed
        self.state = seed
        self._lock = threading.Lock()

    def _step(self, state: int) -> int:
        p = self.params
        return (p.lcg_multiplier * state + p.lcg_increment) % p.lcg_modulus

    def next_byte(self) -> int:
        self.state = self._step(self.state)
        return (self.state >> self.params.output_shift) & 0xFF

    def process(self, data: bytes) -> bytes:
        """XOR ``data`` with the next ``len(data)`` keystream bytes."""
        return bytes(b ^ self.next_byte() for b in data)

    def preview(self, count: int) -> bytes:
        """Upcoming keystream bytes, without advancing the state."""
        state = self.state
        out = bytearray()
        for _ in range(count):
            state = self._step(state)
            out.append((state >> self.params.output_shift) & 0xFF)
        return bytes(out)

    def reset(self):
        with self._lock:
            self.state = self.seed

    def encrypt_and_verify(self, data: bytes) -> bytes:
        """Encrypt ``data`` after checking the round trip from the same state.

        Save state, encrypt, restore, decrypt the trial ciphertext, restore,
        then encrypt for real. The state only advances by ``len(data)``.
        """
        with self._lock:
            saved = self.state
            trial = self.process(data)
            self.state = saved
            ok = self.process(trial) == data
            self.state = saved
            if not ok:
                raise RuntimeError("keystream round-trip check failed")
            return self.process(data)
