#!/usr/bin/env python3
"""
Round-trip tests for modular exponentiation, DH agreement, the LCG
keystream and handshake framing.
Run: pytest test_roundtrip.py
"""
import random
import socket

import pytest

from config import DEFAULT_PARAMETERS, ProtocolParameters
from key_exchange import KeyExchange, modpow, derive_secret, exchange
from keystream import Keystream
from protocol import encode_u64, decode_u64, recv_exact, HandshakeError

P = DEFAULT_PARAMETERS.modulus
G = DEFAULT_PARAMETERS.generator


def test_modpow_matches_builtin_pow():
    rng = random.Random(7)
    for _ in range(50):
        base, exp = rng.getrandbits(64), rng.getrandbits(64)
        assert modpow(base, exp, P) == pow(base, exp, P)


def test_modpow_boundaries():
    for x in (0, 1, 2, P - 1, 2**64 - 1):
        assert modpow(x, 0, P) == 1
    for y in (1, 2, 2**64 - 1):
        assert modpow(0, y, P) == 0


def test_dh_agreement_for_random_private_keys():
    rng = random.Random(1234)
    for _ in range(20):
        a, b = rng.getrandbits(64), rng.getrandbits(64)
        assert modpow(modpow(G, a, P), b, P) == modpow(modpow(G, b, P), a, P)


def test_dh_shared_secret():
    alice = KeyExchange()
    bob = KeyExchange()
    alice_pub = alice.public_component()
    bob_pub = bob.public_component()
    alice_shared = alice.derive_shared(bob_pub)
    bob_shared = bob.derive_shared(alice_pub)
    assert alice_shared == bob_shared, f"DH mismatch: {alice_shared} != {bob_shared}"


def test_generate_keypair_stays_in_key_space():
    kx = KeyExchange()
    private, public = kx.generate_keypair()
    assert 0 <= private < 2**64
    assert public == modpow(G, private, P)
    assert derive_secret(public, 1) == public % P


def test_alternate_parameter_set():
    params = ProtocolParameters(modulus=23, generator=5)
    alice, bob = KeyExchange(params), KeyExchange(params)
    a_pub, b_pub = alice.public_component(), bob.public_component()
    assert 0 <= a_pub < 23
    assert alice.derive_shared(b_pub) == bob.derive_shared(a_pub)


def test_keystream_first_bytes():
    # seed 0: state 12345 -> 0x00, then 3554416254 -> 0xd3
    ks = Keystream(0)
    assert ks.next_byte() == 0x00
    assert ks.next_byte() == 0xD3
    assert ks.state == 3554416254


def test_keystream_determinism():
    a, b = Keystream(0xDEADBEEF12345678), Keystream(0xDEADBEEF12345678)
    assert [a.next_byte() for _ in range(100)] == [b.next_byte() for _ in range(100)]


def test_keystream_xor_roundtrip():
    for seed in (0, 1, 2**64 - 1, 0xD87FA3E291B4C7F3):
        plaintext = "Hello, secure world! é世".encode()
        encrypted = Keystream(seed).process(plaintext)
        assert len(encrypted) == len(plaintext)
        assert Keystream(seed).process(encrypted) == plaintext


def test_keystream_consumes_one_byte_per_input_byte():
    a, b = Keystream(99), Keystream(99)
    a.process(b"12345")
    for _ in range(5):
        b.next_byte()
    assert a.state == b.state
    a.process(b"")
    assert a.state == b.state


def test_keystream_preview_does_not_advance():
    ks = Keystream(42)
    preview = ks.preview(10)
    assert ks.state == 42
    assert preview == bytes(ks.next_byte() for _ in range(10))


def test_keystream_reset():
    ks = Keystream(5)
    first = ks.process(b"abc")
    ks.reset()
    assert ks.process(b"abc") == first


def test_encrypt_and_verify_advances_like_process():
    plain = b"hello"
    checked, reference = Keystream(77), Keystream(77)
    assert checked.encrypt_and_verify(plain) == reference.process(plain)
    assert checked.state == reference.state
    assert checked.encrypt_and_verify(plain) == reference.process(plain)


def test_u64_framing_boundaries():
    for value in (0, 1, 2**32, 2**64 - 1):
        data = encode_u64(value)
        assert len(data) == 8
        assert decode_u64(data) == value
    assert encode_u64(1) == b"\x00" * 7 + b"\x01"


def test_u64_framing_rejects_bad_input():
    with pytest.raises(ValueError):
        encode_u64(2**64)
    with pytest.raises(ValueError):
        encode_u64(-1)
    with pytest.raises(ValueError):
        decode_u64(b"\x00" * 7)


def test_recv_exact_reports_short_read():
    a, b = socket.socketpair()
    try:
        a.sendall(b"\x01\x02\x03")
        a.close()
        with pytest.raises(HandshakeError) as excinfo:
            recv_exact(b, 8)
        assert excinfo.value.received == 3
        assert excinfo.value.expected == 8
    finally:
        b.close()


def test_exchange_sends_before_receiving():
    a, b = socket.socketpair()
    try:
        b.sendall(encode_u64(0x0102030405060708))
        assert exchange(a, 0xAABB) == 0x0102030405060708
        assert recv_exact(b, 8) == encode_u64(0xAABB)
    finally:
        a.close()
        b.close()
