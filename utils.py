"""
Shared display helpers to keep server/client output consistent.
"""
from typing import Optional

from config import ProtocolParameters, TEXT_ENCODING


def format_hex(label: str, data: bytes) -> str:
    return f"{label}: " + " ".join(f"{b:02x}" for b in data)


def decode_message(data: bytes, encoding: str = TEXT_ENCODING) -> Optional[str]:
    # Undecodable plaintext is still shown as hex by the caller.
    try:
        return data.decode(encoding)
    except UnicodeDecodeError:
        return None


def describe_parameters(params: ProtocolParameters) -> list[str]:
    return [
        f"p = {params.modulus:X} ({params.key_bits}-bit modulus - public)",
        f"g = {params.generator} (generator - public)",
        f"LCG a={params.lcg_multiplier}, c={params.lcg_increment}, m={params.lcg_modulus}",
    ]
