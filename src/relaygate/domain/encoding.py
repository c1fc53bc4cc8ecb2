"""Key encodings: lowercase hex and NIP-19 bech32 strings.

NIP-19 encodes a bare 32-byte key as bech32 (BIP-173 checksum, not
bech32m) with a human-readable prefix naming the material:

- ``nsec`` — private key
- ``npub`` — x-only public key

INVARIANT: public keys are always the 32-byte x-coordinate; the 0x02/0x03
parity byte of the compressed point is dropped.
"""

from __future__ import annotations

import re

import bech32

from relaygate.domain.errors import MalformedKey, UnsupportedEncoding

PUBLIC_PREFIX = "npub"
PRIVATE_PREFIX = "nsec"

# Prefixes defined by NIP-19; anything else that decodes is still "unsupported".
KNOWN_PREFIXES: frozenset[str] = frozenset(
    {"npub", "nsec", "note", "nprofile", "nevent", "naddr", "nrelay"}
)

KEY_LENGTH = 32
_HEX_KEY = re.compile(r"^[0-9a-fA-F]{64}$")


def x_only(compressed_point: bytes) -> bytes:
    """Drop the parity prefix from a 33-byte compressed secp256k1 point."""
    if len(compressed_point) != KEY_LENGTH + 1:
        msg = f"expected a 33-byte compressed point, got {len(compressed_point)} bytes"
        raise ValueError(msg)
    return compressed_point[1:]


def is_hex_key(text: str) -> bool:
    """True if *text* is exactly 64 hexadecimal characters."""
    return _HEX_KEY.match(text) is not None


def _encode(prefix: str, key_hex: str) -> str:
    if not is_hex_key(key_hex):
        raise MalformedKey(f"not a 32-byte hex key: {key_hex!r}")
    data = bech32.convertbits(bytes.fromhex(key_hex), 8, 5, True)
    return bech32.bech32_encode(prefix, data)


def encode_public_key(pubkey_hex: str) -> str:
    """Encode an x-only public key as ``npub1…``."""
    return _encode(PUBLIC_PREFIX, pubkey_hex)


def encode_private_key(privkey_hex: str) -> str:
    """Encode a private key as ``nsec1…``."""
    return _encode(PRIVATE_PREFIX, privkey_hex)


def decode_nip19(text: str) -> tuple[str, str]:
    """Decode a bare-key NIP-19 string into ``(prefix, key_hex)``.

    Raises:
        MalformedKey: invalid bech32, bad checksum, or a payload that is
            not exactly 32 bytes.
    """
    prefix, data = bech32.bech32_decode(text.strip())
    if prefix is None or data is None:
        raise MalformedKey(f"not a valid bech32 string: {text!r}")
    decoded = bech32.convertbits(data, 5, 8, False)
    if decoded is None or len(decoded) != KEY_LENGTH:
        raise MalformedKey(f"{prefix} payload is not a 32-byte key")
    return prefix, bytes(decoded).hex()


def parse_public_key(text: str) -> str:
    """Normalise a candidate public key to lowercase hex.

    Accepts 64-character hex or an ``npub`` string.

    Raises:
        UnsupportedEncoding: a valid NIP-19 string with any other prefix
            (``nsec`` included).
        MalformedKey: the value is neither hex nor decodable NIP-19.
    """
    candidate = text.strip()
    if is_hex_key(candidate):
        return candidate.lower()

    if "1" in candidate:
        prefix = candidate.lower().rsplit("1", 1)[0]
        if prefix in KNOWN_PREFIXES and prefix != PUBLIC_PREFIX:
            # TLV-bearing prefixes (nprofile, nevent) can be longer than 32
            # bytes, so reject on prefix before insisting on key length.
            if bech32.bech32_decode(candidate)[0] is not None:
                raise UnsupportedEncoding(prefix)

    prefix, key_hex = decode_nip19(candidate)
    if prefix != PUBLIC_PREFIX:
        raise UnsupportedEncoding(prefix)
    return key_hex
