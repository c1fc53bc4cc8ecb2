"""BIP32 hierarchical deterministic derivation on secp256k1.

Only private-key (CKDpriv) derivation is implemented; every identity the
relay recognises is derived from the master private key along

    m / 44' / 1237' / 0' / 0 / index

Point multiplication is delegated to libsecp256k1 via ``coincurve``.
Scalar arithmetic is plain integer math modulo the curve order.
"""

from __future__ import annotations

import hashlib
import hmac
from dataclasses import dataclass, field

from coincurve import PrivateKey

from relaygate.domain.errors import DerivationError, InvalidCredential

CURVE_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
HARDENED_OFFSET = 0x80000000
MASTER_HMAC_KEY = b"Bitcoin seed"

PURPOSE = 44
COIN_TYPE = 1237
ACCOUNT = 0
CHAIN = 0

# Steps before the trailing index, as raw BIP32 child numbers.
PATH_PREFIX: tuple[int, ...] = (
    PURPOSE + HARDENED_OFFSET,
    COIN_TYPE + HARDENED_OFFSET,
    ACCOUNT + HARDENED_OFFSET,
    CHAIN,
)

MIN_SEED_BYTES = 16
MAX_SEED_BYTES = 64


def format_path(index: int) -> str:
    """Render the derivation path for *index*, e.g. ``m/44'/1237'/0'/0/7``."""
    return f"m/{PURPOSE}'/{COIN_TYPE}'/{ACCOUNT}'/{CHAIN}/{index}"


def validate_index(index: int) -> int:
    """Return *index* if it is a valid non-hardened child number."""
    if isinstance(index, bool) or not isinstance(index, int):
        msg = f"index must be an integer, got {type(index).__name__}"
        raise TypeError(msg)
    if not 0 <= index < HARDENED_OFFSET:
        msg = f"index must be in [0, {HARDENED_OFFSET - 1}], got {index}"
        raise ValueError(msg)
    return index


def _ser32(i: int) -> bytes:
    return i.to_bytes(4, "big")


def _ser256(k: int) -> bytes:
    return k.to_bytes(32, "big")


@dataclass(frozen=True)
class ExtendedKey:
    """A private extended key: scalar, chain code, and tree position."""

    private_key: bytes = field(repr=False)
    chain_code: bytes = field(repr=False)
    depth: int = 0
    child_number: int = 0

    @property
    def secret(self) -> int:
        return int.from_bytes(self.private_key, "big")

    @property
    def public_key(self) -> bytes:
        """33-byte compressed public point."""
        return PrivateKey(self.private_key).public_key.format(compressed=True)

    def child(self, child_number: int) -> ExtendedKey:
        """One CKDpriv step.

        Hardened child numbers mix the parent private key into the HMAC,
        non-hardened ones the parent compressed public key.

        Raises:
            DerivationError: ``IL >= n`` or the child scalar is zero.
        """
        if child_number >= HARDENED_OFFSET:
            data = b"\x00" + self.private_key + _ser32(child_number)
        else:
            data = self.public_key + _ser32(child_number)

        digest = hmac.new(self.chain_code, data, hashlib.sha512).digest()
        il = int.from_bytes(digest[:32], "big")
        if il >= CURVE_ORDER:
            msg = f"IL out of range at depth {self.depth + 1}, child {child_number}"
            raise DerivationError(msg)

        child_secret = (il + self.secret) % CURVE_ORDER
        if child_secret == 0:
            msg = f"zero child key at depth {self.depth + 1}, child {child_number}"
            raise DerivationError(msg)

        return ExtendedKey(
            private_key=_ser256(child_secret),
            chain_code=digest[32:],
            depth=self.depth + 1,
            child_number=child_number,
        )

    def derive_path(self, child_numbers: tuple[int, ...] | list[int]) -> ExtendedKey:
        """Apply successive CKD steps."""
        key = self
        for number in child_numbers:
            key = key.child(number)
        return key


def master_key(seed: bytes) -> ExtendedKey:
    """Derive the depth-0 master key from a seed.

    Raises:
        InvalidCredential: seed length outside 16..64 bytes, or the seed
            yields an unusable master scalar.
    """
    if not MIN_SEED_BYTES <= len(seed) <= MAX_SEED_BYTES:
        msg = f"seed must be {MIN_SEED_BYTES}-{MAX_SEED_BYTES} bytes, got {len(seed)}"
        raise InvalidCredential(msg)

    digest = hmac.new(MASTER_HMAC_KEY, seed, hashlib.sha512).digest()
    secret = int.from_bytes(digest[:32], "big")
    if secret == 0 or secret >= CURVE_ORDER:
        raise InvalidCredential("seed produces an unusable master key")
    return ExtendedKey(private_key=digest[:32], chain_code=digest[32:])
