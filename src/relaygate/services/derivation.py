"""KeyDerivationService — master key material and descendant identities.

Constructed exactly once per process from a BIP39 mnemonic or a raw
seed, then shared read-only by every request context. Nothing is
mutated after ``__init__``, so concurrent callers need no locking.

INVARIANT: derived identities are never cached. Each call recomputes the
five CKD steps from the master key.
"""

from __future__ import annotations

import logging
import secrets

from mnemonic import Mnemonic

from relaygate.domain.encoding import encode_private_key, encode_public_key, x_only
from relaygate.domain.errors import InvalidCredential
from relaygate.domain.hd import PATH_PREFIX, ExtendedKey, format_path, master_key, validate_index
from relaygate.domain.types import DerivedIdentity

logger = logging.getLogger(__name__)

MNEMONIC_LANGUAGE = "english"
RANDOM_SEED_BYTES = 32


def generate_seed() -> bytes:
    """32 bytes of fresh randomness, usable as a raw seed."""
    return secrets.token_bytes(RANDOM_SEED_BYTES)


def _identity(key: ExtendedKey, *, index: int, path: str) -> DerivedIdentity:
    private_hex = key.private_key.hex()
    public_hex = x_only(key.public_key).hex()
    return DerivedIdentity(
        index=index,
        path=path,
        private_key=private_hex,
        public_key=public_hex,
        nsec=encode_private_key(private_hex),
        npub=encode_public_key(public_hex),
    )


class KeyDerivationService:
    """Deterministic Nostr key derivation from one master seed.

    Prefer the ``from_*`` constructors or :meth:`create`; ``__init__``
    takes an already-validated seed.
    """

    def __init__(self, seed: bytes, *, mnemonic: str | None = None) -> None:
        self._master = master_key(seed)
        self._mnemonic = mnemonic

    # --- Construction ---

    @classmethod
    def from_mnemonic(cls, phrase: str) -> KeyDerivationService:
        """Validate a BIP39 phrase and derive its seed (empty passphrase)."""
        words = " ".join(phrase.split())
        if not words or not Mnemonic(MNEMONIC_LANGUAGE).check(words):
            raise InvalidCredential("invalid mnemonic")
        return cls(Mnemonic.to_seed(words, passphrase=""), mnemonic=words)

    @classmethod
    def from_seed(cls, seed: bytes) -> KeyDerivationService:
        return cls(bytes(seed))

    @classmethod
    def from_seed_hex(cls, seed_hex: str) -> KeyDerivationService:
        try:
            seed = bytes.fromhex(seed_hex.strip())
        except ValueError as exc:
            raise InvalidCredential(f"invalid seed hex: {exc}") from exc
        return cls(seed)

    @classmethod
    def generate(cls, *, strength: int = 128) -> KeyDerivationService:
        """Create a service around a brand-new mnemonic (demo and ad hoc use)."""
        phrase = Mnemonic(MNEMONIC_LANGUAGE).generate(strength=strength)
        logger.info("Generated new %d-word mnemonic", len(phrase.split()))
        return cls.from_mnemonic(phrase)

    @classmethod
    def create(
        cls,
        *,
        mnemonic: str | None = None,
        seed_hex: str | None = None,
    ) -> KeyDerivationService:
        """Build from whichever credential is supplied; generate if neither."""
        if mnemonic and mnemonic.strip():
            return cls.from_mnemonic(mnemonic)
        if seed_hex and seed_hex.strip():
            return cls.from_seed_hex(seed_hex)
        return cls.generate()

    # --- Accessors ---

    @property
    def mnemonic(self) -> str | None:
        """The phrase this service was built from, or None for raw seeds."""
        return self._mnemonic

    # --- Derivation ---

    def derive_master(self) -> DerivedIdentity:
        """The root identity itself (depth 0)."""
        return _identity(self._master, index=0, path="m")

    def derive_child(self, index: int) -> DerivedIdentity:
        """Derive the identity at ``m/44'/1237'/0'/0/index``.

        Raises:
            ValueError: *index* is negative or not below 2**31.
            DerivationError: a CKD step produced an invalid scalar.
        """
        validate_index(index)
        key = self._master.derive_path((*PATH_PREFIX, index))
        return _identity(key, index=index, path=format_path(index))

    def derive_range(self, start: int, count: int) -> list[DerivedIdentity]:
        """Derive *count* consecutive identities beginning at *start*."""
        if count < 0:
            msg = f"count must be non-negative, got {count}"
            raise ValueError(msg)
        return [self.derive_child(start + i) for i in range(count)]

    def public_key(self, index: int) -> str:
        """Hex x-only public key at *index* (skips NIP-19 encoding)."""
        validate_index(index)
        key = self._master.derive_path((*PATH_PREFIX, index))
        return x_only(key.public_key).hex()

    @property
    def master_public_key(self) -> str:
        return x_only(self._master.public_key).hex()
