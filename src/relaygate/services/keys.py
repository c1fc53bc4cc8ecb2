"""KeyService — CLI-facing key operations returning ServiceResult.

Wraps :class:`KeyDerivationService` and :class:`MembershipOracle` so the
commands layer never handles exceptions directly: every relaygate error
becomes a failed ServiceResult carrying the error's code.
"""

from __future__ import annotations

from typing import Any

from relaygate.domain.encoding import (
    decode_nip19,
    encode_private_key,
    encode_public_key,
    is_hex_key,
)
from relaygate.domain.errors import RelaygateError
from relaygate.domain.types import DerivedIdentity
from relaygate.services.derivation import KeyDerivationService
from relaygate.services.membership import MembershipOracle
from relaygate.services.result import ServiceError, ServiceResult
from relaygate.services.telemetry import traced


def _invalid_argument(op: str, exc: ValueError) -> ServiceResult:
    return ServiceResult(
        ok=False,
        op=op,
        error=ServiceError(code="INVALID_ARGUMENT", message=str(exc)),
    )


def _identity_data(identity: DerivedIdentity, *, show_private: bool) -> dict[str, Any]:
    if show_private:
        return identity.model_dump()
    return identity.public_view()


class KeyService:
    """Key inspection operations over one deriver."""

    def __init__(self, deriver: KeyDerivationService) -> None:
        self._deriver = deriver
        self._oracle = MembershipOracle(deriver)

    @traced
    def master(self, *, show_private: bool = False) -> ServiceResult:
        identity = self._deriver.derive_master()
        return ServiceResult(
            ok=True,
            op="master_key",
            data=_identity_data(identity, show_private=show_private),
        )

    @traced
    def derive(
        self, start: int = 0, count: int = 5, *, show_private: bool = False
    ) -> ServiceResult:
        try:
            identities = self._deriver.derive_range(start, count)
        except RelaygateError as exc:
            return ServiceResult.failure("derive_keys", exc)
        except ValueError as exc:
            return _invalid_argument("derive_keys", exc)
        return ServiceResult(
            ok=True,
            op="derive_keys",
            data={
                "start": start,
                "count": len(identities),
                "items": [_identity_data(i, show_private=show_private) for i in identities],
            },
        )

    @traced
    def check(self, candidate: str, max_index: int = 100) -> ServiceResult:
        try:
            result = self._oracle.check(candidate, max_index)
        except RelaygateError as exc:
            return ServiceResult.failure("check_key", exc)
        except ValueError as exc:
            return _invalid_argument("check_key", exc)
        return ServiceResult(
            ok=True,
            op="check_key",
            data={
                "key": candidate,
                "max_index": max_index,
                **result.model_dump(mode="json"),
            },
        )

    @staticmethod
    def generate(*, strength: int = 128, count: int = 3) -> ServiceResult:
        """Create a brand-new mnemonic and show its first identities."""
        deriver = KeyDerivationService.generate(strength=strength)
        master = deriver.derive_master()
        return ServiceResult(
            ok=True,
            op="generate_mnemonic",
            data={
                "mnemonic": deriver.mnemonic,
                "master_npub": master.npub,
                "items": [i.public_view() for i in deriver.derive_range(0, count)],
            },
            warnings=["Store the mnemonic securely; it controls every derived identity."],
        )

    @staticmethod
    def encode(key_hex: str, *, private: bool = False) -> ServiceResult:
        try:
            encoded = encode_private_key(key_hex) if private else encode_public_key(key_hex)
        except RelaygateError as exc:
            return ServiceResult.failure("encode_key", exc)
        return ServiceResult(
            ok=True,
            op="encode_key",
            data={"hex": key_hex.lower(), "encoded": encoded},
        )

    @staticmethod
    def decode(text: str) -> ServiceResult:
        if is_hex_key(text.strip()):
            hex_key = text.strip().lower()
            return ServiceResult(
                ok=True,
                op="decode_key",
                data={"prefix": "hex", "hex": hex_key, "npub": encode_public_key(hex_key)},
            )
        try:
            prefix, hex_key = decode_nip19(text)
        except RelaygateError as exc:
            return ServiceResult.failure("decode_key", exc)
        return ServiceResult(ok=True, op="decode_key", data={"prefix": prefix, "hex": hex_key})
