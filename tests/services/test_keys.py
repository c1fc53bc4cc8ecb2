"""Tests for KeyService."""

from __future__ import annotations

from relaygate.services.derivation import KeyDerivationService
from relaygate.services.keys import KeyService
from tests.conftest import NIP06_PRIVATE_KEY, NIP06_PUBLIC_KEY


class TestMasterAndDerive:
    def test_master_hides_private(self, deriver: KeyDerivationService) -> None:
        result = KeyService(deriver).master()
        assert result.ok
        assert result.op == "master_key"
        assert result.data["path"] == "m"
        assert "private_key" not in result.data
        assert "nsec" not in result.data

    def test_master_show_private(self, deriver: KeyDerivationService) -> None:
        result = KeyService(deriver).master(show_private=True)
        assert result.data["nsec"].startswith("nsec1")

    def test_derive(self, deriver: KeyDerivationService) -> None:
        result = KeyService(deriver).derive(0, 3)
        assert result.ok
        assert result.data["start"] == 0
        assert result.data["count"] == 3
        assert result.data["items"][0]["public_key"] == NIP06_PUBLIC_KEY
        assert "private_key" not in result.data["items"][0]

    def test_derive_show_private(self, deriver: KeyDerivationService) -> None:
        result = KeyService(deriver).derive(0, 1, show_private=True)
        assert result.data["items"][0]["private_key"] == NIP06_PRIVATE_KEY

    def test_derive_out_of_range(self, deriver: KeyDerivationService) -> None:
        result = KeyService(deriver).derive(2**31 - 1, 2)
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "INVALID_ARGUMENT"


class TestCheck:
    def test_descendant(self, deriver: KeyDerivationService) -> None:
        result = KeyService(deriver).check(deriver.public_key(2), 10)
        assert result.ok
        assert result.data["belongs"] is True
        assert result.data["index"] == 2
        assert result.data["classification"] == "descendant"
        assert result.data["max_index"] == 10

    def test_not_found(
        self, deriver: KeyDerivationService, other_deriver: KeyDerivationService
    ) -> None:
        result = KeyService(deriver).check(other_deriver.public_key(0), 5)
        assert result.ok
        assert result.data["belongs"] is False
        assert result.data["classification"] == "none"

    def test_malformed(self, deriver: KeyDerivationService) -> None:
        result = KeyService(deriver).check("nope", 5)
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "MALFORMED_KEY"

    def test_negative_bound(self, deriver: KeyDerivationService) -> None:
        result = KeyService(deriver).check(deriver.public_key(0), -1)
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "INVALID_ARGUMENT"


class TestStaticOperations:
    def test_generate(self) -> None:
        result = KeyService.generate(count=2)
        assert result.ok
        assert len(result.data["mnemonic"].split()) == 12
        assert result.data["master_npub"].startswith("npub1")
        assert len(result.data["items"]) == 2
        assert result.warnings

    def test_generate_24_words(self) -> None:
        result = KeyService.generate(strength=256, count=0)
        assert len(result.data["mnemonic"].split()) == 24
        assert result.data["items"] == []

    def test_encode_public(self) -> None:
        result = KeyService.encode(NIP06_PUBLIC_KEY)
        assert result.ok
        assert result.data["encoded"].startswith("npub1")

    def test_encode_private(self) -> None:
        result = KeyService.encode(NIP06_PRIVATE_KEY, private=True)
        assert result.data["encoded"].startswith("nsec1")

    def test_encode_rejects_bad_hex(self) -> None:
        result = KeyService.encode("xyz")
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "MALFORMED_KEY"

    def test_decode_npub(self) -> None:
        npub = KeyService.encode(NIP06_PUBLIC_KEY).data["encoded"]
        result = KeyService.decode(npub)
        assert result.data == {"prefix": "npub", "hex": NIP06_PUBLIC_KEY}

    def test_decode_hex_adds_npub(self) -> None:
        result = KeyService.decode(NIP06_PUBLIC_KEY.upper())
        assert result.data["prefix"] == "hex"
        assert result.data["hex"] == NIP06_PUBLIC_KEY
        assert result.data["npub"].startswith("npub1")

    def test_decode_garbage(self) -> None:
        result = KeyService.decode("garbage")
        assert not result.ok
