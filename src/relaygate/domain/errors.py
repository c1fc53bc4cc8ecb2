"""Exception hierarchy for relaygate.

Each error carries a stable ``code`` that the service layer copies into
:class:`~relaygate.services.result.ServiceError` and the policy engine
maps onto a :class:`~relaygate.domain.types.DecisionCategory`.
"""

from __future__ import annotations


class RelaygateError(Exception):
    """Base class for all relaygate errors."""

    code = "RELAYGATE_ERROR"


class ConfigurationError(RelaygateError):
    """Missing, duplicate, or contradictory startup configuration."""

    code = "CONFIGURATION_ERROR"


class InvalidCredential(RelaygateError):
    """Mnemonic failed its checksum, or a raw seed is malformed."""

    code = "INVALID_CREDENTIAL"


class DerivationError(RelaygateError):
    """A derivation step produced an invalid private scalar.

    Must surface to the caller: substituting the next index would shift
    the index-to-key mapping relative to every other client.
    """

    code = "DERIVATION_ERROR"


class MalformedKey(RelaygateError):
    """A candidate key is neither 64-char hex nor a valid NIP-19 string."""

    code = "MALFORMED_KEY"


class UnsupportedEncoding(RelaygateError):
    """A candidate key decoded, but with a prefix other than ``npub``."""

    code = "UNSUPPORTED_ENCODING"

    def __init__(self, prefix: str) -> None:
        super().__init__(f"unsupported NIP-19 format: {prefix}")
        self.prefix = prefix
