"""Exception hierarchy for inscription building."""

from __future__ import annotations


class InscriberError(RuntimeError):
    """Base class for all errors raised by :mod:`ord_inscriber`."""


class InvalidKeyError(InscriberError):
    """Raised when a public or private key is malformed or off the curve."""


class InvalidInscriptionError(InscriberError):
    """Raised when inscription content, content type, or ID is malformed."""


class EncodingError(InscriberError):
    """Raised when data cannot be encoded into a script or transaction."""


class InvalidAddressError(EncodingError):
    """Raised when an address cannot be decoded into an output script."""


class SignatureError(InscriberError):
    """Raised when the reveal input cannot be signed."""


class FinalizationError(InscriberError):
    """Raised when the reveal witness stack cannot be assembled."""


class FundingError(InscriberError):
    """Raised when commit funding data is unusable for a reveal."""


class InsufficientFundsError(FundingError):
    """Raised when the funded amount does not cover the reveal output and fee."""


class ConfigurationError(InscriberError):
    """Raised when configuration is invalid."""
