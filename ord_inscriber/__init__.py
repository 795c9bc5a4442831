"""Ordinals inscription commit/reveal transaction builder."""

from .commit import CommitTxData, build_commit_data, estimate_reveal_vsize, required_commit_amount
from .config import (
    MAINNET,
    REGTEST,
    SIGNET,
    TESTNET,
    InscriberConfig,
    Network,
    get_network,
    load_inscriber_config,
    resolve_network,
)
from .errors import (
    ConfigurationError,
    EncodingError,
    FinalizationError,
    FundingError,
    InscriberError,
    InsufficientFundsError,
    InvalidAddressError,
    InvalidInscriptionError,
    InvalidKeyError,
    SignatureError,
)
from .inscription_id import derive_inscription_id, parse_inscription_id
from .inscriptions import (
    TEXT_CONTENT_TYPE,
    Inscription,
    build_inscription_script,
    create_inscription,
    create_text_inscription,
    parse_inscription_script,
)
from .keys import TaprootKeyMaterial, parse_public_key, public_key_from_private
from .reveal import (
    SIGHASH_DEFAULT,
    CommitFundingResult,
    RevealTxResult,
    build_and_sign_reveal,
    build_witness_stack,
    reveal_signature_hash,
)

__all__ = [
    "CommitFundingResult",
    "CommitTxData",
    "ConfigurationError",
    "EncodingError",
    "FinalizationError",
    "FundingError",
    "InscriberConfig",
    "InscriberError",
    "Inscription",
    "InsufficientFundsError",
    "InvalidAddressError",
    "InvalidInscriptionError",
    "InvalidKeyError",
    "MAINNET",
    "Network",
    "REGTEST",
    "RevealTxResult",
    "SIGHASH_DEFAULT",
    "SIGNET",
    "SignatureError",
    "TESTNET",
    "TEXT_CONTENT_TYPE",
    "TaprootKeyMaterial",
    "build_and_sign_reveal",
    "build_commit_data",
    "build_inscription_script",
    "build_witness_stack",
    "create_inscription",
    "create_text_inscription",
    "derive_inscription_id",
    "estimate_reveal_vsize",
    "get_network",
    "load_inscriber_config",
    "parse_inscription_id",
    "parse_inscription_script",
    "parse_public_key",
    "public_key_from_private",
    "required_commit_amount",
    "resolve_network",
    "reveal_signature_hash",
]
