"""Reveal transaction construction, signing and witness finalization.

The reveal spends the commit output through the inscription leaf. It is a
script-path spend, so the witness is assembled explicitly as
``[signature, leaf script, control block]`` rather than by a generic
key-path finalizer.
"""

from __future__ import annotations

import logging
import re
import secrets
from dataclasses import dataclass
from typing import List

from bitcoinutils.constants import (
    SIGHASH_ALL,
    SIGHASH_ANYONECANPAY,
    SIGHASH_NONE,
    SIGHASH_SINGLE,
    TAPROOT_SIGHASH_ALL,
)
from bitcoinutils.script import Script
from bitcoinutils.transactions import Transaction, TxWitnessInput
from coincurve import PrivateKey, PublicKeyXOnly

from .address import address_to_output_script
from .commit import CommitTxData, new_reveal_transaction
from .errors import FinalizationError, FundingError, InsufficientFundsError, SignatureError
from .inscription_id import derive_inscription_id
from .keys import KeyInput, public_key_from_private, scoped_private_key
from .taproot import TAPSCRIPT_LEAF_VERSION, is_valid_control_block

logger = logging.getLogger(__name__)

# The inscription is carried by the first sat of the first output.
INSCRIPTION_OUTPUT_INDEX = 0

# BIP341 default type: commits like SIGHASH_ALL, 64-byte signature
SIGHASH_DEFAULT = TAPROOT_SIGHASH_ALL

VALID_TAPROOT_SIGHASH_TYPES = frozenset(
    {
        SIGHASH_DEFAULT,
        SIGHASH_ALL,
        SIGHASH_NONE,
        SIGHASH_SINGLE,
        SIGHASH_ALL | SIGHASH_ANYONECANPAY,
        SIGHASH_NONE | SIGHASH_ANYONECANPAY,
        SIGHASH_SINGLE | SIGHASH_ANYONECANPAY,
    }
)

_TXID_RE = re.compile(r"^[0-9a-fA-F]{64}$")


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class CommitFundingResult:
    """The funded commit output, as reported by the funding collaborator."""

    txid: str
    output_index: int
    sent_amount: int

    def __post_init__(self) -> None:
        if not isinstance(self.txid, str) or not _TXID_RE.match(self.txid):
            raise FundingError(f"Commit txid must be 64 hex characters, got {self.txid!r}")
        if not _is_int(self.output_index) or self.output_index < 0:
            raise FundingError(f"Commit output index must be a non-negative integer, got {self.output_index!r}")
        if not _is_int(self.sent_amount) or self.sent_amount < 0:
            raise FundingError(f"Commit amount must be a non-negative integer, got {self.sent_amount!r}")


@dataclass(frozen=True)
class RevealTxResult:
    txid: str
    raw_tx_hex: str
    inscription_id: str
    virtual_size: int
    signature: str
    fee: int


def build_witness_stack(signature: bytes, compiled_script: bytes, control_block: bytes) -> List[bytes]:
    """Return the script-path witness ``[signature, script, control block]``."""

    if len(signature) not in (64, 65):
        raise FinalizationError(f"Schnorr signature must be 64 or 65 bytes, got {len(signature)}")
    if not compiled_script:
        raise FinalizationError("Leaf script is required to finalize the reveal input")
    if not control_block:
        raise FinalizationError("Control block is required to finalize the reveal input")
    if not is_valid_control_block(control_block, TAPSCRIPT_LEAF_VERSION):
        raise FinalizationError(f"Malformed control block ({len(control_block)} bytes)")
    return [bytes(signature), bytes(compiled_script), bytes(control_block)]


def reveal_signature_hash(
    tx: Transaction,
    commit_data: CommitTxData,
    funding: CommitFundingResult,
    sighash_type: int = SIGHASH_DEFAULT,
) -> bytes:
    """BIP341 script-path sighash for input 0 of ``tx`` spending the commit."""

    if sighash_type not in VALID_TAPROOT_SIGHASH_TYPES:
        raise SignatureError(f"Unsupported Taproot sighash type {sighash_type:#04x}")
    leaf = Script.from_raw(commit_data.compiled_script.hex())
    if leaf.to_bytes() != commit_data.compiled_script:
        raise SignatureError("Leaf script does not survive re-serialization for signing")
    return tx.get_transaction_taproot_digest(
        0,
        [Script(["OP_1", commit_data.output_key_hex])],
        [funding.sent_amount],
        ext_flag=1,
        script=leaf,
        leaf_ver=commit_data.leaf_version,
        sighash=sighash_type,
    )


def sign_taproot_script_path(secret: bytes | bytearray, sighash: bytes, aux_rand: bytes | None = None) -> bytes:
    """BIP340-sign ``sighash`` with ``secret``."""

    if aux_rand is None:
        aux_rand = secrets.token_bytes(32)
    elif len(aux_rand) != 32:
        raise SignatureError(f"Auxiliary randomness must be 32 bytes, got {len(aux_rand)}")
    try:
        return PrivateKey(bytes(secret)).sign_schnorr(sighash, aux_rand)
    except ValueError as exc:
        raise SignatureError(f"Schnorr signing failed: {exc}") from exc


def build_and_sign_reveal(
    commit_data: CommitTxData,
    funding: CommitFundingResult,
    destination_address: str,
    private_key: KeyInput,
    output_amount: int,
    *,
    fee_rate_floor: float | None = None,
    aux_rand: bytes | None = None,
    sighash_type: int = SIGHASH_DEFAULT,
) -> RevealTxResult:
    """Build, sign and finalize the reveal transaction.

    ``private_key`` must belong to the internal key the commit was built
    with. The funded amount must cover ``output_amount``; whatever remains is
    the miner fee. When ``fee_rate_floor`` is given, reveals paying less than
    that many sat/vB are rejected.
    """

    if not _is_int(output_amount) or output_amount <= 0:
        raise FundingError(f"Reveal output amount must be a positive integer, got {output_amount!r}")
    fee = funding.sent_amount - output_amount
    if fee < 0:
        raise InsufficientFundsError(
            f"Commit output holds {funding.sent_amount} sats but the reveal pays {output_amount}"
        )
    if fee == 0:
        logger.warning("Reveal for %s pays no fee and is unlikely to relay", commit_data.commit_address)

    control_block = commit_data.control_block
    internal_key = bytes.fromhex(commit_data.internal_pubkey_hex)

    tx = new_reveal_transaction(
        funding.txid.lower(),
        funding.output_index,
        address_to_output_script(destination_address, commit_data.network),
        output_amount,
    )
    sighash = reveal_signature_hash(tx, commit_data, funding, sighash_type)

    with scoped_private_key(private_key) as secret:
        if public_key_from_private(secret).x_only_public_key != internal_key:
            raise SignatureError("Private key does not match the commit internal key")
        signature = sign_taproot_script_path(secret, sighash, aux_rand)

    if not PublicKeyXOnly(internal_key).verify(signature, sighash):
        raise SignatureError("Schnorr signature failed verification against the internal key")
    if sighash_type != SIGHASH_DEFAULT:
        signature += bytes([sighash_type])

    witness = build_witness_stack(signature, commit_data.compiled_script, control_block)
    tx.witnesses.append(TxWitnessInput([item.hex() for item in witness]))

    txid = tx.get_txid()
    vsize = tx.get_vsize()
    if fee_rate_floor is not None and fee < fee_rate_floor * vsize:
        raise InsufficientFundsError(
            f"Reveal fee {fee} sats is below {fee_rate_floor} sat/vB for {vsize} vbytes"
        )

    inscription_id = derive_inscription_id(txid, INSCRIPTION_OUTPUT_INDEX)
    logger.info("Built reveal %s (%d vB, fee %d) for inscription %s", txid, vsize, fee, inscription_id)

    return RevealTxResult(
        txid=txid,
        raw_tx_hex=tx.to_hex(),
        inscription_id=inscription_id,
        virtual_size=vsize,
        signature=signature.hex(),
        fee=fee,
    )
