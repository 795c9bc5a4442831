"""Commit-side data for inscription reveals.

:func:`build_commit_data` derives everything a funding step needs (the
bech32m commit address and its output script) and everything the reveal
step needs later (compiled leaf, leaf hash, control block). Nothing here
touches the network; funding the address is the caller's job.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Tuple

from bitcoinutils.script import Script
from bitcoinutils.transactions import Transaction, TxInput, TxOutput, TxWitnessInput

from .address import address_to_output_script, create_taproot_address
from .config import InscriberConfig, Network, resolve_network
from .errors import FundingError
from .inscriptions import Inscription, build_inscription_script
from .keys import KeyInput, parse_public_key
from .script import ScriptElement, compile_script
from .taproot import (
    TAPSCRIPT_LEAF_VERSION,
    build_control_block,
    p2tr_output_script,
    taproot_leaf_hash,
    taproot_tweak_pubkey,
)

logger = logging.getLogger(__name__)

# Size of a BIP340 signature under SIGHASH_DEFAULT.
SCHNORR_SIGNATURE_SIZE = 64

REVEAL_TX_VERSION = 2
REVEAL_LOCKTIME = 0
REVEAL_SEQUENCE = b"\xff\xff\xff\xff"


@dataclass(frozen=True)
class CommitTxData:
    """Deterministic commit data derived from a key and an inscription."""

    script: Tuple[ScriptElement, ...]
    compiled_script: bytes
    leaf_hash: str
    internal_pubkey_hex: str
    output_key_hex: str
    output_key_parity: int
    control_block_hex: str
    commit_address: str
    output_script: bytes
    network: Network
    inscription: Inscription
    leaf_version: int = TAPSCRIPT_LEAF_VERSION

    @property
    def control_block(self) -> bytes:
        return bytes.fromhex(self.control_block_hex)


def build_commit_data(
    public_key: KeyInput,
    inscription: Inscription,
    network: str | Network | None = None,
    *,
    config: InscriberConfig | None = None,
) -> CommitTxData:
    """Derive the inscription leaf, Taproot output and commit address.

    ``public_key`` is a 33-byte compressed key (bytes or hex); a 32-byte
    x-only key is accepted as well. The script tree has a single leaf, so the
    merkle root is the leaf hash and the control block carries no path.
    Without an explicit ``network`` the one from ``config`` (or testnet) is used.
    """

    network = resolve_network(network, config)
    key_material = parse_public_key(public_key)
    internal_key = key_material.x_only_public_key

    script = build_inscription_script(internal_key, inscription)
    compiled_script = compile_script(script)

    leaf_hash = taproot_leaf_hash(compiled_script, TAPSCRIPT_LEAF_VERSION)
    output_key, parity = taproot_tweak_pubkey(internal_key, leaf_hash)
    control_block = build_control_block(internal_key, parity)
    output_script = p2tr_output_script(output_key)
    commit_address = create_taproot_address(output_key, network)

    logger.debug(
        "Derived commit address %s (leaf %s, %d-byte script) on %s",
        commit_address,
        leaf_hash.hex(),
        len(compiled_script),
        network.name,
    )

    return CommitTxData(
        script=tuple(script),
        compiled_script=compiled_script,
        leaf_hash=leaf_hash.hex(),
        internal_pubkey_hex=internal_key.hex(),
        output_key_hex=output_key.hex(),
        output_key_parity=parity,
        control_block_hex=control_block.hex(),
        commit_address=commit_address,
        output_script=output_script,
        network=network,
        inscription=inscription,
    )

def new_reveal_transaction(
    commit_txid: str,
    commit_output_index: int,
    destination_script: bytes,
    output_amount: int,
) -> Transaction:
    """Unsigned reveal spending one commit output to one destination output."""

    return Transaction(
        inputs=[TxInput(commit_txid, commit_output_index, sequence=REVEAL_SEQUENCE)],
        outputs=[TxOutput(output_amount, Script.from_raw(destination_script.hex()))],
        version=REVEAL_TX_VERSION.to_bytes(4, "little"),
        locktime=REVEAL_LOCKTIME.to_bytes(4, "little"),
        has_segwit=True,
    )


def estimate_reveal_vsize(commit_data: CommitTxData, destination_address: str) -> int:
    """Return the vsize of the reveal transaction for ``commit_data``.

    The reveal is assembled with a placeholder signature of the final size,
    so the result matches a signed reveal using ``SIGHASH_DEFAULT``.
    """

    tx = new_reveal_transaction(
        "00" * 32,
        0,
        address_to_output_script(destination_address, commit_data.network),
        0,
    )
    tx.witnesses.append(
        TxWitnessInput(
            [
                (b"\x00" * SCHNORR_SIGNATURE_SIZE).hex(),
                commit_data.compiled_script.hex(),
                commit_data.control_block_hex,
            ]
        )
    )
    return tx.get_vsize()


def required_commit_amount(
    commit_data: CommitTxData,
    destination_address: str,
    fee_rate_sat_vb: float | None = None,
    output_amount: int | None = None,
    *,
    config: InscriberConfig | None = None,
) -> int:
    """Amount the commit output must hold to fund the reveal.

    This is the reveal output (the inscription postage unless overridden)
    plus the reveal fee. The fee rate falls back to ``config.fee_rate_sat_vb``.
    """

    if fee_rate_sat_vb is None and config is not None:
        fee_rate_sat_vb = config.fee_rate_sat_vb
    if fee_rate_sat_vb is None:
        raise FundingError("A fee rate is required, either passed in or configured")
    if fee_rate_sat_vb < 0:
        raise FundingError(f"Fee rate must not be negative, got {fee_rate_sat_vb}")
    amount = commit_data.inscription.postage if output_amount is None else output_amount
    vsize = estimate_reveal_vsize(commit_data, destination_address)
    fee = int(math.ceil(fee_rate_sat_vb * vsize))
    logger.debug("Reveal vsize %d at %.2f sat/vB needs fee %d", vsize, fee_rate_sat_vb, fee)
    return amount + fee
