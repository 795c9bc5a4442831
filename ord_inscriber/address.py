"""Destination and commit address handling.

Segwit addresses (BIP173 bech32, BIP350 bech32m) go through the reference
codec shipped with ``bitcoin-utils``; legacy base58 P2PKH/P2SH destinations
are resolved with its address classes.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Tuple

import bitcoinutils.bech32
from bitcoinutils.keys import P2pkhAddress, P2shAddress
from bitcoinutils.setup import get_network as get_library_network
from bitcoinutils.setup import setup as setup_library

from .config import Network
from .errors import InvalidAddressError

LEGACY_ADDRESS_TYPES = (P2pkhAddress, P2shAddress)


@contextmanager
def _library_network(network: Network) -> Iterator[None]:
    # bitcoin-utils validates base58 prefixes against a process-wide network
    previous = get_library_network()
    setup_library(network.library_name)
    try:
        yield
    finally:
        setup_library(previous)


def encode_segwit_address(hrp: str, witver: int, witprog: bytes) -> str:
    """Encode ``witprog`` as bech32 (v0) or bech32m (v1+) under ``hrp``."""

    if not 0 <= witver <= 16:
        raise InvalidAddressError(f"Witness version must be 0-16, got {witver}")
    address = bitcoinutils.bech32.encode(hrp, witver, list(witprog))
    if address is None:
        raise InvalidAddressError(
            f"Cannot encode a {len(witprog)}-byte v{witver} witness program under hrp {hrp!r}"
        )
    return address


def decode_segwit_address(address: str, network: Network) -> Tuple[int, bytes]:
    """Decode a segwit address for ``network`` into ``(witver, witprog)``.

    The hrp must match the network and the checksum flavour must match the
    witness version.
    """

    witver, witprog = bitcoinutils.bech32.decode(network.hrp, address)
    if witver is None or witprog is None:
        raise InvalidAddressError(f"{address!r} is not a valid {network.name} segwit address")
    return witver, bytes(witprog)


def _legacy_output_script(address: str, network: Network) -> bytes:
    with _library_network(network):
        for address_type in LEGACY_ADDRESS_TYPES:
            try:
                parsed = address_type(address=address)
            except (TypeError, ValueError):
                continue
            return parsed.to_script_pub_key().to_bytes()
    raise InvalidAddressError(f"{address!r} is not a valid {network.name} address")


def address_to_output_script(address: str, network: Network) -> bytes:
    """Return the scriptPubKey paying to ``address`` on ``network``.

    Segwit (any witness version) and legacy P2PKH/P2SH destinations are
    accepted.
    """

    if not isinstance(address, str) or not address:
        raise InvalidAddressError(f"Address must be a non-empty string, got {address!r}")
    if address.lower().startswith(network.hrp + "1"):
        witver, witprog = decode_segwit_address(address, network)
        version_op = 0x00 if witver == 0 else 0x50 + witver
        return bytes([version_op, len(witprog)]) + witprog
    return _legacy_output_script(address, network)


def create_taproot_address(output_key: bytes, network: Network) -> str:
    """Create a Taproot (bech32m, witness v1) address from an output key."""

    if len(output_key) != 32:
        raise InvalidAddressError(f"Output key must be 32 bytes, got {len(output_key)}")
    return encode_segwit_address(network.hrp, 1, output_key)
