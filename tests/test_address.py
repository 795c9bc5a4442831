from __future__ import annotations

import pytest
from bitcoinutils.setup import get_network as get_library_network
from bitcoinutils.setup import setup as setup_library

from ord_inscriber.address import (
    address_to_output_script,
    create_taproot_address,
    decode_segwit_address,
    encode_segwit_address,
)
from ord_inscriber.config import MAINNET, REGTEST, SIGNET, TESTNET
from ord_inscriber.errors import InvalidAddressError

G_X = bytes.fromhex("79be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f81798")


def test_bip173_v0_address_decodes_to_p2wpkh_script() -> None:
    script = address_to_output_script("BC1QW508D6QEJXTDG4Y5R3ZARVARY0C5XW7KV8F3T4", MAINNET)

    assert script.hex() == "0014751e76e8199196d454941c45d1b3a323f1433bd6"


def test_bip350_taproot_address_vector() -> None:
    address = "bc1p0xlxvlhemja6c4dqv22uapctqupfhlxm9h8z3k2e72q4k9hcz7vqzk5jj0"

    assert create_taproot_address(G_X, MAINNET) == address
    assert address_to_output_script(address, MAINNET) == b"\x51\x20" + G_X


def test_round_trip_on_each_network() -> None:
    for network in (MAINNET, TESTNET, SIGNET, REGTEST):
        address = create_taproot_address(G_X, network)
        assert address.startswith(network.hrp + "1p")
        assert decode_segwit_address(address, network) == (1, G_X)


def test_wrong_network_is_rejected() -> None:
    address = create_taproot_address(G_X, MAINNET)

    with pytest.raises(InvalidAddressError):
        decode_segwit_address(address, TESTNET)


@pytest.mark.parametrize(
    "address",
    [
        # v1 program under a bech32 checksum
        "bc1p0xlxvlhemja6c4dqv22uapctqupfhlxm9h8z3k2e72q4k9hcz7vqh2y7hd",
        # v0 program under a bech32m checksum
        "bc1qw508d6qejxtdg4y5r3zarvary0c5xw7kemeawh",
    ],
)
def test_checksum_flavour_must_match_witness_version(address) -> None:
    with pytest.raises(InvalidAddressError):
        decode_segwit_address(address, MAINNET)


def test_corrupted_checksum_is_rejected() -> None:
    address = create_taproot_address(G_X, MAINNET)
    corrupted = address[:-1] + ("q" if address[-1] != "q" else "p")

    with pytest.raises(InvalidAddressError):
        address_to_output_script(corrupted, MAINNET)


def test_encode_rejects_bad_program_length() -> None:
    with pytest.raises(InvalidAddressError):
        encode_segwit_address("bc", 1, b"\x00")


@pytest.mark.parametrize(
    "address, network, expected",
    [
        ("1111111111111111111114oLvT2", MAINNET, "76a914" + "00" * 20 + "88ac"),
        ("12ZEw5Hcv1hTb6YUQJ69y1V7uhcoDz92PH", MAINNET, "76a914" + "11" * 20 + "88ac"),
        ("mfWxJ45yp2SFn7UciZyNpvDKrzbhyfKrY8", TESTNET, "76a914" + "00" * 20 + "88ac"),
        ("mfWxJ45yp2SFn7UciZyNpvDKrzbhyfKrY8", SIGNET, "76a914" + "00" * 20 + "88ac"),
        ("34oVnh4gNviJGMnNvgquMeLAxvXJuaRVMZ", MAINNET, "a914" + "22" * 20 + "87"),
        ("2MvMhrRzhzPDeU9QvbpTmybKSBGjUmC6TTu", TESTNET, "a914" + "22" * 20 + "87"),
    ],
)
def test_legacy_destinations_resolve_to_output_scripts(address, network, expected) -> None:
    assert address_to_output_script(address, network).hex() == expected


def test_legacy_address_from_other_network_is_rejected() -> None:
    with pytest.raises(InvalidAddressError):
        address_to_output_script("1111111111111111111114oLvT2", TESTNET)


@pytest.mark.parametrize("address", ["1111111111111111111114oLvT3", "not-an-address", ""])
def test_malformed_destination_is_rejected(address) -> None:
    with pytest.raises(InvalidAddressError):
        address_to_output_script(address, MAINNET)


def test_legacy_lookup_restores_library_network() -> None:
    setup_library("regtest")
    try:
        address_to_output_script("1111111111111111111114oLvT2", MAINNET)
        assert get_library_network() == "regtest"
    finally:
        setup_library("testnet")
