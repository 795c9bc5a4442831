"""Key parsing and scoped handling of private key material."""

from __future__ import annotations

import binascii
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Union

from cryptography.hazmat.primitives.asymmetric import ec

from .errors import InvalidKeyError
from .taproot import SECP256K1_N, lift_x

KeyInput = Union[bytes, bytearray, str]


@dataclass(frozen=True)
class TaprootKeyMaterial:
    """Public half of a Taproot internal key."""

    x_only_public_key: bytes
    compressed_public_key: bytes | None = None

    @property
    def x_only_hex(self) -> str:
        return self.x_only_public_key.hex()


def _coerce_key_bytes(value: KeyInput, *, label: str) -> bytes:
    if isinstance(value, str):
        text = value.strip()
        if text.lower().startswith("0x"):
            text = text[2:]
        try:
            return binascii.unhexlify(text)
        except (binascii.Error, ValueError) as exc:
            raise InvalidKeyError(f"{label} is not valid hex") from exc
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    raise InvalidKeyError(f"{label} must be bytes or a hex string, got {type(value).__name__}")


def to_x_only(compressed_public_key: bytes) -> bytes:
    """Drop the parity prefix of a 33-byte compressed key."""

    if len(compressed_public_key) != 33:
        raise InvalidKeyError(
            f"Compressed public key must be 33 bytes, got {len(compressed_public_key)}"
        )
    return compressed_public_key[1:33]


def parse_public_key(value: KeyInput) -> TaprootKeyMaterial:
    """Validate a compressed or x-only secp256k1 public key.

    33-byte keys are decoded as SEC1 compressed points; 32-byte keys are
    treated as BIP340 x-only keys and lifted onto the curve.
    """

    raw = _coerce_key_bytes(value, label="Public key")
    if len(raw) == 33:
        if raw[0] not in (0x02, 0x03):
            raise InvalidKeyError(f"Compressed public key has invalid prefix {raw[0]:#04x}")
        try:
            ec.EllipticCurvePublicKey.from_encoded_point(ec.SECP256K1(), raw)
        except ValueError as exc:
            raise InvalidKeyError(f"Public key is not a valid secp256k1 point: {exc}") from exc
        return TaprootKeyMaterial(x_only_public_key=to_x_only(raw), compressed_public_key=raw)
    if len(raw) == 32:
        lift_x(raw)
        return TaprootKeyMaterial(x_only_public_key=raw)
    raise InvalidKeyError(f"Public key must be 33 (compressed) or 32 (x-only) bytes, got {len(raw)}")


def _secret_to_int(secret: bytes | bytearray) -> int:
    if len(secret) != 32:
        raise InvalidKeyError(f"Private key must be 32 bytes, got {len(secret)}")
    scalar = int.from_bytes(secret, "big")
    if not 0 < scalar < SECP256K1_N:
        raise InvalidKeyError("Private key is outside the secp256k1 scalar range")
    return scalar


def public_key_from_private(secret: bytes | bytearray) -> TaprootKeyMaterial:
    """Derive the public key material for a 32-byte private key."""

    scalar = _secret_to_int(secret)
    numbers = ec.derive_private_key(scalar, ec.SECP256K1()).public_key().public_numbers()
    prefix = b"\x03" if numbers.y % 2 else b"\x02"
    compressed = prefix + numbers.x.to_bytes(32, "big")
    return TaprootKeyMaterial(x_only_public_key=compressed[1:], compressed_public_key=compressed)


@contextmanager
def scoped_private_key(value: KeyInput) -> Iterator[bytearray]:
    """Yield a validated private key in a buffer that is zeroed on exit.

    The caller's own object is not modified; only the working copy is
    cleared, on success and on failure alike.
    """

    buffer = bytearray(_coerce_key_bytes(value, label="Private key"))
    try:
        _secret_to_int(buffer)
        yield buffer
    finally:
        for index in range(len(buffer)):
            buffer[index] = 0
