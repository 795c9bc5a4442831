"""BIP341 Taproot primitives for single-leaf inscription commitments.

Covers tagged hashing, leaf hashing, x-only point lifting, key tweaking and
control blocks. Scalar multiplication goes through ``cryptography``; the one
point addition the tweak needs is done here in affine coordinates.
"""

from __future__ import annotations

import hashlib
from typing import Tuple

from cryptography.hazmat.primitives.asymmetric import ec

from .errors import InvalidKeyError
from .script import ser_compact_size

SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
SECP256K1_P = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEFFFFFC2F

TAPSCRIPT_LEAF_VERSION = 0xC0
TAPROOT_CONTROL_BASE_SIZE = 33
TAPROOT_CONTROL_NODE_SIZE = 32
TAPROOT_CONTROL_MAX_NODE_COUNT = 128

Point = Tuple[int, int]


def tagged_hash(tag: str, data: bytes) -> bytes:
    """``sha256(sha256(tag) * 2 + data)``, the BIP340 domain-separated hash."""
    prefix = hashlib.sha256(tag.encode("utf-8")).digest() * 2
    return hashlib.sha256(prefix + data).digest()


def taproot_leaf_hash(leaf_script: bytes, leaf_version: int = TAPSCRIPT_LEAF_VERSION) -> bytes:
    """TapLeaf hash of ``leaf_version || compact_size(len) || leaf_script``."""
    payload = bytes([leaf_version]) + ser_compact_size(len(leaf_script)) + leaf_script
    return tagged_hash("TapLeaf", payload)


def lift_x(x_bytes: bytes) -> Point:
    """Return the secp256k1 point with x-coordinate ``x_bytes`` and even y.

    Raises:
        InvalidKeyError: If the coordinate is out of range or not on the curve
    """
    if len(x_bytes) != 32:
        raise InvalidKeyError(f"x-only key must be 32 bytes, got {len(x_bytes)}")

    p = SECP256K1_P
    x = int.from_bytes(x_bytes, "big")
    if x >= p:
        raise InvalidKeyError("x-coordinate exceeds field size")

    # y^2 = x^3 + 7; p % 4 == 3 so the root is y_squared^((p+1)/4)
    y_squared = (pow(x, 3, p) + 7) % p
    y = pow(y_squared, (p + 1) // 4, p)
    if pow(y, 2, p) != y_squared:
        raise InvalidKeyError("x-coordinate is not on the curve")

    return x, y if y % 2 == 0 else p - y


def _add_points(a: Point, b: Point) -> Point:
    p = SECP256K1_P
    if a[0] == b[0]:
        if (a[1] + b[1]) % p == 0:
            raise InvalidKeyError("Tweaked key is the point at infinity")
        slope = 3 * a[0] * a[0] * pow(2 * a[1], p - 2, p)
    else:
        slope = (b[1] - a[1]) * pow(b[0] - a[0], p - 2, p)
    slope %= p
    x = (slope * slope - a[0] - b[0]) % p
    return x, (slope * (a[0] - x) - a[1]) % p


def _scalar_base_mult(scalar: int) -> Point:
    numbers = ec.derive_private_key(scalar, ec.SECP256K1()).public_key().public_numbers()
    return numbers.x, numbers.y


def taproot_tweak_pubkey(internal_key: bytes, merkle_root: bytes) -> Tuple[bytes, int]:
    """Return ``(output_key, parity)`` for ``Q = lift_x(P) + t*G``.

    ``t`` is ``H_TapTweak(P || merkle_root)``; pass ``b""`` as the root for a
    key-path-only output. ``parity`` is the low bit of Q's y-coordinate.
    """
    point = lift_x(internal_key)

    tweak = int.from_bytes(tagged_hash("TapTweak", internal_key + merkle_root), "big")
    if tweak >= SECP256K1_N:
        raise InvalidKeyError("TapTweak hash is not a valid scalar")
    if tweak == 0:
        return internal_key, point[1] & 1

    qx, qy = _add_points(point, _scalar_base_mult(tweak))
    return qx.to_bytes(32, "big"), qy & 1

def build_control_block(
    internal_key: bytes,
    parity: int,
    merkle_path: bytes = b"",
    leaf_version: int = TAPSCRIPT_LEAF_VERSION,
) -> bytes:
    """Assemble ``<leaf_version | parity> <internal_key> <merkle_path>``."""

    if len(internal_key) != 32:
        raise InvalidKeyError(f"Internal key must be 32 bytes, got {len(internal_key)}")
    return bytes([(leaf_version & 0xFE) | (parity & 1)]) + internal_key + merkle_path


def is_valid_control_block(control_block: bytes, leaf_version: int = TAPSCRIPT_LEAF_VERSION) -> bool:
    """Return True if ``control_block`` is well-formed for ``leaf_version``."""

    size = len(control_block)
    if size < TAPROOT_CONTROL_BASE_SIZE:
        return False
    path_size = size - TAPROOT_CONTROL_BASE_SIZE
    if path_size % TAPROOT_CONTROL_NODE_SIZE:
        return False
    if path_size // TAPROOT_CONTROL_NODE_SIZE > TAPROOT_CONTROL_MAX_NODE_COUNT:
        return False
    return control_block[0] & 0xFE == leaf_version


def p2tr_output_script(output_key: bytes) -> bytes:
    """Build the P2TR scriptPubKey: OP_1 <32-byte output key>."""

    if len(output_key) != 32:
        raise InvalidKeyError(f"Output key must be 32 bytes, got {len(output_key)}")
    return bytes([0x51, 0x20]) + output_key
