"""Inscription identifiers of the form ``<txid>i<index>``."""

from __future__ import annotations

import re
from typing import Tuple

from .errors import InvalidInscriptionError

_TXID_RE = re.compile(r"^[0-9a-f]{64}$")
_INSCRIPTION_ID_RE = re.compile(r"^([0-9a-f]{64})i(0|[1-9][0-9]*)$")


def derive_inscription_id(txid: str, output_index: int = 0) -> str:
    """Format the canonical inscription ID for a reveal transaction."""

    normalized = txid.lower() if isinstance(txid, str) else ""
    if not _TXID_RE.match(normalized):
        raise InvalidInscriptionError(f"txid must be 64 hex characters, got {txid!r}")
    if isinstance(output_index, bool) or not isinstance(output_index, int) or output_index < 0:
        raise InvalidInscriptionError(f"Output index must be a non-negative integer, got {output_index!r}")
    return f"{normalized}i{output_index}"


def parse_inscription_id(inscription_id: str) -> Tuple[str, int]:
    """Split an inscription ID into ``(txid, index)``."""

    match = _INSCRIPTION_ID_RE.match(inscription_id.lower() if isinstance(inscription_id, str) else "")
    if match is None:
        raise InvalidInscriptionError(f"Malformed inscription ID: {inscription_id!r}")
    return match.group(1), int(match.group(2))
