"""Inscription payloads and the Ordinals envelope tapscript.

The envelope follows the Ordinals convention::

    <x-only pubkey> OP_CHECKSIG
    OP_0 OP_IF
      "ord"
      01 01            content-type tag
      <content type>
      OP_0             body separator
      <content>        one or more pushes of at most 520 bytes
    OP_ENDIF

The leaf is spendable only by a signature from the internal key; the
``OP_0 OP_IF`` branch is never executed and exists purely to carry data.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Tuple, Union

from .config import DEFAULT_POSTAGE, InscriberConfig
from .errors import EncodingError, InvalidInscriptionError, InvalidKeyError
from .script import (
    MAX_SCRIPT_ELEMENT_SIZE,
    OP_0,
    OP_CHECKSIG,
    OP_ENDIF,
    OP_IF,
    ScriptElement,
    decompile_script,
)

logger = logging.getLogger(__name__)

ORD_PROTOCOL_ID = b"ord"
CONTENT_TYPE_TAG = b"\x01"
TEXT_CONTENT_TYPE = "text/plain;charset=utf-8"


@dataclass(frozen=True)
class Inscription:
    """Content and content type to embed; ``postage`` is advisory."""

    content_type: bytes
    content: bytes
    postage: int = DEFAULT_POSTAGE

    @property
    def content_type_text(self) -> str:
        return self.content_type.decode("ascii")

    @property
    def content_length(self) -> int:
        return len(self.content)


def create_text_inscription(
    text: str,
    postage: int | None = None,
    *,
    config: InscriberConfig | None = None,
) -> Inscription:
    """Build a UTF-8 text inscription."""

    try:
        content = text.encode("utf-8")
    except (AttributeError, UnicodeEncodeError) as exc:
        raise EncodingError(f"Text cannot be encoded as UTF-8: {exc}") from exc
    return create_inscription(content, TEXT_CONTENT_TYPE, postage=postage, config=config)


def create_inscription(
    content: bytes,
    content_type: Union[str, bytes],
    postage: int | None = None,
    *,
    config: InscriberConfig | None = None,
) -> Inscription:
    """Build an inscription from raw bytes and an explicit content type.

    ``content`` is embedded as-is. Empty content is allowed; an empty content
    type is not. Without an explicit ``postage`` the configured one is used.
    """

    if postage is None:
        postage = config.postage if config is not None else DEFAULT_POSTAGE

    if not isinstance(content, (bytes, bytearray)):
        raise InvalidInscriptionError(
            f"Inscription content must be bytes, got {type(content).__name__}"
        )

    if isinstance(content_type, str):
        try:
            content_type_bytes = content_type.encode("ascii")
        except UnicodeEncodeError as exc:
            raise InvalidInscriptionError(f"Content type must be ASCII: {content_type!r}") from exc
    elif isinstance(content_type, (bytes, bytearray)):
        content_type_bytes = bytes(content_type)
        if any(byte > 0x7F for byte in content_type_bytes):
            raise InvalidInscriptionError(f"Content type must be ASCII: {content_type_bytes!r}")
    else:
        raise InvalidInscriptionError(
            f"Content type must be str or bytes, got {type(content_type).__name__}"
        )

    if not content_type_bytes:
        raise InvalidInscriptionError("Content type must not be empty")
    if len(content_type_bytes) > MAX_SCRIPT_ELEMENT_SIZE:
        raise InvalidInscriptionError(
            f"Content type exceeds {MAX_SCRIPT_ELEMENT_SIZE} bytes: {len(content_type_bytes)}"
        )
    if isinstance(postage, bool) or not isinstance(postage, int) or postage < 0:
        raise InvalidInscriptionError(f"Postage must be a non-negative integer, got {postage!r}")

    return Inscription(content_type=content_type_bytes, content=bytes(content), postage=postage)


def chunk_content(content: bytes, size: int = MAX_SCRIPT_ELEMENT_SIZE) -> List[bytes]:
    """Split ``content`` into pushes of at most ``size`` bytes."""

    if not content:
        return [b""]
    return [content[i : i + size] for i in range(0, len(content), size)]


def build_inscription_script(x_only_public_key: bytes, inscription: Inscription) -> List[ScriptElement]:
    """Return the element list of the inscription tapscript leaf."""

    if not isinstance(x_only_public_key, (bytes, bytearray)) or len(x_only_public_key) != 32:
        raise InvalidKeyError("x-only public key must be 32 bytes")
    if not isinstance(inscription, Inscription):
        raise InvalidInscriptionError("inscription is required")

    elements: List[ScriptElement] = [
        bytes(x_only_public_key),
        OP_CHECKSIG,
        OP_0,
        OP_IF,
        ORD_PROTOCOL_ID,
        CONTENT_TYPE_TAG,
        inscription.content_type,
        OP_0,
    ]
    elements.extend(chunk_content(inscription.content))
    elements.append(OP_ENDIF)
    return elements


def parse_inscription_script(compiled_script: bytes, postage: int = DEFAULT_POSTAGE) -> Tuple[bytes, Inscription]:
    """Recover ``(x_only_public_key, inscription)`` from a compiled leaf.

    Chunked bodies are rejoined. Raises ``InvalidInscriptionError`` when the
    script is not an inscription envelope.
    """

    try:
        elements = decompile_script(compiled_script)
    except EncodingError as exc:
        raise InvalidInscriptionError(f"Script cannot be decompiled: {exc}") from exc

    header = elements[:8]
    if (
        len(elements) < 10
        or not isinstance(header[0], bytes)
        or len(header[0]) != 32
        or header[1:4] != [OP_CHECKSIG, OP_0, OP_IF]
        or header[4] != ORD_PROTOCOL_ID
        or header[5] != CONTENT_TYPE_TAG
        or not isinstance(header[6], bytes)
        or header[7] != OP_0
        or elements[-1] != OP_ENDIF
    ):
        raise InvalidInscriptionError("Script is not an ord inscription envelope")

    body_parts: List[bytes] = []
    for element in elements[8:-1]:
        if element == OP_0:
            continue
        if not isinstance(element, bytes):
            raise InvalidInscriptionError(f"Unexpected opcode {element:#04x} inside inscription body")
        body_parts.append(element)

    logger.debug("Parsed inscription envelope with %d body push(es)", len(body_parts))
    inscription = Inscription(
        content_type=header[6],
        content=b"".join(body_parts),
        postage=postage,
    )
    return header[0], inscription
