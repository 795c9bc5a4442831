"""Bitcoin script compilation helpers for tapscript leaves.

Scripts are modeled as lists whose elements are either ``int`` opcodes or
``bytes`` data pushes. Data pushes are length-prefixed exactly as given:
single-byte values are *not* rewritten into ``OP_1``..``OP_16``, which keeps
the Ordinals content-type tag serialized as ``01 01``.
"""

from __future__ import annotations

from typing import List, Sequence, Tuple, Union

from .errors import EncodingError

OP_0 = 0x00
OP_FALSE = OP_0
OP_PUSHDATA1 = 0x4C
OP_PUSHDATA2 = 0x4D
OP_PUSHDATA4 = 0x4E
OP_1NEGATE = 0x4F
OP_1 = 0x51
OP_TRUE = OP_1
OP_16 = 0x60
OP_IF = 0x63
OP_NOTIF = 0x64
OP_ELSE = 0x67
OP_ENDIF = 0x68
OP_DROP = 0x75
OP_CHECKSIG = 0xAC
OP_CHECKSIGADD = 0xBA

# Consensus limit on a single stack element.
MAX_SCRIPT_ELEMENT_SIZE = 520

OPCODE_NAMES = {
    OP_0: "OP_0",
    OP_PUSHDATA1: "OP_PUSHDATA1",
    OP_PUSHDATA2: "OP_PUSHDATA2",
    OP_PUSHDATA4: "OP_PUSHDATA4",
    OP_1NEGATE: "OP_1NEGATE",
    OP_IF: "OP_IF",
    OP_NOTIF: "OP_NOTIF",
    OP_ELSE: "OP_ELSE",
    OP_ENDIF: "OP_ENDIF",
    OP_DROP: "OP_DROP",
    OP_CHECKSIG: "OP_CHECKSIG",
    OP_CHECKSIGADD: "OP_CHECKSIGADD",
}
OPCODE_NAMES.update({OP_1 + i: f"OP_{i + 1}" for i in range(16)})

ScriptElement = Union[int, bytes]


def ser_compact_size(n: int) -> bytes:
    """Serialize an integer as a Bitcoin compact size."""

    if n < 0:
        raise EncodingError(f"Compact size cannot be negative: {n}")
    if n < 253:
        return bytes([n])
    elif n <= 0xFFFF:
        return b"\xfd" + n.to_bytes(2, "little")
    elif n <= 0xFFFFFFFF:
        return b"\xfe" + n.to_bytes(4, "little")
    else:
        return b"\xff" + n.to_bytes(8, "little")


def push_data(data: bytes) -> bytes:
    """Return the push opcode(s) followed by ``data``.

    Empty data is pushed as ``OP_0``. Elements larger than 520 bytes cannot
    be placed on the stack and are rejected.
    """

    length = len(data)
    if length > MAX_SCRIPT_ELEMENT_SIZE:
        raise EncodingError(
            f"Script element of {length} bytes exceeds the {MAX_SCRIPT_ELEMENT_SIZE}-byte limit"
        )
    if length == 0:
        return bytes([OP_0])
    if length < OP_PUSHDATA1:
        return bytes([length]) + data
    if length <= 0xFF:
        return bytes([OP_PUSHDATA1, length]) + data
    return bytes([OP_PUSHDATA2]) + length.to_bytes(2, "little") + data


def compile_script(elements: Sequence[ScriptElement]) -> bytes:
    """Serialize a script element list into raw script bytes."""

    compiled = bytearray()
    for position, element in enumerate(elements):
        if isinstance(element, (bytes, bytearray)):
            compiled += push_data(bytes(element))
        elif isinstance(element, int) and not isinstance(element, bool):
            if not 0 <= element <= 0xFF:
                raise EncodingError(f"Opcode at position {position} out of range: {element}")
            if 0 < element <= OP_PUSHDATA4:
                raise EncodingError(
                    f"Element at position {position} is a push opcode ({element:#04x}); pass bytes instead"
                )
            compiled.append(element)
        else:
            raise EncodingError(
                f"Unsupported script element at position {position}: {type(element).__name__}"
            )
    return bytes(compiled)


def decompile_script(script: bytes) -> List[ScriptElement]:
    """Parse raw script bytes back into opcodes and data pushes.

    ``0x00`` is returned as the ``OP_0`` opcode rather than empty data.
    """

    elements: List[ScriptElement] = []
    offset = 0
    while offset < len(script):
        opcode = script[offset]
        offset += 1
        if 0 < opcode < OP_PUSHDATA1:
            length = opcode
        elif opcode == OP_PUSHDATA1:
            length, offset = _read_push_length(script, offset, 1)
        elif opcode == OP_PUSHDATA2:
            length, offset = _read_push_length(script, offset, 2)
        elif opcode == OP_PUSHDATA4:
            length, offset = _read_push_length(script, offset, 4)
        else:
            elements.append(opcode)
            continue

        end = offset + length
        if end > len(script):
            raise EncodingError(f"Push of {length} bytes at offset {offset} runs past end of script")
        elements.append(script[offset:end])
        offset = end
    return elements


def _read_push_length(script: bytes, offset: int, width: int) -> Tuple[int, int]:
    end = offset + width
    if end > len(script):
        raise EncodingError("Truncated OP_PUSHDATA length prefix")
    return int.from_bytes(script[offset:end], "little"), end


def script_to_asm(elements: Sequence[ScriptElement]) -> str:
    """Render a script element list in the familiar ASM notation."""

    parts = []
    for element in elements:
        if isinstance(element, (bytes, bytearray)):
            parts.append(bytes(element).hex())
        else:
            parts.append(OPCODE_NAMES.get(element, f"OP_UNKNOWN_{element:#04x}"))
    return " ".join(parts)
