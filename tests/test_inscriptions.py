from __future__ import annotations

import pytest

from ord_inscriber.config import InscriberConfig
from ord_inscriber.errors import EncodingError, InvalidInscriptionError, InvalidKeyError
from ord_inscriber.inscriptions import (
    TEXT_CONTENT_TYPE,
    Inscription,
    build_inscription_script,
    chunk_content,
    create_inscription,
    create_text_inscription,
    parse_inscription_script,
)
from ord_inscriber.script import OP_0, OP_CHECKSIG, OP_ENDIF, OP_IF, compile_script

X_ONLY = bytes.fromhex("79be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f81798")


def test_text_inscription_defaults() -> None:
    inscription = create_text_inscription("Hello!!")

    assert inscription.content == b"Hello!!"
    assert inscription.content_type == b"text/plain;charset=utf-8"
    assert inscription.content_type_text == TEXT_CONTENT_TYPE
    assert inscription.postage == 10000
    assert inscription.content_length == 7


def test_configured_postage_is_the_default() -> None:
    config = InscriberConfig(postage=777)

    assert create_text_inscription("Hello!!", config=config).postage == 777
    assert create_text_inscription("Hello!!", 546, config=config).postage == 546
    assert create_inscription(b"\x00", "image/png", config=config).postage == 777


def test_text_inscription_rejects_unencodable_text() -> None:
    with pytest.raises(EncodingError):
        create_text_inscription("\ud800")


def test_binary_content_is_not_transcoded() -> None:
    payload = bytes(range(256))

    inscription = create_inscription(payload, "image/png", postage=546)

    assert inscription.content == payload
    assert inscription.content_type == b"image/png"
    assert inscription.postage == 546


def test_empty_content_is_allowed() -> None:
    assert create_inscription(b"", b"application/octet-stream").content == b""


@pytest.mark.parametrize(
    "content, content_type, postage",
    [
        ("text", "text/plain", 10000),
        (b"data", "", 10000),
        (b"data", "tëxt/plain", 10000),
        (b"data", b"\xfftype", 10000),
        (b"data", "text/plain", -1),
    ],
)
def test_create_inscription_rejects_malformed_input(content, content_type, postage) -> None:
    with pytest.raises(InvalidInscriptionError):
        create_inscription(content, content_type, postage=postage)


def test_envelope_element_order() -> None:
    inscription = create_text_inscription("Hello!!")

    elements = build_inscription_script(X_ONLY, inscription)

    assert elements == [
        X_ONLY,
        OP_CHECKSIG,
        OP_0,
        OP_IF,
        b"ord",
        b"\x01",
        b"text/plain;charset=utf-8",
        OP_0,
        b"Hello!!",
        OP_ENDIF,
    ]


def test_envelope_compiles_to_ord_byte_layout() -> None:
    inscription = create_text_inscription("Hello!!")

    compiled = compile_script(build_inscription_script(X_ONLY, inscription))

    expected = (
        b"\x20" + X_ONLY + b"\xac"
        + b"\x00\x63"
        + b"\x03ord"
        + b"\x01\x01"
        + b"\x18" + b"text/plain;charset=utf-8"
        + b"\x00"
        + b"\x07Hello!!"
        + b"\x68"
    )
    assert compiled == expected


def test_large_content_is_split_into_520_byte_pushes() -> None:
    inscription = create_inscription(b"z" * 1200, "text/plain")

    elements = build_inscription_script(X_ONLY, inscription)
    body = elements[8:-1]

    assert [len(chunk) for chunk in body] == [520, 520, 160]
    assert chunk_content(b"") == [b""]


def test_parse_inscription_script_recovers_key_and_content() -> None:
    inscription = create_inscription(b"q" * 1100, "application/json", postage=777)
    compiled = compile_script(build_inscription_script(X_ONLY, inscription))

    key, parsed = parse_inscription_script(compiled, postage=777)

    assert key == X_ONLY
    assert parsed == inscription


def test_parse_inscription_script_handles_empty_body() -> None:
    inscription = create_inscription(b"", "text/plain")
    compiled = compile_script(build_inscription_script(X_ONLY, inscription))

    _, parsed = parse_inscription_script(compiled)

    assert parsed.content == b""


def test_parse_rejects_non_envelope_scripts() -> None:
    with pytest.raises(InvalidInscriptionError):
        parse_inscription_script(b"\x20" + X_ONLY + b"\xac")
    with pytest.raises(InvalidInscriptionError):
        parse_inscription_script(b"\x05abc")


def test_build_script_requires_x_only_key() -> None:
    with pytest.raises(InvalidKeyError):
        build_inscription_script(b"\x02" + X_ONLY, Inscription(b"text/plain", b"x"))
