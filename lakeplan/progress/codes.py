"""
Export code encoding.

An export code is base64 over the UTF-8 bytes of compact JSON, so it
survives copy/paste between devices and holds any Unicode text.
"""

from __future__ import annotations

import base64
import binascii
import json


class CodeDecodeError(ValueError):
    """The export code is not valid base64 / UTF-8."""


def encode_text(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def decode_text(code: str) -> str:
    """
    Reverse of encode_text().

    Raises:
        CodeDecodeError: if the code is not strict base64 or not UTF-8
    """
    try:
        raw = base64.b64decode(code.strip(), validate=True)
        return raw.decode("utf-8")
    except (binascii.Error, ValueError, UnicodeDecodeError) as exc:
        raise CodeDecodeError(str(exc)) from exc


def encode_payload(payload: dict) -> str:
    return encode_text(json.dumps(payload, separators=(",", ":"), ensure_ascii=False))
