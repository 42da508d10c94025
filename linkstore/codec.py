"""
Decoding of POSTed link documents.

Large documents arrive LZ-String compressed as ``{"compressed": "..."}``
(the ``EncodedURIComponent`` variant produced by the browser client).
"""

from __future__ import annotations

import json
import logging
from typing import Any

from lzstring import LZString

from linkstore.errors import InvalidPayload

logger = logging.getLogger(__name__)

_lz = LZString()


def _reject_constant(name: str) -> Any:
    # NaN and Infinity are not JSON and could never be served back.
    raise InvalidPayload(f"Unsupported JSON constant {name}")


def _loads(raw: str | bytes) -> Any:
    return json.loads(raw, parse_constant=_reject_constant)


def decompress_document(compressed: str) -> Any:
    try:
        decompressed = _lz.decompressFromEncodedURIComponent(compressed)
    except Exception as exc:
        raise InvalidPayload("Invalid compressed data") from exc
    if not decompressed:
        raise InvalidPayload("Invalid compressed data")
    try:
        return _loads(decompressed)
    except ValueError as exc:
        raise InvalidPayload("Invalid compressed data") from exc


def decode_body(raw: bytes) -> Any:
    """
    Parse a request body into the document to store. The document itself is
    not validated.
    """
    if not raw or not raw.strip():
        raise InvalidPayload("Empty request body")
    try:
        document = _loads(raw)
    except ValueError as exc:
        raise InvalidPayload("Request body is not valid JSON") from exc

    if isinstance(document, dict):
        compressed = document.get("compressed")
        if compressed:
            if not isinstance(compressed, str):
                raise InvalidPayload("Invalid compressed data")
            logger.debug("Decompressing payload (%d chars)", len(compressed))
            return decompress_document(compressed)
    return document
