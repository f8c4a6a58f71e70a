"""Byte-level encoding detection for plain-text and CSV uploads."""

from __future__ import annotations

import codecs

import chardet
import structlog

logger = structlog.get_logger(logger_name=__name__)

_FALLBACK_ENCODING = "utf-8"

# chardet reports the legacy Windows variants of these under the ISO name,
# and the Windows codecs are supersets.
_ENCODING_ALIASES: dict[str, str] = {
    "shift_jis": "cp932",
    "iso-8859-1": "cp1252",
    "ascii": "utf-8",
}


def detect_encoding(data: bytes) -> str:
    """Return a Python codec name for *data*, or ``utf-8`` when unknown."""
    if data.startswith(codecs.BOM_UTF8):
        return "utf-8-sig"

    detected = chardet.detect(data).get("encoding")
    if not detected:
        return _FALLBACK_ENCODING

    name = _ENCODING_ALIASES.get(detected.lower(), detected)
    try:
        return codecs.lookup(name).name
    except LookupError:
        logger.warning("unsupported_encoding_detected", encoding=detected)
        return _FALLBACK_ENCODING


def decode_text(data: bytes) -> str:
    """Decode *data* with its detected encoding.

    Undecodable bytes become U+FFFD rather than aborting the upload.
    """
    encoding = detect_encoding(data)
    text = data.decode(encoding, errors="replace")
    logger.debug("text_decoded", encoding=encoding, num_bytes=len(data), num_chars=len(text))
    return text
