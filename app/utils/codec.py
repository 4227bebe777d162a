"""Serialization of cached values.

Stored entries carry no tag saying how they were written. The encoding
strategy has changed over time (plain JSON, always-compressed, size-based
hybrid) and old entries stay in the store until their TTL runs out, so
``decode`` must accept every format regardless of the current mode.

Compressed payloads are ``base64(zlib(json))`` so they stay ASCII-safe for
stores configured with ``decode_responses``.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import zlib
from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal

from app.adapters.store.base import CachePayload

logger = logging.getLogger(__name__)

CodecMode = Literal["plain", "compressed", "auto"]

# Characters of a stored value included in diagnostics
PREVIEW_CHARS = 50


class Encoding(str, Enum):
    """Possible shapes of a stored entry, in decode priority order."""

    COMPRESSED_JSON = "compressed_json"
    PLAIN_JSON = "plain_json"
    RAW_STRING = "raw_string"


DECODE_PRIORITY: tuple[Encoding, ...] = (
    Encoding.COMPRESSED_JSON,
    Encoding.PLAIN_JSON,
    Encoding.RAW_STRING,
)


@dataclass(frozen=True)
class DecodedEntry:
    """A decoded cache value and the encoding that produced it.

    ``value`` may legitimately be ``None`` (a stored JSON ``null``); absence
    of a decoded entry is signalled by ``CacheCodec.decode`` returning None.
    """

    value: Any
    encoding: Encoding


class _StepFailed(Exception):
    """A decode step does not apply to the payload."""


class CacheCodec:
    """Encode values for storage and decode any known stored format."""

    def __init__(
        self,
        *,
        mode: CodecMode = "auto",
        compress_min_bytes: int = 1024,
        compression_level: int = 6,
    ) -> None:
        """Initialize the codec.

        Args:
            mode: "plain" never compresses, "compressed" always does, "auto"
                compresses values at least ``compress_min_bytes`` long when
                that makes them smaller.
            compress_min_bytes: Size threshold used by "auto".
            compression_level: zlib level (1-9).
        """
        if mode not in ("plain", "compressed", "auto"):
            raise ValueError(f"unknown codec mode: {mode!r}")
        if not 1 <= compression_level <= 9:
            raise ValueError("compression_level must be between 1 and 9")

        self.mode = mode
        self.compress_min_bytes = compress_min_bytes
        self.compression_level = compression_level

    def encode(self, value: Any) -> CachePayload:
        """Serialize a JSON-compatible value for storage.

        Raises:
            TypeError: If ``value`` is not JSON serializable.
        """
        plain = json.dumps(value, separators=(",", ":"), ensure_ascii=False)

        if self.mode == "plain":
            return CachePayload(plain)

        raw_bytes = plain.encode("utf-8")
        if self.mode == "auto" and len(raw_bytes) < self.compress_min_bytes:
            return CachePayload(plain)

        compressed = base64.b64encode(zlib.compress(raw_bytes, self.compression_level)).decode("ascii")
        if self.mode == "auto" and len(compressed) >= len(plain):
            return CachePayload(plain)
        return CachePayload(compressed)

    def decode(self, payload: CachePayload | str | bytes, *, key: str | None = None) -> DecodedEntry | None:
        """Decode a stored payload, trying each encoding in priority order.

        Args:
            payload: Stored value as read from the cache store.
            key: Cache key, used only for diagnostics.

        Returns:
            DecodedEntry, or None when no encoding applies.
        """
        for encoding in DECODE_PRIORITY:
            try:
                value = self._decode_as(encoding, payload)
            except _StepFailed:
                continue

            if encoding is Encoding.RAW_STRING:
                logger.warning(
                    "codec.passthrough",
                    extra={"cache_key": key, **_diagnostics(payload)},
                )
            return DecodedEntry(value=value, encoding=encoding)

        logger.error(
            "codec.not_decodable",
            extra={"cache_key": key, **_diagnostics(payload)},
        )
        return None

    def _decode_as(self, encoding: Encoding, payload: CachePayload | str | bytes) -> Any:
        if encoding is Encoding.COMPRESSED_JSON:
            return _decode_compressed(payload)
        if encoding is Encoding.PLAIN_JSON:
            return _decode_plain(payload)
        if encoding is Encoding.RAW_STRING:
            return _decode_raw(payload)
        raise _StepFailed(encoding)


def _as_text(payload: CachePayload | str | bytes) -> str:
    if isinstance(payload, bytes):
        try:
            return payload.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise _StepFailed("payload is not utf-8") from exc
    if isinstance(payload, str):
        return payload
    raise _StepFailed(f"unsupported payload type {type(payload).__name__}")


def _decode_compressed(payload: CachePayload | str | bytes) -> Any:
    text = _as_text(payload)
    try:
        compressed = base64.b64decode(text, validate=True)
        inflated = zlib.decompress(compressed).decode("utf-8")
    except (binascii.Error, ValueError, zlib.error, UnicodeDecodeError) as exc:
        raise _StepFailed("not a compressed payload") from exc
    if not inflated:
        raise _StepFailed("empty decompressed payload")
    try:
        return json.loads(inflated)
    except json.JSONDecodeError as exc:
        raise _StepFailed("decompressed payload is not JSON") from exc


def _decode_plain(payload: CachePayload | str | bytes) -> Any:
    try:
        return json.loads(_as_text(payload))
    except json.JSONDecodeError as exc:
        raise _StepFailed("not JSON") from exc


def _decode_raw(payload: CachePayload | str | bytes) -> str:
    text = _as_text(payload)
    if not text:
        raise _StepFailed("empty payload")
    return text


def _diagnostics(payload: Any) -> dict[str, Any]:
    """Shape of a stored value, without the value itself."""

    info: dict[str, Any] = {"payload_type": type(payload).__name__}
    try:
        info["payload_length"] = len(payload)
    except TypeError:
        info["payload_length"] = None
    if isinstance(payload, (str, bytes)):
        info["payload_start"] = payload[:PREVIEW_CHARS] if isinstance(payload, str) else repr(payload[:PREVIEW_CHARS])
    return info
