import base64
import binascii
import logging
from dataclasses import dataclass

from .errors import EmptyPayload, MalformedBytecode, PayloadTooLarge

logger = logging.getLogger(__name__)

MIN_BYTECODE_SIZE = 4

RAW = "raw"
BASE64_TEXT = "base64-text"


@dataclass(frozen=True)
class DecompileRequest:
    payload: bytes
    encoding: str = RAW

    @property
    def size(self) -> int:
        return len(self.payload)


def _decode_base64(body: bytes):
    try:
        decoded = base64.b64decode(body.strip(), validate=True)
    except (binascii.Error, ValueError):
        return None
    return decoded or None


def validate_payload(body, content_type, max_size) -> DecompileRequest:
    if not body:
        raise EmptyPayload()
    if len(body) > max_size:
        raise PayloadTooLarge(max_size)

    request = DecompileRequest(bytes(body))
    if content_type == "text/plain":
        decoded = _decode_base64(request.payload)
        if decoded is None:
            logger.warning("Base64 decode failed, treating as raw binary")
        else:
            request = DecompileRequest(decoded, BASE64_TEXT)

    if request.size < MIN_BYTECODE_SIZE:
        raise MalformedBytecode()
    return request
