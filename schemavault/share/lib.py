"""Share payload codec.

A diagram is shared by putting its canonical JSON into the URL fragment as
``#share=<payload>``. The payload is the base64 encoding of the JSON's UTF-8
bytes, so multi-byte characters survive byte-for-byte.
"""

import base64
import binascii
import json
import logging
from typing import Awaitable, Callable
from urllib.parse import unquote, urlsplit, urlunsplit

from schemavault.document import diagram_to_json
from schemavault.storage.models import Diagram

logger = logging.getLogger(__name__)

SHARE_PREFIX = "#share="

ClipboardWriter = Callable[[str], Awaitable[None]]


def encode_share_payload(text: str) -> str:
    """Encode text as a URL-fragment-safe payload.

    Args:
        text: Text to encode, usually diagram JSON.

    Returns:
        Base64 of the UTF-8 bytes of ``text``.
    """
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def decode_share_payload(fragment: str | None) -> str | None:
    """Decode a share payload back to text.

    Accepts the bare payload or a full ``#share=`` fragment, with or without
    percent-escaping or padding, in either the standard or URL-safe base64
    alphabet.

    Args:
        fragment: Payload or URL fragment.

    Returns:
        The decoded JSON text, or None when the input is not a valid payload.
    """
    if not fragment:
        return None

    payload = unquote(fragment.strip())
    if payload.startswith(SHARE_PREFIX):
        payload = payload[len(SHARE_PREFIX) :]
    payload = payload.replace("-", "+").replace("_", "/")
    if not payload:
        return None
    # Links may lose their "=" padding
    payload += "=" * (-len(payload) % 4)

    try:
        text = base64.b64decode(payload, validate=True).decode("utf-8")
        json.loads(text)
    except (binascii.Error, UnicodeDecodeError, ValueError, RecursionError):
        logger.debug("Ignoring malformed share payload")
        return None
    return text


def is_share_fragment(fragment: str | None) -> bool:
    """Whether a URL fragment carries a share payload."""
    return bool(fragment) and fragment.startswith(SHARE_PREFIX)


def encode_diagram(diagram: Diagram) -> str:
    """Encode a diagram's canonical JSON as a share payload."""
    return encode_share_payload(diagram_to_json(diagram))


def build_share_link(diagram: Diagram, base_url: str) -> str:
    """Build a link that imports ``diagram`` when opened.

    Any query or fragment already on ``base_url`` is dropped.

    Args:
        diagram: Diagram to share.
        base_url: Page URL the link points at.

    Returns:
        ``<scheme>://<host><path>#share=<payload>``.
    """
    parts = urlsplit(base_url)
    base = urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))
    return f"{base}{SHARE_PREFIX}{encode_diagram(diagram)}"


async def copy_share_link(link: str, writer: ClipboardWriter) -> bool:
    """Write a share link to the clipboard.

    Args:
        link: Link to copy. Empty links are not copied.
        writer: Coroutine function that writes text to the clipboard.

    Returns:
        True if the link was written, False otherwise.
    """
    if not link:
        return False
    try:
        await writer(link)
    except Exception as e:
        logger.warning(f"Copying share link failed: {e}")
        return False
    return True


__all__ = [
    "SHARE_PREFIX",
    "ClipboardWriter",
    "encode_share_payload",
    "decode_share_payload",
    "is_share_fragment",
    "encode_diagram",
    "build_share_link",
    "copy_share_link",
]
