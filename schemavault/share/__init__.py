"""Share links for diagrams.

Example:
    >>> from schemavault.share import build_share_link, decode_share_payload
    >>> link = build_share_link(diagram, "https://app.example/")
    >>> text = decode_share_payload("#" + link.split("#", 1)[1])
"""

from .lib import (
    SHARE_PREFIX,
    ClipboardWriter,
    build_share_link,
    copy_share_link,
    decode_share_payload,
    encode_diagram,
    encode_share_payload,
    is_share_fragment,
)

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
