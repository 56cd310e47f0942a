"""Tests for the share payload codec."""

import base64
import json
from urllib.parse import quote

import pytest

from schemavault.document import diagram_from_json, diagram_to_json
from schemavault.storage.models import Diagram

from .lib import (
    SHARE_PREFIX,
    build_share_link,
    copy_share_link,
    decode_share_payload,
    encode_diagram,
    encode_share_payload,
    is_share_fragment,
)

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def unicode_json():
    """JSON text with combining marks, CJK and astral-plane characters."""
    return json.dumps(
        {
            "name": "école 学校 🗃️",
            "tables": [{"name": "𝒯able", "fields": [{"name": "naïve"}]}],
        },
        ensure_ascii=False,
    )


@pytest.fixture
def diagram():
    """A small diagram to share."""
    return Diagram.create(
        name="Shop",
        tables=[{"id": "t1", "name": "orders"}, {"id": "t2", "name": "客户"}],
        relationships=[{"id": "r1", "source": "t1", "target": "t2"}],
    )


# =============================================================================
# Codec Tests
# =============================================================================


class TestRoundTrip:
    """decode(encode(x)) == x."""

    @pytest.mark.unit
    def test_unicode_round_trip(self, unicode_json):
        """Multi-byte text survives unchanged."""
        assert decode_share_payload(encode_share_payload(unicode_json)) == unicode_json

    @pytest.mark.unit
    def test_round_trip_with_prefix(self, unicode_json):
        """The full #share= fragment decodes too."""
        fragment = SHARE_PREFIX + encode_share_payload(unicode_json)
        assert decode_share_payload(fragment) == unicode_json

    @pytest.mark.unit
    def test_percent_escaped_fragment(self, unicode_json):
        """Browsers may percent-escape the fragment."""
        fragment = quote(SHARE_PREFIX + encode_share_payload(unicode_json), safe="")
        assert decode_share_payload(fragment) == unicode_json

    @pytest.mark.unit
    def test_url_safe_alphabet_accepted(self, unicode_json):
        """URL-safe base64 decodes to the same text."""
        payload = base64.urlsafe_b64encode(unicode_json.encode("utf-8")).decode()
        assert decode_share_payload(payload) == unicode_json

    @pytest.mark.unit
    def test_unpadded_payload_accepted(self):
        """Payloads that lost their "=" padding still decode."""
        text = '{"name": "x"}'
        payload = base64.urlsafe_b64encode(text.encode("utf-8")).decode().rstrip("=")
        assert payload != base64.urlsafe_b64encode(text.encode("utf-8")).decode()
        assert decode_share_payload(SHARE_PREFIX + payload) == text

    @pytest.mark.unit
    def test_payload_is_ascii(self, unicode_json):
        """The payload only uses base64 characters."""
        payload = encode_share_payload(unicode_json)
        assert payload.isascii()
        assert " " not in payload and "#" not in payload

    @pytest.mark.unit
    def test_diagram_round_trip(self, diagram):
        """A diagram decodes to its canonical JSON and imports back."""
        text = decode_share_payload(encode_diagram(diagram))
        assert text == diagram_to_json(diagram)
        assert diagram_from_json(text).content() == diagram.content()


class TestMalformedInput:
    """decode returns None instead of raising."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "fragment",
        [
            None,
            "",
            SHARE_PREFIX,
            "#share=!!!not-base64!!!",
            "#share=abc",  # partial group, not UTF-8
            "#share=" + base64.b64encode(b"\xff\xfe\xfd").decode(),  # not UTF-8
            "#share=" + base64.b64encode(b"plain text").decode(),  # not JSON
        ],
    )
    def test_returns_none(self, fragment):
        """Malformed payloads decode to None."""
        assert decode_share_payload(fragment) is None

    @pytest.mark.unit
    def test_deeply_nested_json(self):
        """JSON nested beyond the parser's depth limit decodes to None."""
        nested = "[" * 50000 + "]" * 50000
        assert decode_share_payload(SHARE_PREFIX + encode_share_payload(nested)) is None

    @pytest.mark.unit
    def test_truncated_payload(self, unicode_json):
        """Cutting a payload short never raises."""
        payload = encode_share_payload(unicode_json)
        for cut in range(1, len(payload)):
            assert decode_share_payload(payload[:cut]) is None


class TestShareLinks:
    """Tests for link building and clipboard copy."""

    @pytest.mark.unit
    def test_is_share_fragment(self):
        """Only #share= fragments qualify."""
        assert is_share_fragment("#share=abc")
        assert not is_share_fragment("#section")
        assert not is_share_fragment("")
        assert not is_share_fragment(None)

    @pytest.mark.unit
    def test_build_share_link_drops_query_and_fragment(self, diagram):
        """The link is origin + path + share fragment."""
        link = build_share_link(diagram, "https://app.example/diagrams/x?tab=1#old")
        base, fragment = link.split("#", 1)
        assert base == "https://app.example/diagrams/x"
        assert decode_share_payload("#" + fragment) == diagram_to_json(diagram)

    @pytest.mark.asyncio
    async def test_copy_success(self):
        """A working clipboard reports True."""
        written = []

        async def writer(text):
            written.append(text)

        assert await copy_share_link("https://app.example/#share=e30=", writer)
        assert written == ["https://app.example/#share=e30="]

    @pytest.mark.asyncio
    async def test_copy_failure_is_boolean(self):
        """Clipboard errors become False."""

        async def writer(text):
            raise PermissionError("clipboard denied")

        assert await copy_share_link("https://app.example/#share=e30=", writer) is False

    @pytest.mark.asyncio
    async def test_copy_empty_link(self):
        """Empty links are not copied."""

        async def writer(text):
            raise AssertionError("should not be called")

        assert await copy_share_link("", writer) is False
