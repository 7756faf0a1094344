"""Tests for Meta Cloud API payload normalization."""

import pytest

from goodchoice.whatsapp.meta_adapter import (
    InvalidPayloadError,
    SignatureVerificationError,
    extract_first_message,
    normalize,
    verify_signature,
)
from goodchoice.whatsapp.models import SelectionTag

from tests.helpers import make_meta_payload, sign


class TestNormalize:
    def test_text_message(self):
        msg = normalize(make_meta_payload("wamid.A", "919811111111", text="  Hello "))

        assert msg.message_id == "wamid.A"
        assert msg.sender == "919811111111"
        assert msg.kind == "text"
        assert msg.text == "hello"
        assert msg.selection is None
        assert msg.received_at is not None

    def test_list_reply(self):
        msg = normalize(make_meta_payload(reply_id="CAT_FITNESS"))

        assert msg.kind == "interactive"
        assert msg.text is None
        assert msg.selection.tag is SelectionTag.CATEGORY
        assert msg.selection.raw_id == "CAT_FITNESS"

    def test_button_reply(self):
        msg = normalize(make_meta_payload(reply_id="OPT_WALK", reply_kind="button_reply"))
        assert msg.selection.tag is SelectionTag.OPTION

    def test_unknown_reply_namespace_has_no_selection(self):
        msg = normalize(make_meta_payload(reply_id="MENU_1"))
        assert msg.selection is None

    def test_media_message_has_no_text(self):
        msg = normalize(make_meta_payload())
        assert msg.kind == "image"
        assert msg.text is None

    def test_status_update_raises(self):
        payload = {
            "object": "whatsapp_business_account",
            "entry": [{"changes": [{"value": {"statuses": [{"id": "wamid.X"}]}, "field": "messages"}]}],
        }
        with pytest.raises(InvalidPayloadError):
            normalize(payload)

    @pytest.mark.parametrize("payload", [{}, {"entry": []}, {"entry": [{}]}, [], "x", None])
    def test_malformed_envelopes_raise(self, payload):
        with pytest.raises(InvalidPayloadError):
            normalize(payload)

    def test_missing_id_raises(self):
        payload = make_meta_payload(text="hi")
        del payload["entry"][0]["changes"][0]["value"]["messages"][0]["id"]
        with pytest.raises(InvalidPayloadError):
            normalize(payload)

    def test_missing_sender_raises(self):
        payload = make_meta_payload(text="hi")
        del payload["entry"][0]["changes"][0]["value"]["messages"][0]["from"]
        with pytest.raises(InvalidPayloadError):
            normalize(payload)


class TestExtractFirstMessage:
    def test_returns_first_of_many(self):
        payload = make_meta_payload("wamid.FIRST", text="hi")
        messages = payload["entry"][0]["changes"][0]["value"]["messages"]
        messages.append({"id": "wamid.SECOND", "from": "1", "type": "text"})

        assert extract_first_message(payload)["id"] == "wamid.FIRST"

    def test_non_dict_message(self):
        payload = {"entry": [{"changes": [{"value": {"messages": ["oops"]}}]}]}
        assert extract_first_message(payload) is None


class TestVerifySignature:
    def test_valid_signature(self):
        body = b'{"object":"whatsapp_business_account"}'
        verify_signature(body, sign(body, "s3cret"), "s3cret")

    def test_mismatch(self):
        body = b"{}"
        with pytest.raises(SignatureVerificationError, match="mismatch"):
            verify_signature(body, sign(body, "other"), "s3cret")

    def test_missing_header(self):
        with pytest.raises(SignatureVerificationError, match="missing"):
            verify_signature(b"{}", "", "s3cret")

    def test_wrong_format(self):
        with pytest.raises(SignatureVerificationError, match="format"):
            verify_signature(b"{}", "sha1=abc", "s3cret")
