"""
Tests for inbound email payload normalization and routing.
"""

import pytest

from api.services.inbound_email import (
    InboundEmail,
    from_brevo_payload,
    from_generic_payload,
    handle_inbound_email,
    is_screening_reply,
)
from core.exceptions import ValidationFailed


class TestGenericPayload:

    def test_display_name_is_stripped(self):
        email = from_generic_payload({
            "from": "Ravi Kumar <Ravi@Acme.io>",
            "subject": "Re: Screening questions",
            "text": "5 years",
        })
        assert email.sender == "ravi@acme.io"
        assert email.subject == "Re: Screening questions"

    def test_html_only_body(self):
        email = from_generic_payload({
            "from": "ravi@acme.io",
            "html": "<p>Experience: 5 years</p><p>Notice period: 30 days</p>",
        })
        assert "Experience: 5 years" in email.body
        assert "Notice period: 30 days" in email.body
        assert "<p>" not in email.body

    def test_missing_sender(self):
        with pytest.raises(ValidationFailed):
            from_generic_payload({"subject": "hello"})


class TestBrevoPayload:

    def test_items(self):
        emails = from_brevo_payload({
            "items": [
                {
                    "From": {"Name": "Ravi", "Address": "ravi@acme.io"},
                    "Subject": "Re: Your application",
                    "RawTextBody": "I have 4 years of experience",
                },
                {
                    "From": {"Address": "meera@acme.io"},
                    "Subject": "Out of office",
                    "RawHtmlBody": "<div>Away</div>",
                },
            ]
        })

        assert [e.sender for e in emails] == ["ravi@acme.io", "meera@acme.io"]
        assert emails[1].body == "Away"

    def test_single_item_without_wrapper(self):
        emails = from_brevo_payload({"From": "ravi@acme.io", "Subject": "x", "RawTextBody": "y"})
        assert len(emails) == 1

    @pytest.mark.parametrize("payload", [
        {"items": "nope"},
        {"items": ["nope"]},
        {"items": [{"Subject": "no sender"}]},
    ])
    def test_malformed(self, payload):
        with pytest.raises(ValidationFailed):
            from_brevo_payload(payload)


class TestRouting:

    @pytest.mark.parametrize("subject,expected", [
        ("Re: Screening questions for Data Analyst", True),
        ("RE: Your Application", True),
        ("Interview availability", True),
        ("Lunch on Friday?", False),
        ("", False),
    ])
    def test_is_screening_reply(self, subject, expected):
        assert is_screening_reply(InboundEmail(sender="a@acme.io", subject=subject, text="")) is expected

    @pytest.mark.asyncio
    async def test_unrelated_email_is_ignored(self, session):
        email = InboundEmail(sender="ravi@acme.io", subject="Lunch?", text="Pizza at 1")
        assert await handle_inbound_email(session, email) == {
            "status": "ignored",
            "reason": "not_screening_reply",
        }

    @pytest.mark.asyncio
    async def test_unknown_sender_is_ignored(self, session):
        email = InboundEmail(
            sender="stranger@acme.io",
            subject="Re: screening",
            text="I have 5 years of experience and a 30 day notice period",
        )
        result = await handle_inbound_email(session, email)
        assert result["status"] == "ignored"
        assert result["reason"] == "unknown_sender"
