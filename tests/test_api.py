"""Tests for the endpoint methods of SendPulseApi."""

from __future__ import annotations

import base64
import json

import pytest


def _b64(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def _sent(mock_request) -> dict:
    return mock_request.call_args.kwargs


# ---------------------------------------------------------------------------
# Validation short-circuit
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "method, args, message",
    [
        ("create_address_book", ("",), "Empty book name"),
        ("edit_address_book", (1, ""), "Empty new name or book id"),
        ("remove_address_book", (None,), "Empty book id"),
        ("get_book_info", ("",), "Empty book id"),
        ("add_emails", (1, []), "Empty book id or emails"),
        ("remove_emails", ("", ["a@example.com"]), "Empty book id or emails"),
        ("get_email_info", (1, ""), "Empty book id or email"),
        ("get_campaign_info", (None,), "Empty campaign id"),
        ("create_campaign", ("Me", "", "Hi", "<p>x</p>", 1), "Not all data."),
        ("cancel_campaign", ("",), "Empty campaign id"),
        ("add_sender", ("Me", ""), "Empty sender name or email"),
        ("activate_sender", ("a@example.com", ""), "Empty email or activation code"),
        ("add_to_blacklist", ("",), "Empty email"),
        ("smtp_send_mail", ({},), "Empty email data"),
        ("smtp_unsubscribe_emails", ([],), "Empty emails"),
        ("create_push_task", ({"title": "t", "body": "b"},), "Not all data"),
        ("remove_template", (None,), "Empty template id"),
    ],
)
def test_missing_arguments_return_error_without_request(
    api, mock_request, method, args, message
) -> None:
    result = getattr(api, method)(*args)

    assert result == {"is_error": True, "message": message}
    mock_request.assert_not_called()


# ---------------------------------------------------------------------------
# Address books
# ---------------------------------------------------------------------------


class TestAddressBooks:
    def test_create(self, api, mock_request, make_response) -> None:
        mock_request.return_value = make_response(200, {"id": 12})

        assert api.create_address_book("Newsletter") == {"id": 12}
        sent = _sent(mock_request)
        assert sent["method"] == "POST"
        assert sent["url"] == "https://api.sendpulse.com/addressbooks"
        assert sent["data"] == {"bookName": "Newsletter"}

    def test_list_only_sends_given_paging(self, api, mock_request, make_response) -> None:
        mock_request.return_value = make_response(200, [])

        assert api.list_address_books(limit=10) == {}
        assert _sent(mock_request)["params"] == {"limit": 10}

    def test_add_emails_json_encodes_list(self, api, mock_request, make_response) -> None:
        mock_request.return_value = make_response(200, {"result": True})
        emails = [{"email": "a@example.com", "variables": {"name": "A"}}]

        api.add_emails(12, emails)

        sent = _sent(mock_request)
        assert sent["url"] == "https://api.sendpulse.com/addressbooks/12/emails"
        assert json.loads(sent["data"]["emails"]) == emails

    def test_remove_emails_uses_delete_body(self, api, mock_request, make_response) -> None:
        mock_request.return_value = make_response(200, {"result": True})

        api.remove_emails(12, ["a@example.com"])

        sent = _sent(mock_request)
        assert sent["method"] == "DELETE"
        assert json.loads(sent["data"]["emails"]) == ["a@example.com"]

    def test_email_in_path_is_quoted(self, api, mock_request, make_response) -> None:
        mock_request.return_value = make_response(200, {})

        api.get_email_info(12, "a+b@example.com")

        assert (
            _sent(mock_request)["url"]
            == "https://api.sendpulse.com/addressbooks/12/emails/a%2Bb@example.com"
        )

    def test_error_result_carries_status(self, api, mock_request, make_response) -> None:
        mock_request.return_value = make_response(404, {"error_code": 213, "message": "Book not found"})

        result = api.get_book_info(99)

        assert result["is_error"] is True
        assert result["http_code"] == 404
        assert result["message"] == "Book not found"


# ---------------------------------------------------------------------------
# Campaigns
# ---------------------------------------------------------------------------


class TestCampaigns:
    def test_create_encodes_body_and_attachments(self, api, mock_request, make_response) -> None:
        mock_request.return_value = make_response(200, {"id": 5})

        api.create_campaign(
            "Me",
            "me@example.com",
            "Hello",
            "<h1>Hi</h1>",
            12,
            name="Launch",
            attachments={"a.txt": "content"},
            send_date="2030-01-01 10:00:00",
        )

        data = _sent(mock_request)["data"]
        assert data["body"] == _b64("<h1>Hi</h1>")
        assert data["list_id"] == 12
        assert data["name"] == "Launch"
        assert json.loads(data["attachments"]) == {"a.txt": "content"}
        assert data["send_date"] == "2030-01-01 10:00:00"
        assert "template_id" not in data

    def test_create_with_template(self, api, mock_request, make_response) -> None:
        mock_request.return_value = make_response(200, {"id": 5})

        api.create_campaign("Me", "me@example.com", "Hello", "", 12, template_id=77)

        assert _sent(mock_request)["data"]["template_id"] == 77

    def test_edit_sends_only_given_fields(self, api, mock_request, make_response) -> None:
        mock_request.return_value = make_response(200, {"result": True})

        api.edit_campaign(5, subject="New subject", body="<p>x</p>")

        sent = _sent(mock_request)
        assert sent["method"] == "PATCH"
        assert sent["data"] == {"id": 5, "subject": "New subject", "body": _b64("<p>x</p>")}

    def test_cancel(self, api, mock_request, make_response) -> None:
        mock_request.return_value = make_response(200, {"result": True})

        api.cancel_campaign(5)

        sent = _sent(mock_request)
        assert sent["method"] == "DELETE"
        assert sent["url"] == "https://api.sendpulse.com/campaigns/5"

    def test_stats_by_book(self, api, mock_request, make_response) -> None:
        mock_request.return_value = make_response(200, [])

        api.get_campaigns_by_book(12)

        assert _sent(mock_request)["url"] == "https://api.sendpulse.com/addressbooks/12/campaigns"


# ---------------------------------------------------------------------------
# Senders, blacklist, balance
# ---------------------------------------------------------------------------


class TestSendersAndBlacklist:
    def test_remove_sender_uses_delete_body(self, api, mock_request, make_response) -> None:
        mock_request.return_value = make_response(200, {"result": True})

        api.remove_sender("me@example.com")

        sent = _sent(mock_request)
        assert sent["method"] == "DELETE"
        assert sent["data"] == {"email": "me@example.com"}

    def test_activate_sender(self, api, mock_request, make_response) -> None:
        mock_request.return_value = make_response(200, {"result": True})

        api.activate_sender("me@example.com", "123456")

        sent = _sent(mock_request)
        assert sent["url"] == "https://api.sendpulse.com/senders/me@example.com/code"
        assert sent["data"] == {"code": "123456"}

    def test_blacklist_base64_encodes_emails(self, api, mock_request, make_response) -> None:
        mock_request.return_value = make_response(200, {"result": True})

        api.add_to_blacklist("a@example.com,b@example.com", comment="spam")

        assert _sent(mock_request)["data"] == {
            "emails": _b64("a@example.com,b@example.com"),
            "comment": "spam",
        }

    def test_balance_currency_upper_cased(self, api, mock_request, make_response) -> None:
        mock_request.return_value = make_response(200, {"currency": "USD"})

        api.get_balance("usd")

        assert _sent(mock_request)["url"] == "https://api.sendpulse.com/balance/USD"

    def test_balance_without_currency(self, api, mock_request, make_response) -> None:
        mock_request.return_value = make_response(200, [])

        api.get_balance()

        assert _sent(mock_request)["url"] == "https://api.sendpulse.com/balance"


# ---------------------------------------------------------------------------
# SMTP
# ---------------------------------------------------------------------------


class TestSmtp:
    def test_send_mail_encodes_html_without_mutating_input(
        self, api, mock_request, make_response
    ) -> None:
        mock_request.return_value = make_response(200, {"result": True, "id": "abc"})
        email = {
            "html": "<p>Hello</p>",
            "text": "Hello",
            "subject": "Greetings",
            "from": {"name": "Me", "email": "me@example.com"},
            "to": [{"name": "You", "email": "you@example.com"}],
        }

        assert api.smtp_send_mail(email) == {"result": True, "id": "abc"}

        sent = _sent(mock_request)
        assert sent["url"] == "https://api.sendpulse.com/smtp/emails"
        message = json.loads(sent["data"]["email"])
        assert message["html"] == _b64("<p>Hello</p>")
        assert message["to"] == email["to"]
        assert email["html"] == "<p>Hello</p>"

    def test_list_emails_sends_all_filters(self, api, mock_request, make_response) -> None:
        mock_request.return_value = make_response(200, [])

        api.smtp_list_emails(limit=5, sender="me@example.com")

        assert _sent(mock_request)["params"] == {
            "limit": 5,
            "offset": 0,
            "from": "",
            "to": "",
            "sender": "me@example.com",
            "recipient": "",
        }

    def test_remove_from_unsubscribe(self, api, mock_request, make_response) -> None:
        mock_request.return_value = make_response(200, {"result": True})

        api.smtp_remove_from_unsubscribe(["a@example.com"])

        sent = _sent(mock_request)
        assert sent["method"] == "DELETE"
        assert sent["url"] == "https://api.sendpulse.com/smtp/unsubscribe"


# ---------------------------------------------------------------------------
# Push and templates
# ---------------------------------------------------------------------------


class TestPushAndTemplates:
    def test_create_push_task_defaults_ttl_and_merges_params(
        self, api, mock_request, make_response
    ) -> None:
        mock_request.return_value = make_response(200, {"result": True, "id": 1})
        task = {"title": "Sale", "website_id": 3, "body": "50% off"}

        api.create_push_task(task, {"filter_lang": "en"})

        assert _sent(mock_request)["data"] == {
            "title": "Sale",
            "website_id": 3,
            "body": "50% off",
            "ttl": 0,
            "filter_lang": "en",
        }
        assert "ttl" not in task

    def test_create_push_task_nested_filter_and_flags(
        self, api, mock_request, make_response
    ) -> None:
        mock_request.return_value = make_response(200, {"result": True, "id": 1})
        task = {"title": "Sale", "website_id": 3, "body": "50% off"}

        api.create_push_task(
            task, {"filter": {"variable_name": "city", "operator": "or"}, "stretch_time": True}
        )

        data = _sent(mock_request)["data"]
        assert data["filter[variable_name]"] == "city"
        assert data["filter[operator]"] == "or"
        assert data["stretch_time"] == 1
        assert "filter" not in data

    def test_website_subscriptions(self, api, mock_request, make_response) -> None:
        mock_request.return_value = make_response(200, [])

        api.push_list_website_subscriptions(3, limit=20, offset=40)

        sent = _sent(mock_request)
        assert sent["url"] == "https://api.sendpulse.com/push/websites/3/subscriptions"
        assert sent["params"] == {"limit": 20, "offset": 40}

    def test_create_template(self, api, mock_request, make_response) -> None:
        mock_request.return_value = make_response(200, {"result": True, "real_id": 9})

        api.create_template("Welcome", "<p>Hi</p>")

        sent = _sent(mock_request)
        assert sent["url"] == "https://api.sendpulse.com/template"
        assert sent["data"] == {"name": "Welcome", "body": _b64("<p>Hi</p>"), "lang": "en"}

    def test_create_template_with_language(self, api, mock_request, make_response) -> None:
        mock_request.return_value = make_response(200, {"result": True, "real_id": 9})

        api.create_template("Welcome", "<p>Hi</p>", lang="br")

        assert _sent(mock_request)["data"]["lang"] == "br"

    def test_remove_template(self, api, mock_request, make_response) -> None:
        mock_request.return_value = make_response(200, {"result": True})

        api.remove_template(9)

        sent = _sent(mock_request)
        assert sent["method"] == "DELETE"
        assert sent["data"] == {"template_id": 9}


def test_endpoint_call_refreshes_expired_token(
    api, mock_request, make_response, token_response
) -> None:
    mock_request.side_effect = [
        make_response(401, {"error": "invalid_token"}),
        token_response("T2"),
        make_response(200, [{"id": 1, "name": "Newsletter"}]),
    ]

    assert api.list_address_books() == [{"id": 1, "name": "Newsletter"}]
    assert api.token == "T2"
