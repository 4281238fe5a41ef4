"""
Endpoint methods for the SendPulse REST API.

:class:`SendPulseApi` extends :class:`~sendpulse_api_client.client.SendPulseClient`
with one method per SendPulse endpoint: address books, campaigns,
senders, blacklist, SMTP relay, web push and templates.  Each method
checks its required arguments first and returns an error marker
without contacting the server when one is missing; otherwise it
issues a single request through :meth:`SendPulseClient.call` and
returns the shaped result.

Some endpoints expect text fields base64-encoded and lists of
addresses or attachments as JSON strings.  That encoding is done
here so that the client core always sends parameters unchanged.
"""

from __future__ import annotations

import base64
import json
from typing import Any, Dict, Iterable, Mapping, Optional
from urllib.parse import quote

from .client import SendPulseClient


def _b64(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def _json(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"))


def _page(limit: Optional[int], offset: Optional[int]) -> Dict[str, Any]:
    params: Dict[str, Any] = {}
    if limit is not None:
        params["limit"] = limit
    if offset is not None:
        params["offset"] = offset
    return params


def _seg(value: Any) -> str:
    """Quote *value* for use as a single path segment."""
    return quote(str(value), safe="@")


class SendPulseApi(SendPulseClient):
    """SendPulse client with a method for every supported endpoint.

    Accepts the same arguments as :class:`SendPulseClient`.  Every
    method returns the decoded payload on success or an error marker
    (a dictionary with ``is_error`` set) on failure.
    """

    # ------------------------------------------------------------------
    # Address books
    # ------------------------------------------------------------------
    def create_address_book(self, book_name: str) -> Any:
        if not book_name:
            return self.handle_error("Empty book name")
        return self.handle_result(self.call("addressbooks", "POST", {"bookName": book_name}))

    def edit_address_book(self, book_id: Any, new_name: str) -> Any:
        if not book_id or not new_name:
            return self.handle_error("Empty new name or book id")
        return self.handle_result(
            self.call(f"addressbooks/{_seg(book_id)}", "PUT", {"name": new_name})
        )

    def remove_address_book(self, book_id: Any) -> Any:
        if not book_id:
            return self.handle_error("Empty book id")
        return self.handle_result(self.call(f"addressbooks/{_seg(book_id)}", "DELETE"))

    def list_address_books(self, limit: Optional[int] = None, offset: Optional[int] = None) -> Any:
        return self.handle_result(self.call("addressbooks", "GET", _page(limit, offset)))

    def get_book_info(self, book_id: Any) -> Any:
        if not book_id:
            return self.handle_error("Empty book id")
        return self.handle_result(self.call(f"addressbooks/{_seg(book_id)}"))

    def get_emails_from_book(self, book_id: Any) -> Any:
        if not book_id:
            return self.handle_error("Empty book id")
        return self.handle_result(self.call(f"addressbooks/{_seg(book_id)}/emails"))

    def add_emails(self, book_id: Any, emails: Iterable[Any]) -> Any:
        """Add addresses to a book.

        *emails* is a list of address strings or of dictionaries with an
        ``email`` key and optional ``variables``.
        """
        emails = list(emails or [])
        if not book_id or not emails:
            return self.handle_error("Empty book id or emails")
        return self.handle_result(
            self.call(f"addressbooks/{_seg(book_id)}/emails", "POST", {"emails": _json(emails)})
        )

    def remove_emails(self, book_id: Any, emails: Iterable[str]) -> Any:
        emails = list(emails or [])
        if not book_id or not emails:
            return self.handle_error("Empty book id or emails")
        return self.handle_result(
            self.call(f"addressbooks/{_seg(book_id)}/emails", "DELETE", {"emails": _json(emails)})
        )

    def get_email_info(self, book_id: Any, email: str) -> Any:
        if not book_id or not email:
            return self.handle_error("Empty book id or email")
        return self.handle_result(
            self.call(f"addressbooks/{_seg(book_id)}/emails/{_seg(email)}")
        )

    def campaign_cost(self, book_id: Any) -> Any:
        if not book_id:
            return self.handle_error("Empty book id")
        return self.handle_result(self.call(f"addressbooks/{_seg(book_id)}/cost"))

    # ------------------------------------------------------------------
    # Campaigns
    # ------------------------------------------------------------------
    def list_campaigns(self, limit: Optional[int] = None, offset: Optional[int] = None) -> Any:
        return self.handle_result(self.call("campaigns", "GET", _page(limit, offset)))

    def get_campaign_info(self, campaign_id: Any) -> Any:
        if not campaign_id:
            return self.handle_error("Empty campaign id")
        return self.handle_result(self.call(f"campaigns/{_seg(campaign_id)}"))

    def get_campaigns_by_book(self, book_id: Any) -> Any:
        if not book_id:
            return self.handle_error("Empty book id")
        return self.handle_result(self.call(f"addressbooks/{_seg(book_id)}/campaigns"))

    def campaign_stat_by_countries(self, campaign_id: Any) -> Any:
        if not campaign_id:
            return self.handle_error("Empty campaign id")
        return self.handle_result(self.call(f"campaigns/{_seg(campaign_id)}/countries"))

    def campaign_stat_by_referrals(self, campaign_id: Any) -> Any:
        if not campaign_id:
            return self.handle_error("Empty campaign id")
        return self.handle_result(self.call(f"campaigns/{_seg(campaign_id)}/referrals"))

    def create_campaign(
        self,
        sender_name: str,
        sender_email: str,
        subject: str,
        body: str,
        book_id: Any,
        *,
        name: str = "",
        template_id: Optional[Any] = None,
        attachments: Optional[Mapping[str, str]] = None,
        send_date: Optional[str] = None,
    ) -> Any:
        """Create an email campaign for an address book.

        *body* is the HTML of the message; it is ignored by SendPulse
        when *template_id* is given.  *attachments* maps file names to
        their content.
        """
        if not sender_name or not sender_email or not subject or not book_id:
            return self.handle_error("Not all data.")
        params: Dict[str, Any] = {
            "sender_name": sender_name,
            "sender_email": sender_email,
            "subject": subject,
            "body": _b64(body or ""),
            "list_id": book_id,
            "name": name,
        }
        if template_id:
            params["template_id"] = template_id
        if attachments:
            params["attachments"] = _json(dict(attachments))
        if send_date:
            params["send_date"] = send_date
        return self.handle_result(self.call("campaigns", "POST", params))

    def edit_campaign(
        self,
        campaign_id: Any,
        *,
        name: Optional[str] = None,
        sender_name: Optional[str] = None,
        sender_email: Optional[str] = None,
        subject: Optional[str] = None,
        body: Optional[str] = None,
        template_id: Optional[Any] = None,
        send_date: Optional[str] = None,
    ) -> Any:
        """Change a scheduled campaign.  Only the given fields are sent."""
        if not campaign_id:
            return self.handle_error("Empty campaign id")
        params: Dict[str, Any] = {"id": campaign_id}
        for key, value in (
            ("name", name),
            ("sender_name", sender_name),
            ("sender_email", sender_email),
            ("subject", subject),
            ("template_id", template_id),
            ("send_date", send_date),
        ):
            if value is not None:
                params[key] = value
        if body is not None:
            params["body"] = _b64(body)
        return self.handle_result(self.call("campaigns", "PATCH", params))

    def cancel_campaign(self, campaign_id: Any) -> Any:
        if not campaign_id:
            return self.handle_error("Empty campaign id")
        return self.handle_result(self.call(f"campaigns/{_seg(campaign_id)}", "DELETE"))

    # ------------------------------------------------------------------
    # Senders
    # ------------------------------------------------------------------
    def list_senders(self) -> Any:
        return self.handle_result(self.call("senders"))

    def add_sender(self, sender_name: str, sender_email: str) -> Any:
        if not sender_name or not sender_email:
            return self.handle_error("Empty sender name or email")
        return self.handle_result(
            self.call("senders", "POST", {"email": sender_email, "name": sender_name})
        )

    def remove_sender(self, email: str) -> Any:
        if not email:
            return self.handle_error("Empty email")
        return self.handle_result(self.call("senders", "DELETE", {"email": email}))

    def activate_sender(self, email: str, code: str) -> Any:
        if not email or not code:
            return self.handle_error("Empty email or activation code")
        return self.handle_result(self.call(f"senders/{_seg(email)}/code", "POST", {"code": code}))

    def get_sender_activation_mail(self, email: str) -> Any:
        if not email:
            return self.handle_error("Empty email")
        return self.handle_result(self.call(f"senders/{_seg(email)}/code"))

    # ------------------------------------------------------------------
    # Emails
    # ------------------------------------------------------------------
    def get_email_global_info(self, email: str) -> Any:
        if not email:
            return self.handle_error("Empty email")
        return self.handle_result(self.call(f"emails/{_seg(email)}"))

    def remove_email_from_all_books(self, email: str) -> Any:
        if not email:
            return self.handle_error("Empty email")
        return self.handle_result(self.call(f"emails/{_seg(email)}", "DELETE"))

    def email_stat_by_campaigns(self, email: str) -> Any:
        if not email:
            return self.handle_error("Empty email")
        return self.handle_result(self.call(f"emails/{_seg(email)}/campaigns"))

    # ------------------------------------------------------------------
    # Blacklist
    # ------------------------------------------------------------------
    def get_blacklist(self) -> Any:
        return self.handle_result(self.call("blacklist"))

    def add_to_blacklist(self, emails: str, comment: str = "") -> Any:
        """Blacklist addresses.  *emails* is a comma-separated string."""
        if not emails:
            return self.handle_error("Empty email")
        return self.handle_result(
            self.call("blacklist", "POST", {"emails": _b64(emails), "comment": comment})
        )

    def remove_from_blacklist(self, emails: str) -> Any:
        if not emails:
            return self.handle_error("Empty email")
        return self.handle_result(self.call("blacklist", "DELETE", {"emails": _b64(emails)}))

    # ------------------------------------------------------------------
    # Balance
    # ------------------------------------------------------------------
    def get_balance(self, currency: str = "") -> Any:
        path = "balance"
        if currency:
            path += "/" + _seg(currency.upper())
        return self.handle_result(self.call(path))

    # ------------------------------------------------------------------
    # SMTP
    # ------------------------------------------------------------------
    def smtp_list_emails(
        self,
        limit: int = 0,
        offset: int = 0,
        from_date: str = "",
        to_date: str = "",
        sender: str = "",
        recipient: str = "",
    ) -> Any:
        params = {
            "limit": limit,
            "offset": offset,
            "from": from_date,
            "to": to_date,
            "sender": sender,
            "recipient": recipient,
        }
        return self.handle_result(self.call("smtp/emails", "GET", params))

    def smtp_get_email_info_by_id(self, email_id: Any) -> Any:
        if not email_id:
            return self.handle_error("Empty id")
        return self.handle_result(self.call(f"smtp/emails/{_seg(email_id)}"))

    def smtp_unsubscribe_emails(self, emails: Iterable[Any]) -> Any:
        """Unsubscribe addresses from SMTP mail.

        *emails* is a list of dictionaries with ``email`` and an
        optional ``comment``.
        """
        emails = list(emails or [])
        if not emails:
            return self.handle_error("Empty emails")
        return self.handle_result(self.call("smtp/unsubscribe", "POST", {"emails": _json(emails)}))

    def smtp_remove_from_unsubscribe(self, emails: Iterable[str]) -> Any:
        emails = list(emails or [])
        if not emails:
            return self.handle_error("Empty emails")
        return self.handle_result(
            self.call("smtp/unsubscribe", "DELETE", {"emails": _json(emails)})
        )

    def smtp_list_ip(self) -> Any:
        return self.handle_result(self.call("smtp/ips"))

    def smtp_list_allowed_domains(self) -> Any:
        return self.handle_result(self.call("smtp/domains"))

    def smtp_add_domain(self, email: str) -> Any:
        if not email:
            return self.handle_error("Empty email")
        return self.handle_result(self.call("smtp/domains", "POST", {"email": email}))

    def smtp_verify_domain(self, email: str) -> Any:
        if not email:
            return self.handle_error("Empty email")
        return self.handle_result(self.call(f"smtp/domains/{_seg(email)}"))

    def smtp_send_mail(self, email: Mapping[str, Any]) -> Any:
        """Send a single message through the SMTP relay.

        *email* holds ``html``, ``text``, ``subject``, ``from`` and
        ``to`` as described in the SendPulse documentation.  The
        ``html`` part is base64-encoded before sending; the mapping
        passed in is not modified.
        """
        if not email:
            return self.handle_error("Empty email data")
        message = dict(email)
        if message.get("html"):
            message["html"] = _b64(message["html"])
        return self.handle_result(self.call("smtp/emails", "POST", {"email": _json(message)}))

    # ------------------------------------------------------------------
    # Web push
    # ------------------------------------------------------------------
    def push_list_campaigns(self, limit: Optional[int] = None, offset: Optional[int] = None) -> Any:
        return self.handle_result(self.call("push/tasks", "GET", _page(limit, offset)))

    def push_list_websites(self, limit: Optional[int] = None, offset: Optional[int] = None) -> Any:
        return self.handle_result(self.call("push/websites", "GET", _page(limit, offset)))

    def push_count_websites(self) -> Any:
        return self.handle_result(self.call("push/websites/total"))

    def push_list_website_variables(self, website_id: Any) -> Any:
        if not website_id:
            return self.handle_error("Empty website id")
        return self.handle_result(self.call(f"push/websites/{_seg(website_id)}/variables"))

    def push_list_website_subscriptions(
        self,
        website_id: Any,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> Any:
        if not website_id:
            return self.handle_error("Empty website id")
        return self.handle_result(
            self.call(
                f"push/websites/{_seg(website_id)}/subscriptions", "GET", _page(limit, offset)
            )
        )

    def push_count_website_subscriptions(self, website_id: Any) -> Any:
        if not website_id:
            return self.handle_error("Empty website id")
        return self.handle_result(
            self.call(f"push/websites/{_seg(website_id)}/subscriptions/total")
        )

    def push_set_subscription_state(self, subscription_id: Any, state: int) -> Any:
        if not subscription_id:
            return self.handle_error("Empty subscription id")
        return self.handle_result(
            self.call("push/subscriptions/state", "POST", {"id": subscription_id, "state": state})
        )

    def create_push_task(
        self,
        task_info: Mapping[str, Any],
        additional_params: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """Schedule a web push notification.

        *task_info* must contain ``title``, ``website_id`` and ``body``;
        ``ttl`` defaults to ``0``.  *additional_params* (for example
        ``filter_lang`` or ``stretch_time``) are merged over it.
        """
        params = dict(task_info or {})
        params.setdefault("ttl", 0)
        if not params.get("title") or not params.get("website_id") or not params.get("body"):
            return self.handle_error("Not all data")
        if additional_params:
            params.update(additional_params)
        return self.handle_result(self.call("push/tasks", "POST", params))

    # ------------------------------------------------------------------
    # Templates
    # ------------------------------------------------------------------
    def get_templates(self, params: Optional[Mapping[str, Any]] = None) -> Any:
        return self.handle_result(self.call("templates", "GET", params))

    def get_template(self, template_id: Any) -> Any:
        if not template_id:
            return self.handle_error("Empty template id")
        return self.handle_result(self.call(f"template/{_seg(template_id)}"))

    def create_template(self, name: str, body: str, lang: str = "en") -> Any:
        """Create an email template from an HTML *body*.

        *lang* defaults to ``"en"``.  Older SendPulse clients always sent
        ``"br"``; pass ``lang="br"`` to keep that behaviour.
        """
        if not name or not body:
            return self.handle_error("Empty template name or body")
        params = {"name": name, "body": _b64(body), "lang": lang}
        return self.handle_result(self.call("template", "POST", params))

    def edit_template(self, template_id: Any, body: str) -> Any:
        if not template_id or not body:
            return self.handle_error("Empty template id or body")
        params = {"id": template_id, "body": _b64(body)}
        return self.handle_result(self.call(f"template/edit/{_seg(template_id)}", "POST", params))

    def remove_template(self, template_id: Any) -> Any:
        if not template_id:
            return self.handle_error("Empty template id")
        return self.handle_result(self.call("template", "DELETE", {"template_id": template_id}))
