"""Reply composition from a normalized email.

Builds the subject, recipient, and (optionally) quoted-original body for a
reply to a ``NormalizedEmail``.  Sending is left to the provider client.
"""

from __future__ import annotations

import html

from mailbridge.email.models import NormalizedEmail, OutboundEmail

REPLY_PREFIX = "Re: "
UNKNOWN_DATE = "Unknown date"


def reply_subject(subject: str) -> str:
    """Prefix *subject* with ``"Re: "`` unless it already starts with it."""
    if subject.startswith(REPLY_PREFIX):
        return subject
    return f"{REPLY_PREFIX}{subject}"


def quote_original(original: NormalizedEmail, *, is_html: bool) -> str:
    """Render the original message as a quoted block to append to a reply.

    The HTML form escapes the sender name, address and subject, then embeds
    the original HTML body (or its plain text when no HTML was sent).  The
    plain form uses the decoded plain-text body.

    Args:
        original: The message being replied to.
        is_html: Render the HTML form instead of the plain-text form.

    Returns:
        The quoted block, starting with a blank-line separator.
    """
    date = original.date or UNKNOWN_DATE

    if is_html:
        sender = f"{html.escape(original.from_name)} &lt;{html.escape(original.from_email)}&gt;"
        return (
            "<br><br>--- Original Message ---<br>"
            f"<strong>From:</strong> {sender}<br>"
            f"<strong>Date:</strong> {html.escape(date)}<br>"
            f"<strong>Subject:</strong> {html.escape(original.subject)}<br><br>"
            f"{original.html_body or html.escape(original.plain_text_body)}"
        )

    return (
        "\n\n--- Original Message ---\n"
        f"From: {original.from_name} <{original.from_email}>\n"
        f"Date: {date}\n"
        f"Subject: {original.subject}\n\n"
        f"{original.plain_text_body}"
    )


def build_reply(
    original: NormalizedEmail,
    body: str,
    *,
    include_original: bool = True,
    is_html: bool = True,
) -> OutboundEmail:
    """Compose a reply to *original* addressed to its sender.

    Args:
        original: The normalized message being replied to.
        body: The new reply text (HTML when *is_html*).
        include_original: Append the quoted original message.
        is_html: Whether *body* and the quoted block are HTML.

    Returns:
        An ``OutboundEmail`` ready for ``UnipileClient.send_email``.
    """
    reply_body = body
    if include_original:
        reply_body += quote_original(original, is_html=is_html)

    return OutboundEmail(
        to=(original.sender,),
        subject=reply_subject(original.subject),
        body=reply_body,
        is_html=is_html,
    )
