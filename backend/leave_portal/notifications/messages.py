"""Stage notification content.

A ``StageNotice`` is what the workflow engine hands to the notifier: who to
tell, about which request, with which token. ``compose`` turns it into the
email that is actually sent, with a deep link to the stage's review page.
"""

from __future__ import annotations

import html
from dataclasses import dataclass
from typing import Optional

from leave_portal.core.errors import ConfigurationError, NotificationError
from leave_portal.workflow.states import Stage

_CARD_STYLE = "font-family: sans-serif; border: 1px solid #ddd; padding: 20px;"
_BUTTON_STYLE = "padding: 10px 20px; text-decoration: none; border-radius: 5px;"


@dataclass(frozen=True)
class StageNotice:
    stage: Stage
    recipient: str
    staff_name: str
    token: str
    previous_decision: Optional[str] = None


@dataclass(frozen=True)
class EmailMessage:
    to: str
    subject: str
    body_text: str
    body_html: str
    link: str


@dataclass(frozen=True)
class _Template:
    subject: str
    heading: str
    heading_color: str
    button_label: str
    button_color: str
    lines: tuple[str, ...]


_TEMPLATES = {
    Stage.MANAGER: _Template(
        subject="Leave Request Approval Required: {staff_name}",
        heading="Manager Action Required",
        heading_color="#004d40",
        button_label="Review Request",
        button_color="#00c853",
        lines=("{staff_name} has submitted a leave request for your attention.",),
    ),
    Stage.HR: _Template(
        subject="HR Processing Required: Leave Request for {staff_name}",
        heading="HR Action Required",
        heading_color="#01579b",
        button_label="Review for HR",
        button_color="#0288d1",
        lines=(
            "The Line Manager has recorded '{previous_decision}' on the leave request for {staff_name}.",
            "Please review the details and provide HR clearance.",
        ),
    ),
    Stage.MD: _Template(
        subject="Final Approval Required: {staff_name}",
        heading="Final Executive Approval",
        heading_color="#b71c1c",
        button_label="Review for Final Approval",
        button_color="#d32f2f",
        lines=(
            "HR has recorded '{previous_decision}' on the leave request for {staff_name}.",
            "The request now requires your final decision.",
        ),
    ),
    Stage.ARCHIVE: _Template(
        subject="COMPLETED: Leave Request Archive - {staff_name}",
        heading="Process Completed",
        heading_color="#333",
        button_label="View Final Archive",
        button_color="#455a64",
        lines=(
            "The MD has recorded '{previous_decision}' on the leave request for {staff_name}.",
            "You can now view the final audit trail and file the request.",
        ),
    ),
}


def build_link(base_url: Optional[str], stage: Stage, token: str) -> str:
    if not base_url:
        raise ConfigurationError("BASE_URL is not set")
    return f"{base_url.rstrip('/')}/{stage.page}?token={token}"


def compose(notice: StageNotice, base_url: Optional[str]) -> EmailMessage:
    if not notice.recipient or not notice.staff_name or not notice.token:
        raise NotificationError("missing required email parameters")

    link = build_link(base_url, notice.stage, notice.token)
    template = _TEMPLATES[notice.stage]
    values = {
        "staff_name": notice.staff_name,
        "previous_decision": notice.previous_decision or "No Decision",
    }
    escaped = {key: html.escape(value) for key, value in values.items()}
    lines = [line.format(**values) for line in template.lines]

    body_text = "\n\n".join(lines + [f"{template.button_label}: {link}"])
    paragraphs = "".join(f"<p>{line.format(**escaped)}</p>" for line in template.lines)
    body_html = (
        f'<div style="{_CARD_STYLE}">'
        f'<h2 style="color: {template.heading_color};">{template.heading}</h2>'
        f"{paragraphs}"
        f'<a href="{link}" style="background: {template.button_color}; color: white; {_BUTTON_STYLE}">'
        f"{template.button_label}</a>"
        f"</div>"
    )
    return EmailMessage(
        to=notice.recipient,
        subject=template.subject.format(**values),
        body_text=body_text,
        body_html=body_html,
        link=link,
    )
