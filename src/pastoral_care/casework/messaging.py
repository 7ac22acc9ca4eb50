"""Plain-text email templates for handing cases between staff."""

from __future__ import annotations

from pastoral_care.core.config import CoordinatorSettings
from pastoral_care.core.models import CaseView, ForwardTemplate, QueueItem

NOT_SET = "Not set"


def build_forward_template(
    view: CaseView, coordinator: CoordinatorSettings
) -> ForwardTemplate:
    """Template an advisor uses to forward a case thread to the coordinator.

    Sent to the case owner, or the shared support mailbox when the case has no
    owner email, copying the advisor.
    """
    student_name = view.student.name if view.student else None
    advisor_name = view.advisor.name if view.advisor else None
    owner_email = view.owner.email if view.owner else None
    advisor_email = view.advisor.email if view.advisor else None

    body = "\n".join(
        [
            f"Hi {coordinator.name},",
            "",
            f"Forwarding the latest email thread for {student_name or 'this student'}.",
            "",
            "Highlights:",
            "- Include why you're forwarding the message",
            "- Note any action you're taking next",
            "",
            "Thanks,",
            advisor_name or "Advisor",
            "",
            f"Case alias: {view.email_alias or NOT_SET}",
        ]
    )
    return ForwardTemplate(
        to=owner_email or coordinator.support_email,
        cc=(advisor_email,) if advisor_email else (),
        subject=f"Forwarded email: {student_name or view.id}",
        body=body,
    )


def build_advisor_update_request(
    item: QueueItem, coordinator: CoordinatorSettings
) -> ForwardTemplate | None:
    """Template the coordinator sends an advisor asking for a case update.

    Returns ``None`` when the case has no advisor email to write to.
    """
    if not item.advisor_email:
        return None
    body = "\n".join(
        [
            f"Hi {item.advisor_name or ''},".replace(" ,", ","),
            "",
            f"Could you share a quick update on {item.student_name or 'this student'}?",
            "",
            "Thanks,",
            coordinator.name,
        ]
    )
    return ForwardTemplate(
        to=item.advisor_email,
        cc=(item.owner_email or coordinator.support_email,),
        subject=f"Student update: {item.student_name or 'advisee'}",
        body=body,
    )


def render_template(template: ForwardTemplate) -> str:
    """Render ``template`` as copyable text with a subject line."""
    return f"Subject: {template.subject}\n\n{template.body}"


__all__ = ["build_advisor_update_request", "build_forward_template", "render_template"]
