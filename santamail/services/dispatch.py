from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence, Union

from loguru import logger

from santamail.core.config import DEFAULT_SUBJECT
from santamail.services.matching import Assignment
from santamail.services.templates import MessageTemplate, TemplateError
from santamail.services.transport import MailTransport, OutgoingMessage, SendError


@dataclass(frozen=True)
class DispatchFailure:
    assignment: Assignment
    reason: str


@dataclass
class DispatchReport:
    succeeded: int = 0
    failed: List[DispatchFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def attempted(self) -> int:
        return self.succeeded + len(self.failed)


def build_message(
    assignment: Assignment,
    template: MessageTemplate,
    subject: str = DEFAULT_SUBJECT,
) -> OutgoingMessage:
    return OutgoingMessage(
        to=assignment.giver.email,
        subject=subject,
        body=template.render(assignment),
        subtype=template.subtype,
    )


def build_messages(
    assignments: Sequence[Assignment],
    template: MessageTemplate,
    subject: str = DEFAULT_SUBJECT,
) -> List[Union[OutgoingMessage, DispatchFailure]]:
    """Render one message per assignment, addressed to the giver.

    The result is aligned with ``assignments``; an assignment whose template
    fails to render is represented by a DispatchFailure.
    """
    rendered: List[Union[OutgoingMessage, DispatchFailure]] = []
    for assignment in assignments:
        try:
            rendered.append(build_message(assignment, template, subject))
        except TemplateError as exc:
            logger.bind(giver=assignment.giver.email).error(
                "Failed to render message: {error}", error=str(exc)
            )
            rendered.append(DispatchFailure(assignment, str(exc)))
    return rendered


def dispatch(
    assignments: Sequence[Assignment],
    template: MessageTemplate,
    transport: MailTransport,
    subject: str = DEFAULT_SUBJECT,
) -> DispatchReport:
    """Notify every giver of their recipient over a single transport session.

    Raises TransportUnavailableError if the transport cannot be dialled; in
    that case nothing is sent. Render and send failures of single messages
    are collected in the returned report.
    """
    rendered = build_messages(assignments, template, subject)
    report = DispatchReport()

    with transport.dial() as session:
        for assignment, item in zip(assignments, rendered):
            if isinstance(item, DispatchFailure):
                report.failed.append(item)
                continue

            log = logger.bind(giver=assignment.giver.email)
            try:
                session.send(item)
            except SendError as exc:
                log.error("Send failed: {error}", error=str(exc))
                report.failed.append(DispatchFailure(assignment, str(exc)))
                continue
            log.info("Sent match notification")
            report.succeeded += 1

    logger.info(
        "Dispatch finished: {succeeded} sent, {failed} failed",
        succeeded=report.succeeded,
        failed=len(report.failed),
    )
    return report
