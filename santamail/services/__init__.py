from santamail.services.dispatch import DispatchFailure, DispatchReport, dispatch
from santamail.services.matching import Assignment, generate_matches
from santamail.services.participants import EmptyInputError, InputError, Participant, load_participants
from santamail.services.templates import TemplateError, load_template
from santamail.services.transport import SendError, TransportError, TransportUnavailableError

__all__ = [
    "Assignment",
    "DispatchFailure",
    "DispatchReport",
    "EmptyInputError",
    "InputError",
    "Participant",
    "SendError",
    "TemplateError",
    "TransportError",
    "TransportUnavailableError",
    "dispatch",
    "generate_matches",
    "load_participants",
    "load_template",
]
