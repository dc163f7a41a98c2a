from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Sequence, Tuple, Union

from loguru import logger

DEFAULT_INPUT_PATH = "data.json"


class InputError(RuntimeError):
    pass


class EmptyInputError(InputError):
    pass


@dataclass(frozen=True)
class Participant:
    name: str
    email: str
    wishlist: Tuple[str, ...] = field(default_factory=tuple)


def _require_string(record: dict, key: str, index: int) -> str:
    value = record.get(key)
    if not isinstance(value, str) or not value.strip():
        raise InputError(f"Participant #{index} must have a non-empty string '{key}'.")
    value = value.strip()
    if "\r" in value or "\n" in value:
        raise InputError(f"Participant #{index} has a line break in '{key}'.")
    return value


def _parse_wishlist(record: dict, index: int) -> Tuple[str, ...]:
    wishlist = record.get("wishlist")
    if wishlist is None:
        return ()
    if not isinstance(wishlist, list) or not all(isinstance(item, str) for item in wishlist):
        raise InputError(f"Participant #{index} has a 'wishlist' that is not a list of strings.")
    return tuple(wishlist)


def parse_participants(records: Any) -> List[Participant]:
    """Validate decoded JSON records and turn them into participants.

    Order is preserved and duplicates are kept as separate participants.
    """
    if not isinstance(records, list):
        raise InputError("Participant data must be a JSON array of objects.")
    if not records:
        raise EmptyInputError("Participant list is empty.")

    participants: List[Participant] = []
    for index, record in enumerate(records, start=1):
        if not isinstance(record, dict):
            raise InputError(f"Participant #{index} must be a JSON object.")
        participants.append(
            Participant(
                name=_require_string(record, "name", index),
                email=_require_string(record, "email", index),
                wishlist=_parse_wishlist(record, index),
            )
        )
    return participants


def load_participants(path: Union[str, Path] = DEFAULT_INPUT_PATH) -> Sequence[Participant]:
    file_path = Path(path)
    if not file_path.exists():
        raise InputError(f"File {file_path} does not exist.")
    if file_path.suffix.lower() != ".json":
        raise InputError(f"File {file_path} is not a json file.")

    try:
        content = file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise InputError(f"Error when opening file {file_path}: {exc}") from exc

    if not content.strip():
        raise EmptyInputError(f"File {file_path} is empty.")

    try:
        records = json.loads(content)
    except json.JSONDecodeError as exc:
        raise InputError(f"Error reading file content of {file_path}: {exc}") from exc

    participants = parse_participants(records)
    logger.bind(path=str(file_path)).debug(
        "Loaded {count} participants", count=len(participants)
    )
    return participants
