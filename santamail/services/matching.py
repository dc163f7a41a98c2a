from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from loguru import logger

from santamail.services.participants import EmptyInputError, Participant

ShuffleFunc = Callable[[List[Participant]], None]


@dataclass(frozen=True)
class Assignment:
    giver: Participant
    recipient: Participant


def circular_matches(ordered: Sequence[Participant]) -> List[Assignment]:
    count = len(ordered)
    return [
        Assignment(giver=ordered[index], recipient=ordered[(index + 1) % count])
        for index in range(count)
    ]


def generate_matches(
    participants: Sequence[Participant],
    shuffle: Optional[ShuffleFunc] = None,
) -> List[Assignment]:
    """Shuffle a copy of ``participants`` and pair them into a single cycle.

    ``shuffle`` permutes a list in place and defaults to :func:`random.shuffle`
    (Fisher-Yates). Tests and seeded runs pass their own.
    """
    if not participants:
        raise EmptyInputError("Cannot generate matches for an empty participant list.")

    shuffled = list(participants)
    (shuffle or random.shuffle)(shuffled)

    assignments = circular_matches(shuffled)
    logger.debug("Generated {count} matches", count=len(assignments))
    return assignments
