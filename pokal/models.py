"""Core data models for participants, competitions and result sets."""

import hashlib
import json
from collections.abc import Hashable, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType

import pandas as pd

from pokal.cache import Fingerprint
from pokal.utils import is_integer, make_nickname, surname_of, validate_rank, validate_status

ParticipantId = Hashable


@dataclass(frozen=True)
class Participant:
    """A roster member.

    Attributes:
        id: Stable, caller-supplied identifier
        display_name: Full name as shown in the results table
        status: One of 'active', 'inactive', 'retired'
    """
    id: ParticipantId
    display_name: str
    status: str = "active"

    def __post_init__(self):
        validate_status(self.status)

    @property
    def nickname(self) -> str:
        return make_nickname(self.display_name)

    @property
    def surname(self) -> str:
        return surname_of(self.display_name)


@dataclass(frozen=True)
class Competition:
    """One yearly competition.

    Attributes:
        id: Stable, caller-supplied identifier
        year: Calendar year the competition was held
        name: Competition type (used for grouping)
        location: Where it was held
        scores: Mapping participant_id -> rank (1 = winner). Empty for a
            cancelled year.
        arranger_3rd: Participant id or name of the arranger (third place)
        arranger_second_last: Participant id or name of the arranger
            (second-to-last place)
    """
    id: Hashable
    year: int
    name: str
    location: str = ""
    scores: Mapping[ParticipantId, int] = field(default_factory=dict)
    arranger_3rd: Hashable | None = None
    arranger_second_last: Hashable | None = None

    def __post_init__(self):
        if not is_integer(self.year):
            raise ValueError(f"Competition '{self.id}' has a non-integer year: {self.year!r}")
        object.__setattr__(self, "year", int(self.year))
        scores = {
            participant_id: validate_rank(rank, participant_id, self.id)
            for participant_id, rank in self.scores.items()
        }
        # Freeze the scores so a snapshot cannot change mid-pass
        object.__setattr__(self, "scores", MappingProxyType(scores))

    @property
    def is_scored(self) -> bool:
        return len(self.scores) > 0

    @property
    def field_size(self) -> int:
        return len(self.scores)

    @property
    def last_rank(self) -> int | None:
        """Highest rank number recorded (the last place), None when cancelled."""
        return max(self.scores.values()) if self.scores else None

    def rank_of(self, participant_id: ParticipantId) -> int | None:
        return self.scores.get(participant_id)

    def is_last(self, rank: int) -> bool:
        """True when rank is last place in a field of at least two."""
        return self.field_size >= 2 and rank == self.last_rank

    def arranged_by(self, participant: Participant) -> bool:
        keys = {participant.id, participant.display_name}
        return self.arranger_3rd in keys or self.arranger_second_last in keys


@dataclass(frozen=True)
class Placement:
    """A participant's result in one competition."""
    year: int
    competition_id: Hashable
    competition: str
    rank: int
    field_size: int
    last_rank: int

    @property
    def is_last(self) -> bool:
        return self.field_size >= 2 and self.rank == self.last_rank


@dataclass(frozen=True)
class ResultSet:
    """Immutable snapshot of the roster and every competition.

    Example:
        >>> results = ResultSet(
        ...     participants=[Participant("p1", "Olov Melander")],
        ...     competitions=[Competition("c1", 2011, "Gokart", scores={"p1": 1})],
        ... )
        >>> results.participant("p1").nickname
        'Olov M.'
    """
    participants: Sequence[Participant]
    competitions: Sequence[Competition]

    def __post_init__(self):
        object.__setattr__(self, "participants", tuple(self.participants))
        object.__setattr__(self, "competitions", tuple(self.competitions))
        seen = set()
        for p in self.participants:
            if p.id in seen:
                raise ValueError(f"Duplicate participant id: {p.id!r}")
            seen.add(p.id)

    def participant(self, participant_id: ParticipantId) -> Participant | None:
        for p in self.participants:
            if p.id == participant_id:
                return p
        return None

    def chronological(self) -> tuple[Competition, ...]:
        return chronological(self.competitions)

    def scored_competitions(self) -> tuple[Competition, ...]:
        return scored(self.competitions)

    def fingerprint(self) -> Fingerprint:
        """Content fingerprint used as the cache key for this snapshot."""
        return fingerprint_of(self.participants, self.competitions)

    def to_frame(self) -> pd.DataFrame:
        """Long-format results: one row per (competition, participant) rank."""
        return results_frame(self.competitions)


def chronological(competitions: Sequence[Competition]) -> tuple[Competition, ...]:
    """Sort by year; competitions in the same year keep their input order."""
    return tuple(sorted(competitions, key=lambda c: c.year))


def scored(competitions: Sequence[Competition]) -> tuple[Competition, ...]:
    """Chronological competitions that have at least one rank."""
    return tuple(c for c in chronological(competitions) if c.is_scored)


def results_frame(competitions: Sequence[Competition]) -> pd.DataFrame:
    """
    Flatten competitions into a long-format DataFrame.

    Returns:
        DataFrame with columns [year, competition_id, competition,
        participant_id, rank, field_size] in chronological order.
        Cancelled competitions contribute no rows.
    """
    rows = []
    for comp in scored(competitions):
        for participant_id, rank in comp.scores.items():
            rows.append({
                'year': comp.year,
                'competition_id': comp.id,
                'competition': comp.name,
                'participant_id': participant_id,
                'rank': rank,
                'field_size': comp.field_size,
            })
    columns = ['year', 'competition_id', 'competition', 'participant_id', 'rank', 'field_size']
    return pd.DataFrame(rows, columns=columns)


def fingerprint_of(participants: Sequence[Participant], competitions: Sequence[Competition]) -> Fingerprint:
    """Hash the serialized roster and scores into a Fingerprint."""
    payload = {
        'participants': [[repr(p.id), p.display_name, p.status] for p in participants],
        'competitions': [
            [
                repr(c.id), c.year, c.name, c.location,
                sorted([repr(pid), rank] for pid, rank in c.scores.items()),
                repr(c.arranger_3rd), repr(c.arranger_second_last),
            ]
            for c in competitions
        ],
    }
    encoded = json.dumps(payload, sort_keys=True, ensure_ascii=False).encode('utf-8')
    return Fingerprint(
        competition_count=len(competitions),
        digest=hashlib.sha256(encoded).hexdigest(),
    )
