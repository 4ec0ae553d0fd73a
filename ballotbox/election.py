'''The election data model: elections, ballots and their deadlines.

An :class:`Election` is defined once (id, kind, method, options, threshold
and role weights never change afterwards) and is only ever mutated by being
closed, which attaches its tally result. A :class:`Ballot` holds a single
voter's choice for one election, keyed by the voter's anonymized
fingerprint; ballots are replaced as a whole, never edited.
'''

import re
import uuid
import string
import secrets
import datetime
from numbers import Number
from typing import Any, Dict, Iterable, Optional, Tuple, Union

from ballotbox.errors import ValidationError
from ballotbox.persist import simple_serialization

KINDS = ('candidate', 'proposition')
PROPOSITION_OPTIONS = ('Yes', 'No', 'Abstain')
DEFAULT_THRESHOLD = 0.5
DEFAULT_DURATION = datetime.timedelta(hours=1)

DURATION_RE = re.compile(
    r'^\s*(?:(\d+)\s*d)?\s*(?:(\d+)\s*h)?\s*(?:(\d+)\s*m)?\s*(?:(\d+)\s*s)?\s*$'
)
ID_ALPHABET = string.ascii_letters + string.digits

DeadlineType = Union[None, str, datetime.datetime, datetime.timedelta]


def new_id() -> str:
    '''Return a new opaque election id.'''
    return uuid.uuid4().hex


def short_id(length: int = 8) -> str:
    '''Return a short random alphanumeric id, used for ballots.'''
    return ''.join(secrets.choice(ID_ALPHABET) for i in range(length))


@simple_serialization
class Election:
    '''A time-boxed decision among a fixed list of options.

    :param id: Opaque unique token identifying the election.
    :param kind: Either ``candidate`` or ``proposition``.
    :param method: Voting method key, see :mod:`ballotbox.system`.
    :param options: Options in declaration order. The order is used for
        display and for breaking ties.
    :param created_at: When the election was opened.
    :param ends_at: Deadline; the election is finalized when it passes.
    :param threshold: Fraction of votes a leading option must exceed to win
        outright in runoff methods.
    :param role_weights: Role ids mapped to vote weights, used only by the
        weighted method.
    :param name: Title of the election (or the proposition question).
    :param description: Free text shown alongside the title.
    :param closed: Whether the election has been finalized.
    :param result: The tally result, present iff the election is closed.
    '''
    def __init__(self,
                 id: str,
                 kind: str,
                 method: str,
                 options: Iterable[str],
                 created_at: datetime.datetime,
                 ends_at: datetime.datetime,
                 threshold: Number = DEFAULT_THRESHOLD,
                 role_weights: Optional[Dict[str, Number]] = None,
                 name: str = '',
                 description: str = '',
                 closed: bool = False,
                 result: Any = None,
                 ):
        self.id = id
        self.kind = kind
        self.method = method
        self.options = tuple(options)
        self.created_at = created_at
        self.ends_at = ends_at
        self.threshold = threshold
        self.role_weights = dict(role_weights) if role_weights else {}
        self.name = name
        self.description = description
        self.closed = closed
        self.result = result

    @property
    def is_open(self) -> bool:
        return not self.closed

    def validate(self) -> None:
        '''Check the definition invariants.

        The method key is checked separately by :func:`ballotbox.system.get`
        since the registry of methods lives there.

        :raises ValidationError: If any invariant does not hold.
        '''
        if self.kind not in KINDS:
            raise ValidationError(
                f'invalid election kind: {self.kind!r}, must be one of '
                + ', '.join(KINDS)
            )
        if len(self.options) < 2:
            raise ValidationError(
                'an election needs at least 2 options,'
                f' got {len(self.options)}'
            )
        if len(set(self.options)) != len(self.options):
            raise ValidationError(f'duplicate options: {self.options}')
        for option in self.options:
            if not isinstance(option, str) or not option.strip():
                raise ValidationError(f'invalid option: {option!r}')
        if not isinstance(self.threshold, Number) or isinstance(
            self.threshold, bool
        ):
            raise ValidationError(f'invalid threshold: {self.threshold!r}')
        if not 0 < self.threshold <= 1:
            raise ValidationError(
                f'threshold must be in (0, 1], got {self.threshold}'
            )
        for role, weight in self.role_weights.items():
            if not isinstance(weight, Number) or weight <= 0:
                raise ValidationError(
                    f'role weight must be positive, got {weight!r} for {role}'
                )
        if self.ends_at <= self.created_at:
            raise ValidationError('election must end after it is created')
        if self.closed != (self.result is not None):
            raise ValidationError('a closed election must carry its result')

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Election):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        state = 'closed' if self.closed else 'open'
        return (
            f'<Election {self.id} {self.method} {list(self.options)}'
            f' ends {self.ends_at.isoformat()} ({state})>'
        )


@simple_serialization
class Ballot:
    '''One voter's recorded choice in one election.

    :param id: Id of this ballot; a replacement ballot gets a fresh one.
    :param election_id: Id of the election the ballot belongs to.
    :param fingerprint: Anonymized voter identity, see
        :mod:`ballotbox.anonymize`.
    :param choice: The choice payload whose shape depends on the election's
        voting method (a single option, a frozen set of options or a tuple
        ranking them).
    :param weight: Vote weight; only different from 1 in weighted elections.
    :param created_at: When the ballot was cast.
    '''
    def __init__(self,
                 id: str,
                 election_id: str,
                 fingerprint: str,
                 choice: Any,
                 weight: Number = 1,
                 created_at: Optional[datetime.datetime] = None,
                 ):
        self.id = id
        self.election_id = election_id
        self.fingerprint = fingerprint
        self.choice = choice
        self.weight = weight
        self.created_at = created_at

    @property
    def key(self) -> Tuple[str, str]:
        '''The identity under which at most one ballot may exist.'''
        return self.election_id, self.fingerprint

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Ballot):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return (
            f'<Ballot {self.id} for {self.election_id}'
            f' by {self.fingerprint[:8]}: {self.choice!r} x{self.weight}>'
        )


def parse_duration(text: str) -> datetime.timedelta:
    '''Parse a compact duration such as ``1h30m`` or ``2d``.

    Units are days, hours, minutes and seconds, given in this order, each
    at most once.

    :raises ValidationError: If the text is not a positive duration.
    '''
    match = DURATION_RE.match(text) if isinstance(text, str) else None
    if not match or not any(match.groups()):
        raise ValidationError(f'invalid duration: {text!r}')
    days, hours, minutes, seconds = (int(g or 0) for g in match.groups())
    duration = datetime.timedelta(
        days=days, hours=hours, minutes=minutes, seconds=seconds
    )
    if not duration:
        raise ValidationError(f'duration must be positive: {text!r}')
    return duration


def parse_instant(text: str) -> Optional[datetime.datetime]:
    '''Parse an ISO 8601 timestamp, or return None if it is not one.

    Naive timestamps are taken to be in UTC.
    '''
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    try:
        instant = datetime.datetime.fromisoformat(text)
    except ValueError:
        return None
    return as_aware(instant)


def as_aware(instant: datetime.datetime) -> datetime.datetime:
    if instant.tzinfo is None:
        return instant.replace(tzinfo=datetime.timezone.utc)
    return instant


def resolve_deadline(deadline: DeadlineType,
                     now: datetime.datetime,
                     default_duration: datetime.timedelta = DEFAULT_DURATION,
                     ) -> datetime.datetime:
    '''Turn a user-supplied deadline into an absolute instant.

    :param deadline: None for the default duration, a duration (as
        a timedelta or compact text like ``1h30m``), or an absolute end time
        (as a datetime or ISO 8601 text).
    :param now: The current instant, which durations are counted from.
    :param default_duration: Duration used when no deadline is given.
    :raises ValidationError: If the deadline cannot be understood.
    '''
    if deadline is None:
        return now + default_duration
    elif isinstance(deadline, datetime.timedelta):
        return now + deadline
    elif isinstance(deadline, datetime.datetime):
        return as_aware(deadline)
    elif isinstance(deadline, str):
        instant = parse_instant(deadline.strip())
        if instant is not None:
            return instant
        return now + parse_duration(deadline)
    else:
        raise ValidationError(f'invalid deadline: {deadline!r}')
