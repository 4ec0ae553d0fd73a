"""Read and write plain JSON election dumps.

A dump is a JSON object with the election definition and its ballots::

    {
        "election": {
            "kind": "candidate",
            "method": "irv",
            "options": ["A", "B", "C"],
            "name": "Board chair"
        },
        "ballots": [
            {"choice": ["A", "B"]},
            {"choice": ["C"], "fingerprint": "f00d"}
        ]
    }

Only ``method`` and ``options`` are required in the election (propositions
may also omit the options); the id, timestamps and threshold get default
values. Ballot choices are checked and normalized like cast ballots, so
approval choices become sets and rankings tuples. Ballots without
a fingerprint get a unique placeholder one.
"""

import json
import datetime
from typing import Any, Dict, Iterable, Optional

import ballotbox.util
import ballotbox.system
import ballotbox.election
from ballotbox.election import Election, Ballot
from ballotbox.errors import ValidationError
from ballotbox.io.core import ElectionData, ParseError, loaders, dumpers


class DumpParseError(ParseError):
    pass


def parse(text: str,
          method: Optional[str] = None,
          now: Optional[datetime.datetime] = None,
          ) -> ElectionData:
    """Parse an election dump.

    :param text: The JSON text of the dump.
    :param method: Override the voting method of the dumped election.
    :param now: The instant used for missing timestamps; now by default.
    :raises DumpParseError: If the dump is malformed or invalid.
    """
    try:
        data = json.loads(text)
    except ValueError as err:
        raise DumpParseError(f'invalid JSON: {err}') from err
    if not isinstance(data, dict) or not isinstance(
        data.get('election'), dict
    ):
        raise DumpParseError('dump must be an object with an election key')
    ballots_data = data.get('ballots', [])
    if not isinstance(ballots_data, list):
        raise DumpParseError('ballots must be a list')
    if now is None:
        now = ballotbox.util.utcnow()
    election = parse_election(data['election'], method=method, now=now)
    system = ballotbox.system.get(election.method)
    ballots = []
    for i, ballot_data in enumerate(ballots_data):
        if not isinstance(ballot_data, dict) or 'choice' not in ballot_data:
            raise DumpParseError(
                f'ballot {i}: must be an object with a choice'
            )
        try:
            choice = system.validator.validate(
                ballot_data['choice'], election.options
            )
        except ValidationError as err:
            raise DumpParseError(f'ballot {i}: {err}') from err
        ballots.append(Ballot(
            id=str(ballot_data.get('id', i + 1)),
            election_id=election.id,
            fingerprint=str(ballot_data.get('fingerprint', f'ballot-{i + 1}')),
            choice=choice,
            weight=ballot_data.get('weight', 1),
            created_at=_parse_time(ballot_data.get('created_at'), None),
        ))
    return ElectionData(election=election, ballots=ballots)


def parse_election(data: Dict[str, Any],
                   method: Optional[str] = None,
                   now: Optional[datetime.datetime] = None,
                   ) -> Election:
    """Build an election from its dumped definition.

    :raises DumpParseError: If the definition is invalid.
    """
    if now is None:
        now = ballotbox.util.utcnow()
    kind = data.get('kind', 'candidate')
    options = data.get('options')
    if options is None and kind == 'proposition':
        options = ballotbox.election.PROPOSITION_OPTIONS
    if not isinstance(options, list) and not isinstance(options, tuple):
        raise DumpParseError('election options must be a list')
    try:
        created_at = _parse_time(data.get('created_at'), now)
        election = Election(
            id=str(data.get('id') or ballotbox.election.new_id()),
            kind=kind,
            method=method or data.get('method'),
            options=options,
            created_at=created_at,
            ends_at=_parse_time(
                data.get('ends_at'),
                created_at + ballotbox.election.DEFAULT_DURATION
            ),
            threshold=data.get(
                'threshold', ballotbox.election.DEFAULT_THRESHOLD
            ),
            role_weights=data.get('role_weights'),
            name=data.get('name', ''),
            description=data.get('description', ''),
        )
        ballotbox.system.get(election.method)
        election.validate()
    except ValidationError as err:
        raise DumpParseError(f'invalid election: {err}') from err
    return election


def _parse_time(value: Any,
                default: Optional[datetime.datetime],
                ) -> Optional[datetime.datetime]:
    if value is None:
        return default
    instant = (
        ballotbox.election.parse_instant(value) if isinstance(value, str)
        else None
    )
    if instant is None:
        raise DumpParseError(f'invalid timestamp: {value!r}')
    return instant


def dump_lines(election: Election,
               ballots: Iterable[Ballot] = (),
               ) -> Iterable[str]:
    """Dump the election and its ballots as indented JSON lines."""
    data = {
        'election': {
            'id': election.id,
            'kind': election.kind,
            'method': election.method,
            'options': list(election.options),
            'threshold': election.threshold,
            'created_at': election.created_at.isoformat(),
            'ends_at': election.ends_at.isoformat(),
        },
        'ballots': [_ballot_to_json(ballot) for ballot in ballots],
    }
    if election.role_weights:
        data['election']['role_weights'] = election.role_weights
    for key in ('name', 'description'):
        if getattr(election, key):
            data['election'][key] = getattr(election, key)
    yield from json.dumps(data, indent=2, ensure_ascii=False).split('\n')


def _ballot_to_json(ballot: Ballot) -> Dict[str, Any]:
    if isinstance(ballot.choice, (set, frozenset)):
        choice: Any = sorted(ballot.choice)
    elif isinstance(ballot.choice, tuple):
        choice = list(ballot.choice)
    else:
        choice = ballot.choice
    out = {
        'id': ballot.id,
        'fingerprint': ballot.fingerprint,
        'choice': choice,
        'weight': ballot.weight,
    }
    if ballot.created_at is not None:
        out['created_at'] = ballot.created_at.isoformat()
    return out


load, loads = loaders(parse)
dump, dumps = dumpers(dump_lines)
