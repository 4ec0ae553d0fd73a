import sys
import os
import json
import datetime
from fractions import Fraction

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))
import ballotbox.persist
import ballotbox.system
from ballotbox.evaluate import TallyResult

sys.path.append(os.path.dirname(__file__))
import sample


def roundtrip(obj):
    serialized = json.loads(json.dumps(ballotbox.persist.to_dict(obj)))
    return ballotbox.persist.from_dict(serialized)


def test_election_roundtrip():
    election = sample.election(
        'weighted', role_weights={'mod': 3}, name='Chair', threshold=0.6
    )
    restored = roundtrip(election)
    assert restored == election
    assert restored.options == ('A', 'B', 'C')
    assert restored.ends_at == election.ends_at
    assert restored.ends_at.tzinfo is not None


def test_fraction_threshold_roundtrip():
    election = sample.election('two-round', threshold=Fraction(2, 3))
    restored = roundtrip(election)
    assert restored.threshold == Fraction(2, 3)
    assert isinstance(restored.threshold, Fraction)


def test_closed_election_roundtrip():
    election = sample.election('irv')
    ballots = sample.ballots(
        election, [('A', 'B'), ('B', ), ('B', ), ('C', 'B')]
    )
    election.result = ballotbox.system.compute_tally(election, ballots)
    election.closed = True
    restored = roundtrip(election)
    assert restored == election
    assert isinstance(restored.result, TallyResult)
    assert restored.result.winner == 'B'
    assert restored.result.breakdown == election.result.breakdown


@pytest.mark.parametrize('choice', [
    'A', frozenset('BA'), ('C', 'A'), (), frozenset(),
])
def test_ballot_roundtrip(choice):
    election = sample.election()
    ballot = sample.ballots(election, [choice])[0]
    restored = roundtrip(ballot)
    assert restored == ballot
    assert restored.choice == choice
    assert type(restored.choice) == type(choice)


def test_frozenset_dump_order():
    assert ballotbox.persist.serialize_value(frozenset('CAB')) == {
        'type': 'frozenset', 'value': ['A', 'B', 'C']
    }


def test_datetime_dump():
    moment = datetime.datetime(2024, 1, 2, 3, 4, tzinfo=datetime.timezone.utc)
    assert ballotbox.persist.serialize_value(moment) == {
        'type': 'datetime', 'value': '2024-01-02T03:04:00+00:00'
    }


def test_option_named_like_a_key():
    result = TallyResult({'class': 2, 'type': 1}, 3, winner='class')
    restored = roundtrip(result)
    assert restored.counts == {'class': 2, 'type': 1}
    assert restored.winner == 'class'


@pytest.mark.parametrize('value', [
    {1: 'int keys'},
    {'A': object()},
    set('AB'),
])
def test_unserializable(value):
    with pytest.raises(ValueError):
        ballotbox.persist.serialize_value(value)


def test_non_record_refused():
    with pytest.raises(ValueError):
        ballotbox.persist.to_dict(('A', 'B'))


@pytest.mark.parametrize('data', [
    {'class': 'os.system'},
    {'class': 'subprocess.Popen', 'args': 'ls'},
    {'class': 'ballotbox.system.VotingSystem', 'name': 'x'},
    {'class': 'ballotbox.nonexistent.Thing'},
])
def test_unregistered_class_refused(data):
    with pytest.raises(ValueError):
        ballotbox.persist.from_dict(data)


@pytest.mark.parametrize('data', [
    ['not', 'a', 'dict'],
    {'no': 'class'},
    {'class': 3},
])
def test_invalid_defs(data):
    with pytest.raises(ValueError):
        ballotbox.persist.from_dict(data)
