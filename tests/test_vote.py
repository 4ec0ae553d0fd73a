import sys
import os

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))
import ballotbox.vote
from ballotbox.errors import ValidationError

OPTIONS = ('A', 'B', 'C')


@pytest.mark.parametrize('raw, vote', [
    ('A', 'A'),
    (['B'], 'B'),
    (('C', ), 'C'),
    (' A ', 'A'),
])
def test_simple_ok(raw, vote):
    validator = ballotbox.vote.SimpleVoteValidator()
    assert validator.validate(raw, OPTIONS) == vote


@pytest.mark.parametrize('raw, error', [
    (['A', 'B'], ballotbox.vote.VoteMagnitudeError),
    ([], ballotbox.vote.VoteMagnitudeError),
    (None, ballotbox.vote.VoteMagnitudeError),
    (5, ballotbox.vote.VoteTypeError),
    ('', ballotbox.vote.VoteTypeError),
    ('D', ballotbox.vote.VoteValueError),
])
def test_simple_fail(raw, error):
    validator = ballotbox.vote.SimpleVoteValidator()
    with pytest.raises(error):
        validator.validate(raw, OPTIONS)


@pytest.mark.parametrize('raw, vote', [
    (['A', 'B'], frozenset('AB')),
    (('A', 'A', 'C'), frozenset('AC')),
    ({'B'}, frozenset('B')),
    ('C', frozenset('C')),
    ([], frozenset()),
])
def test_approval_ok(raw, vote):
    validator = ballotbox.vote.ApprovalVoteValidator()
    assert validator.validate(raw, OPTIONS) == vote


def test_approval_fail():
    validator = ballotbox.vote.ApprovalVoteValidator()
    with pytest.raises(ballotbox.vote.VoteValueError):
        validator.validate(['A', 'X'], OPTIONS)
    with pytest.raises(ballotbox.vote.VoteTypeError):
        validator.validate({'A': 1}, OPTIONS)


@pytest.mark.parametrize('raw, vote', [
    (['C', 'A'], ('C', 'A')),
    (('B', ), ('B', )),
    ('A', ('A', )),
    ([], ()),
])
def test_ranked_ok(raw, vote):
    validator = ballotbox.vote.RankedVoteValidator()
    assert validator.validate(raw, OPTIONS) == vote


@pytest.mark.parametrize('raw, error', [
    (['A', 'A'], ballotbox.vote.VoteError),
    (['A', 'X'], ballotbox.vote.VoteValueError),
    (frozenset('AB'), ballotbox.vote.VoteTypeError),
    ([1, 2], ballotbox.vote.VoteTypeError),
])
def test_ranked_fail(raw, error):
    validator = ballotbox.vote.RankedVoteValidator()
    with pytest.raises(error):
        validator.validate(raw, OPTIONS)


def test_errors_are_validation_errors():
    with pytest.raises(ValidationError):
        ballotbox.vote.SimpleVoteValidator().validate('X', OPTIONS)


def test_first_unknown_option_reported():
    validator = ballotbox.vote.RankedVoteValidator()
    with pytest.raises(ballotbox.vote.VoteValueError) as excinfo:
        validator.validate(['A', 'Y', 'X'], OPTIONS)
    assert excinfo.value.value == 'Y'


@pytest.mark.parametrize('roles, weight', [
    (['mod'], 3),
    (['mod', 'admin'], 8),
    (['guest'], 1),
    ([], 1),
])
def test_role_weight(roles, weight):
    role_weights = {'mod': 3, 'admin': 5}
    assert ballotbox.vote.role_weight(role_weights, roles) == weight


def test_magnitude_message():
    validator = ballotbox.vote.SimpleVoteValidator()
    with pytest.raises(ballotbox.vote.VoteMagnitudeError) as excinfo:
        validator.validate(['A', 'B'], OPTIONS)
    assert excinfo.value.value == 2
    assert 'must be >=1 and <=1' in str(excinfo.value)
