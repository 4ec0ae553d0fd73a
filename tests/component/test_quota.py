import sys
import os

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))
import ballotbox.component.quota
from ballotbox.errors import ConfigurationError


@pytest.mark.parametrize('votes, seats, quota', [
    (100, 1, 51),
    (7, 1, 4),
    (4, 1, 3),
    (100, 3, 26),
    (0, 1, 1),
])
def test_droop(votes, seats, quota):
    assert ballotbox.component.quota.droop(votes, seats) == quota


def test_get_unknown():
    with pytest.raises(ConfigurationError):
        ballotbox.component.quota.get('imperiali')


def test_construct():
    assert ballotbox.component.quota.construct('droop') is (
        ballotbox.component.quota.droop
    )
    custom = lambda votes, seats: votes // seats
    assert ballotbox.component.quota.construct(custom) is custom
