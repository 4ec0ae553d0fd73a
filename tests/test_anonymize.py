import sys
import os
import hmac
import hashlib

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))
import ballotbox.anonymize
from ballotbox.errors import ConfigurationError

SECRET = 'test-secret-0123456789'


def test_fingerprint_matches_hmac():
    anonymizer = ballotbox.anonymize.Anonymizer(SECRET)
    expected = hmac.new(
        SECRET.encode('utf8'), b'e1:voter', hashlib.sha256
    ).hexdigest()
    assert anonymizer.fingerprint('e1', 'voter') == expected


def test_deterministic_across_instances():
    first = ballotbox.anonymize.Anonymizer(SECRET)
    second = ballotbox.anonymize.Anonymizer(SECRET)
    assert first.fingerprint('e1', 'v') == second.fingerprint('e1', 'v')


def test_differs_across_elections_and_secrets():
    anonymizer = ballotbox.anonymize.Anonymizer(SECRET)
    other = ballotbox.anonymize.Anonymizer(SECRET + 'x')
    fingerprint = anonymizer.fingerprint('e1', 'v')
    assert fingerprint != anonymizer.fingerprint('e2', 'v')
    assert fingerprint != anonymizer.fingerprint('e1', 'w')
    assert fingerprint != other.fingerprint('e1', 'v')
    assert len(fingerprint) == 64


@pytest.mark.parametrize('secret', [
    None, '', '   ', 'CHANGE_THIS_IN_ENV', 'changeme',
])
def test_placeholder_secret_rejected(secret):
    with pytest.raises(ConfigurationError):
        ballotbox.anonymize.Anonymizer(secret)


def test_repr_hides_secret():
    anonymizer = ballotbox.anonymize.Anonymizer(SECRET)
    assert SECRET not in repr(anonymizer)
