'''Keyed one-way voter fingerprints.

Ballots never store the identity of the voter who cast them. Instead, the
voter is represented by a fingerprint: an HMAC-SHA256 of the election id and
the voter id, keyed by a server secret. The fingerprint is stable for the
same voter in the same election (so a second ballot replaces the first, also
across restarts) but differs between elections, so stored ballots of
different elections cannot be correlated to the same person, and it cannot
be reversed without the secret.
'''

import hmac
import hashlib

from ballotbox.errors import ConfigurationError


# values shipped in sample configurations, never acceptable as a real key
PLACEHOLDER_SECRETS = frozenset([
    'CHANGE_THIS_IN_ENV',
    'changeme',
    'change-me',
    'secret',
    'default',
])


def check_secret(secret: str) -> str:
    '''Return the secret if it is usable as a fingerprint key.

    :raises ConfigurationError: If the secret is missing, blank or a known
        placeholder value.
    '''
    if not isinstance(secret, str) or not secret.strip():
        raise ConfigurationError('anonymization secret is not configured')
    if secret.strip() in PLACEHOLDER_SECRETS:
        raise ConfigurationError(
            'anonymization secret is a placeholder value, set a real one'
        )
    return secret


class Anonymizer:
    '''Compute voter fingerprints with a fixed secret key.

    :param secret: The key. It must stay the same across restarts, otherwise
        voters would no longer be recognized when replacing their ballots.
    :raises ConfigurationError: If the secret is unusable.
    '''
    def __init__(self, secret: str):
        self._key = check_secret(secret).encode('utf8')

    def fingerprint(self, election_id: str, voter_id: str) -> str:
        '''Return the fingerprint of a voter within an election.

        :param election_id: Id of the election; it is part of the MAC input
            so that fingerprints differ across elections.
        :param voter_id: Raw identity of the voter.
        '''
        message = f'{election_id}:{voter_id}'.encode('utf8')
        return hmac.new(self._key, message, hashlib.sha256).hexdigest()

    def __repr__(self) -> str:
        return '<Anonymizer (secret hidden)>'
