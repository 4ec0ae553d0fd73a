'''Error taxonomy shared by all Ballotbox modules.

Validation, lookup and state errors are raised synchronously and never
change any state. Configuration errors are fatal and surface at startup or
on first use; they are never replaced by silent defaults.
'''

from typing import Optional


class BallotboxError(Exception):
    '''Base class for all errors raised by Ballotbox.'''
    pass


class ValidationError(BallotboxError):
    '''An election definition or a ballot is malformed.'''
    pass


class NotFoundError(BallotboxError):
    '''No election is known under the given id.

    :param election_id: The id that was looked up.
    '''
    def __init__(self, election_id: str):
        self.election_id = election_id
        super().__init__(f'election not found: {election_id}')


class AlreadyClosedError(BallotboxError):
    '''The election has been finalized and accepts no more changes.

    :param election_id: Id of the finalized election.
    :param action: What was attempted on the election.
    '''
    def __init__(self, election_id: str, action: Optional[str] = None):
        self.election_id = election_id
        self.action = action
        message = f'election already closed: {election_id}'
        if action:
            message += f', cannot {action}'
        super().__init__(message)


class ConfigurationError(BallotboxError):
    '''A required setting is missing or invalid.'''
    pass


class UnsupportedMethodError(ConfigurationError, ValidationError):
    '''A voting method key is not known.

    Raised as a validation error when an election is being defined, and
    as a configuration error when a stored election cannot be tallied.

    :param method: The unknown method key.
    :param available: Method keys that are supported.
    '''
    def __init__(self, method: str, available=()):
        self.method = method
        self.available = tuple(available)
        message = f'unsupported voting method: {method!r}'
        if self.available:
            message += ', available: ' + ', '.join(self.available)
        super().__init__(message)


class PublishError(BallotboxError):
    '''A result could not be announced.'''
    pass
