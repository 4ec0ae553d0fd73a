'''Choice payload types and vote validators.

The shape of the choice a ballot carries depends on the voting method of its
election. The following vote types are recognized by Ballotbox:

-   **Simple** votes - a voter votes for a single option. Represented by the
    option string itself. Used by plurality, two-round and weighted
    elections (weighted ballots carry their weight separately).
-   **Approval** votes - a voter selects a number of options and votes for
    them equally. Represented by a frozen set of option strings.
-   **Ranked** votes - a voter ranks a number of options, most preferred
    first. Represented by a tuple of distinct option strings; not all
    options need to be ranked.

Vote validators turn the raw choice submitted by a voter into one of these
types (raising a :class:`VoteError` if it has the wrong shape) and then check
that every option named belongs to the election (raising
:class:`VoteValueError` otherwise). All vote errors are validation errors.
'''

import abc
from typing import Any, Tuple, FrozenSet, Dict, Iterable, Optional, \
    Collection
from numbers import Number

from ballotbox.errors import ValidationError


class VoteError(ValidationError):
    '''A vote is invalid given the election rules.'''
    pass


class VoteTypeError(VoteError):
    '''A vote is of an invalid type.

    E.g. a number in place of an option name.

    :param vote: The vote detected as invalid.
    :param expected: Description of the vote type that was expected.
    '''
    def __init__(self, vote: Any, expected: Optional[str] = None):
        self.vote = vote
        self.expected = expected
        message = f'invalid vote type: {type(vote).__name__}'
        if expected:
            message += f', must be {expected}'
        super().__init__(message)


class VoteMagnitudeError(VoteError):
    '''A vote names too few or too many options.

    :param value: Size of the vote that was found to be invalid.
    :param min_value: Minimum value permissible in the context.
    :param max_value: Maximum value permissible in the context.
    :param value_name: Role of the vote size (e.g. number of approved
        options, number of ranked options...)
    '''
    def __init__(self,
                 value: Number,
                 min_value: Optional[Number] = None,
                 max_value: Optional[Number] = None,
                 value_name: str = 'count',
                 ):
        self.value = value
        self.min_value = min_value
        self.max_value = max_value
        message = f'invalid vote {value_name}: {value}'
        parts = []
        if min_value is not None:
            parts.append(f'>={min_value}')
        if max_value is not None:
            parts.append(f'<={max_value}')
        if parts:
            message += ', must be ' + ' and '.join(parts)
        super().__init__(message)


class VoteValueError(VoteError):
    '''A vote names an option that is not on the ballot.

    :param value: The offending option.
    :param allowed: Options that are allowed.
    '''
    def __init__(self, value: Any, allowed: Collection[str] = ()):
        self.value = value
        self.allowed = tuple(allowed)
        message = f'invalid option: {value!r}'
        if self.allowed:
            message += ', allowed: ' + ', '.join(self.allowed)
        super().__init__(message)


SimpleVoteType = str
ApprovalVoteType = FrozenSet[str]
RankedVoteType = Tuple[str, ...]


class VoteValidator(metaclass=abc.ABCMeta):
    '''Validate that a single raw choice is valid under the election rules.

    Base class, not intended for direct use.
    '''
    @abc.abstractmethod
    def normalize(self, raw: Any) -> Any:
        '''Convert a raw choice into the vote type of the validator.

        :raises VoteError: If the choice has an invalid shape.
        '''
        raise NotImplementedError

    @abc.abstractmethod
    def named_options(self, vote: Any) -> Iterable[str]:
        '''Return all options mentioned by a normalized vote.'''
        raise NotImplementedError

    def check_options(self, vote: Any, options: Collection[str]) -> None:
        '''Check that the vote only names options of the election.

        :raises VoteValueError: For the first unknown option found.
        '''
        for option in self.named_options(vote):
            if option not in options:
                raise VoteValueError(option, options)

    def validate(self, raw: Any, options: Collection[str]) -> Any:
        '''Normalize the raw choice and check the options it names.

        :param raw: The choice as submitted by the voter.
        :param options: Options of the election.
        :returns: The normalized vote.
        :raises VoteError: If the shape or any option is invalid.
        '''
        vote = self.normalize(raw)
        self.check_options(vote, options)
        return vote


def _option_name(item: Any) -> str:
    if not isinstance(item, str):
        raise VoteTypeError(item, 'an option name')
    name = item.strip()
    if not name:
        raise VoteTypeError(item, 'a non-empty option name')
    return name


class SimpleVoteValidator(VoteValidator):
    '''Validate a simple vote (voting directly for a single option).

    Accepts the option name itself, or a list or tuple containing exactly
    one option name.
    '''
    def normalize(self, raw: Any) -> SimpleVoteType:
        if isinstance(raw, (list, tuple)):
            if len(raw) != 1:
                raise VoteMagnitudeError(
                    len(raw), 1, 1, value_name='number of choices'
                )
            raw = raw[0]
        if raw is None:
            raise VoteMagnitudeError(0, 1, 1, value_name='number of choices')
        return _option_name(raw)

    def named_options(self, vote: SimpleVoteType) -> Iterable[str]:
        return [vote]


class WeightedVoteValidator(SimpleVoteValidator):
    '''Validate a weighted vote: a single option, weighted by voter roles.

    The weight is not part of the choice; it is computed from the voter's
    roles by :func:`role_weight` when the ballot is cast.
    '''
    pass


class ApprovalVoteValidator(VoteValidator):
    '''Validate an approval vote (voting for a number of options equally).

    Accepts any iterable of option names (a single string counts as one
    option). Duplicates are collapsed. An empty approval is an explicit
    abstention.
    '''
    def normalize(self, raw: Any) -> ApprovalVoteType:
        if raw is None:
            raw = ()
        elif isinstance(raw, str):
            raw = (raw, )
        elif not hasattr(raw, '__iter__') or hasattr(raw, 'items'):
            raise VoteTypeError(raw, 'a collection of option names')
        return frozenset(_option_name(item) for item in raw)

    def named_options(self, vote: ApprovalVoteType) -> Iterable[str]:
        return sorted(vote)


class RankedVoteValidator(VoteValidator):
    '''Validate a ranked vote (ranking of a number of options).

    Accepts a list or tuple of option names, most preferred first (a single
    string counts as a ranking of one). Every option may be ranked at most
    once. An empty ranking is an explicit abstention.
    '''
    def normalize(self, raw: Any) -> RankedVoteType:
        if raw is None:
            raw = ()
        elif isinstance(raw, str):
            raw = (raw, )
        elif not isinstance(raw, (list, tuple)):
            raise VoteTypeError(raw, 'a sequence of option names')
        vote = tuple(_option_name(item) for item in raw)
        if len(set(vote)) != len(vote):
            raise VoteError(f'option ranked more than once in {vote}')
        return vote

    def named_options(self, vote: RankedVoteType) -> Iterable[str]:
        return vote


def role_weight(role_weights: Dict[str, Number],
                roles: Iterable[str],
                ) -> Number:
    '''Compute the weight of a vote from the roles the voter holds.

    The weight is the sum of the configured weights of all roles the voter
    holds. Voters holding none of the configured roles get a weight of 1.

    :param role_weights: Role ids mapped to their weights.
    :param roles: Role ids held by the voter.
    '''
    held = frozenset(roles)
    total = sum(
        weight for role, weight in role_weights.items() if role in held
    )
    return total if total > 0 else 1
