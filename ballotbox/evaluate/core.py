'''General tally machinery and the plurality evaluator.'''

from __future__ import annotations

import abc
import logging
from typing import Any, List, Dict, Union, Optional, Sequence
from numbers import Number

import ballotbox.util
from ballotbox.election import Election, Ballot
from ballotbox.persist import simple_serialization

logger = logging.getLogger(__name__)

WinnerType = Union[str, List[str], None]


@simple_serialization
class TallyResult:
    '''The outcome of counting an election's ballots.

    :param counts: Votes per option, one entry for every option of the
        election in declaration order (zero-vote options included).
    :param total_votes: Number of votes counted (the weight sum for weighted
        elections).
    :param abstain: Number of ballots with an empty or invalid choice.
    :param winner: The winning option; a list of options in declaration
        order if several are tied for the win; None if no votes were counted.
    :param breakdown: Pairs of option and count ordered by count descending,
        ties in declaration order. Computed from counts if not given.
    :param details: Method-specific information such as per-round counts.
    '''
    def __init__(self,
                 counts: Dict[str, Number],
                 total_votes: Number,
                 abstain: int = 0,
                 winner: WinnerType = None,
                 breakdown: Optional[Sequence[Sequence[Any]]] = None,
                 details: Optional[Dict[str, Any]] = None,
                 ):
        self.counts = dict(counts)
        self.total_votes = total_votes
        self.abstain = abstain
        if isinstance(winner, (list, tuple)):
            winner = list(winner)
        self.winner = winner
        if breakdown is None:
            breakdown = ballotbox.util.sorted_votes(self.counts)
        self.breakdown = [tuple(item) for item in breakdown]
        self.details = dict(details) if details else {}

    @property
    def tied(self) -> bool:
        '''Whether several options are tied for the win.'''
        return isinstance(self.winner, list)

    @property
    def winners(self) -> List[str]:
        '''The winner(s) as a list, empty if there is no winner.'''
        if self.winner is None:
            return []
        elif self.tied:
            return list(self.winner)
        else:
            return [self.winner]

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, TallyResult):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return (
            f'<TallyResult winner={self.winner!r} counts={self.counts}'
            f' total={self.total_votes} abstain={self.abstain}>'
        )


def pick_winner(counts: Dict[str, Number],
                total_votes: Number,
                ) -> WinnerType:
    '''Select the option(s) with the most votes.

    :param counts: Votes per option in declaration order.
    :param total_votes: Total votes counted; no winner is declared if zero.
    :returns: The single top option, a list of options tied for the top in
        declaration order, or None if nothing was counted.
    '''
    if not total_votes:
        return None
    top = ballotbox.util.leaders(counts)
    return top[0] if len(top) == 1 else top


def first_choice(choice: Any) -> Optional[str]:
    '''Return the single (or most preferred) option of a choice payload.

    Returns None for empty payloads and for shapes that do not name a single
    preferred option.
    '''
    if isinstance(choice, str):
        return choice or None
    elif isinstance(choice, (list, tuple)):
        return first_choice(choice[0]) if choice else None
    else:
        return None


class Evaluator(metaclass=abc.ABCMeta):
    '''Count the ballots of an election.

    A root abstract base class for all evaluators. Evaluators are pure:
    given the same election and ballots, they always produce an equal
    result, perform no I/O and do not modify their inputs.
    '''
    @abc.abstractmethod
    def compute(self,
                election: Election,
                ballots: Sequence[Ballot],
                ) -> TallyResult:
        '''Tally the ballots and determine the winner.

        :param election: The election definition (options, threshold...)
        :param ballots: All live ballots of the election.
        '''
        raise NotImplementedError


class Plurality(Evaluator):
    '''Plurality voting (first-past-the-post) evaluator.

    Each ballot counts one vote for its single chosen option. Ballots with an
    empty choice or naming an option that is not on the ballot are counted
    as abstentions. The option with the most votes wins; in case of a tie,
    all tied options are returned in declaration order.
    '''

    def compute(self,
                election: Election,
                ballots: Sequence[Ballot],
                ) -> TallyResult:
        counts, abstain = count_first_choices(election.options, ballots)
        total = sum(counts.values())
        logger.debug('plurality counts for %s: %s', election.id, counts)
        return TallyResult(
            counts=counts,
            total_votes=total,
            abstain=abstain,
            winner=pick_winner(counts, total),
        )


def count_first_choices(options: Sequence[str],
                        ballots: Sequence[Ballot],
                        ) -> tuple:
    '''Count one vote per ballot for its single chosen option.

    :returns: A 2-tuple of the counts per option (in declaration order) and
        the number of abstaining ballots.
    '''
    counts = ballotbox.util.zero_counts(options)
    abstain = 0
    for ballot in ballots:
        choice = first_choice(ballot.choice)
        if choice is None or choice not in counts:
            abstain += 1
        else:
            counts[choice] += 1
    return counts, abstain
