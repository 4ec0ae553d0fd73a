'''Threshold selectors and the two-round runoff evaluator.

A threshold selector picks the options whose vote share exceeds a given
fraction of all votes. The two-round system uses one to decide whether the
leading option wins outright in the first round or whether a runoff between
the two best options is needed.
'''

import logging
from fractions import Fraction
from typing import Any, List, Dict, Optional, Sequence
from numbers import Number

import ballotbox.util
from ballotbox.election import Election, Ballot
from ballotbox.evaluate.core import Evaluator, TallyResult, pick_winner, \
    count_first_choices

logger = logging.getLogger(__name__)


class RelativeThreshold:
    '''Relative threshold selector.

    Selects all options with strictly more votes than the specified fraction
    of total votes, in descending order of votes.

    :param threshold: The relative threshold as a fraction of total votes.
    '''
    def __init__(self, threshold: Number):
        self.threshold = threshold

    def evaluate(self, votes: Dict[str, Number]) -> List[str]:
        '''Select options by a given threshold of fraction of total votes.

        :param votes: Votes per option.
        '''
        total = sum(votes.values())
        if not total:
            return []
        quota = Fraction(total) * exact_fraction(self.threshold)
        return [
            option for option, n_votes in ballotbox.util.sorted_votes(votes)
            if Fraction(n_votes) > quota
        ]


class TwoRound(Evaluator):
    '''Two-round (majority runoff) evaluator.

    The first round counts every ballot's single choice. If the leading
    option has strictly more than the election's threshold fraction of
    the first-round votes (a simple majority for the default threshold of
    0.5), it wins outright.

    Otherwise, the two options with the most first-round votes (ties broken
    by declaration order) advance to a runoff. Ballots are not asked for a
    new preference: a ballot counts in the runoff only if its recorded
    choice is one of the two finalists, and ballots that chose neither are
    left out of the runoff total. The finalist with more runoff votes wins.

    The counts and breakdown of the result report the first round; the
    details carry the round that decided (``round``) and for a runoff also
    the ``finalists``, ``runoff_counts`` and ``runoff_total``.
    '''
    def compute(self,
                election: Election,
                ballots: Sequence[Ballot],
                ) -> TallyResult:
        counts, abstain = count_first_choices(election.options, ballots)
        total = sum(counts.values())
        passing = RelativeThreshold(election.threshold).evaluate(counts)
        top = ballotbox.util.leaders(counts)
        if not total or top[0] in passing:
            logger.info('two-round election %s decided in round 1',
                        election.id)
            return TallyResult(
                counts=counts,
                total_votes=total,
                abstain=abstain,
                winner=pick_winner(counts, total),
                details={'round': 1},
            )
        finalists = [
            option for option, n_votes
            in ballotbox.util.sorted_votes(counts)[:2]
        ]
        logger.info('two-round election %s goes to runoff between %s',
                    election.id, finalists)
        runoff = {
            option: 0 for option in election.options if option in finalists
        }
        for ballot in ballots:
            choice = runoff_choice(ballot.choice, finalists)
            if choice is not None:
                runoff[choice] += 1
        runoff_total = sum(runoff.values())
        return TallyResult(
            counts=counts,
            total_votes=total,
            abstain=abstain,
            winner=pick_winner(runoff, runoff_total),
            details={
                'round': 2,
                'finalists': finalists,
                'runoff_counts': runoff,
                'runoff_total': runoff_total,
            },
        )


def exact_fraction(value: Number) -> Fraction:
    '''Convert a number to a fraction, taking floats at their decimal value.'''
    if isinstance(value, float):
        return Fraction(str(value))
    return Fraction(value)


def runoff_choice(choice: Any, finalists: Sequence[str]) -> Optional[str]:
    '''Return the finalist a choice votes for in the runoff, if any.

    A single choice counts only if it names a finalist; for a sequence of
    choices, the first one naming a finalist counts.
    '''
    if isinstance(choice, str):
        return choice if choice in finalists else None
    elif isinstance(choice, (list, tuple)):
        for item in choice:
            if item in finalists:
                return item
    return None
