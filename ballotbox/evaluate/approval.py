'''Approval voting evaluator.

In approval voting, each voter marks any number of options they find
acceptable; every marked option receives one vote and the option approved by
the most voters wins.
'''

from typing import Any, List, Sequence

import ballotbox.util
from ballotbox.election import Election, Ballot
from ballotbox.evaluate.core import Evaluator, TallyResult, pick_winner


class Approval(Evaluator):
    '''Approval voting evaluator.

    Each ballot contributes one vote to every option it approves, so a single
    ballot may count towards several options. Ballots approving no option of
    the election are counted as abstentions. The total number of votes is the
    number of ballots that approved at least one option; the number of
    approvals cast is reported in the details.
    '''
    def compute(self,
                election: Election,
                ballots: Sequence[Ballot],
                ) -> TallyResult:
        counts = ballotbox.util.zero_counts(election.options)
        abstain = 0
        for ballot in ballots:
            approved = approved_options(ballot.choice, counts)
            if not approved:
                abstain += 1
                continue
            for option in approved:
                counts[option] += 1
        total = len(ballots) - abstain
        return TallyResult(
            counts=counts,
            total_votes=total,
            abstain=abstain,
            winner=pick_winner(counts, total),
            details={'approvals': sum(counts.values())},
        )


def approved_options(choice: Any, options: Sequence[str]) -> List[str]:
    '''Return the valid options approved by a choice, in declaration order.'''
    if isinstance(choice, str):
        choice = (choice, )
    elif not hasattr(choice, '__iter__') or hasattr(choice, 'items'):
        return []
    approved = frozenset(choice)
    return [option for option in options if option in approved]
