'''Weighted role voting evaluator.

Each voter votes for a single option, but their vote counts with a weight
derived from the roles they held when casting it (see
:func:`ballotbox.vote.role_weight`). The weight is fixed on the ballot, so
later role changes do not alter past votes.
'''

from numbers import Number
from typing import Sequence

import ballotbox.util
from ballotbox.election import Election, Ballot
from ballotbox.evaluate.core import Evaluator, TallyResult, pick_winner, \
    first_choice


class Weighted(Evaluator):
    '''Weighted plurality evaluator.

    Sums the ballot weights per option rather than counting ballots. Ballots
    with an empty or unknown choice, or without a positive weight, are
    counted as abstentions. The total number of votes is the sum of all
    counted weights; the number of counted ballots is reported in the
    details.
    '''
    def compute(self,
                election: Election,
                ballots: Sequence[Ballot],
                ) -> TallyResult:
        counts = ballotbox.util.zero_counts(election.options)
        abstain = 0
        for ballot in ballots:
            choice = first_choice(ballot.choice)
            weight = ballot.weight
            valid_weight = (
                isinstance(weight, Number)
                and not isinstance(weight, bool)
                and weight > 0
            )
            if choice is None or choice not in counts or not valid_weight:
                abstain += 1
            else:
                counts[choice] += weight
        total = sum(counts.values())
        return TallyResult(
            counts=counts,
            total_votes=total,
            abstain=abstain,
            winner=pick_winner(counts, total),
            details={'ballots': len(ballots) - abstain},
        )
