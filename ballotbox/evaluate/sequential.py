'''Evaluators that operate sequentially on ranked votes.

This hosts the instant-runoff evaluator (:class:`InstantRunoff`) and its
single-winner transferable vote variant (:class:`SingleTransferableVote`),
which counts the same way and only reports a quota on top.
'''

import logging
from typing import Any, List, Dict, Union, Callable, Optional, Sequence
from numbers import Number

import ballotbox.util
import ballotbox.component.quota
from ballotbox.election import Election, Ballot
from ballotbox.evaluate.core import Evaluator, TallyResult

logger = logging.getLogger(__name__)


class InstantRunoff(Evaluator):
    '''Instant-runoff voting evaluator.

    Each round counts every ballot for its highest ranked option that is
    still active (in contention). Ballots that rank no active option are
    exhausted and do not count in that round. If an option has strictly
    more than half of the round's votes, it wins.

    Otherwise, all options sharing the fewest votes are eliminated at once
    and their ballots transfer to their next active preference in the next
    round. If every remaining option shares the fewest votes, eliminating
    them would leave nobody, so counting stops and these options are
    declared tied winners in declaration order.

    Ballots with an empty ranking are abstentions and do not count in any
    round.

    The counts of the result report the final round, with eliminated
    options at zero. The details hold a per-round trace under ``rounds``
    (each with the round ``counts``, ``total`` and the ``eliminated``
    options, if any) and the overall elimination order under
    ``eliminated``.
    '''
    def compute(self,
                election: Election,
                ballots: Sequence[Ballot],
                ) -> TallyResult:
        rankings = []
        abstain = 0
        for ballot in ballots:
            ranking = valid_ranking(ballot.choice, election.options)
            if ranking:
                rankings.append(ranking)
            else:
                abstain += 1
        active = list(election.options)
        eliminated = []
        rounds = []
        while True:
            counts = self.count_round(rankings, active)
            total = sum(counts.values())
            round_info = {'counts': counts, 'total': total}
            rounds.append(round_info)
            logger.debug('round %d of %s: %s', len(rounds), election.id,
                         counts)
            if not total:
                winner = None
                break
            top = ballotbox.util.leaders(counts)
            if len(top) == 1 and 2 * counts[top[0]] > total:
                winner = top[0]
                break
            bottom = ballotbox.util.laggards(counts)
            if len(bottom) == len(active):
                logger.info('terminal tie in %s between %s',
                            election.id, active)
                winner = active[0] if len(active) == 1 else list(active)
                break
            logger.info('eliminating %s in round %d of %s',
                        bottom, len(rounds), election.id)
            round_info['eliminated'] = bottom
            eliminated.extend(bottom)
            active = [option for option in active if option not in bottom]
        final_counts = ballotbox.util.zero_counts(election.options)
        final_counts.update(counts)
        return TallyResult(
            counts=final_counts,
            total_votes=total,
            abstain=abstain,
            winner=winner,
            details={'rounds': rounds, 'eliminated': eliminated},
        )

    @staticmethod
    def count_round(rankings: List[List[str]],
                    active: List[str],
                    ) -> Dict[str, int]:
        '''Count every ranking for its highest ranked active option.'''
        counts = ballotbox.util.zero_counts(active)
        for ranking in rankings:
            for option in ranking:
                if option in counts:
                    counts[option] += 1
                    break
        return counts


class SingleTransferableVote(InstantRunoff):
    '''Single-winner transferable vote evaluator.

    Counts exactly like :class:`InstantRunoff`; no surplus is transferred
    since there is a single seat. The quota of votes that guarantees a seat
    is computed from the number of ballots cast and reported under
    ``quota`` in the details for information only.

    :param quota_function: A callable producing the quota from the number
        of ballots and the number of seats. The quota functions in
        :mod:`ballotbox.component.quota` can be referenced by name.
    '''
    def __init__(self,
                 quota_function: Union[
                     str, Callable[[int, int], Number]
                 ] = 'droop',
                 ):
        self.quota_function = ballotbox.component.quota.construct(
            quota_function
        )

    def compute(self,
                election: Election,
                ballots: Sequence[Ballot],
                ) -> TallyResult:
        result = super().compute(election, ballots)
        result.details['quota'] = self.quota_function(len(ballots), 1)
        return result


def valid_ranking(choice: Any, options: Sequence[str]) -> Optional[List[str]]:
    '''Return the ranked options of a choice that belong to the election.

    Unknown options and repeated mentions are skipped; a bare string is
    taken as a single preference.
    '''
    if isinstance(choice, str):
        choice = [choice]
    elif not isinstance(choice, (list, tuple)):
        return None
    ranking = []
    for option in choice:
        if option in options and option not in ranking:
            ranking.append(option)
    return ranking
