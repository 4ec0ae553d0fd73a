'''Voting systems: the supported methods keyed by their method key.

Each :class:`VotingSystem` couples the evaluator that counts an election
with the validator that checks the ballots cast in it. The set of methods is
closed: an election naming a key not in :data:`SYSTEMS` cannot be created
nor tallied.
'''

import logging
from typing import Sequence

import ballotbox.vote
import ballotbox.evaluate
import ballotbox.evaluate.approval
import ballotbox.evaluate.sequential
import ballotbox.evaluate.threshold
import ballotbox.evaluate.weighted
from ballotbox.election import Election, Ballot
from ballotbox.errors import UnsupportedMethodError

logger = logging.getLogger(__name__)


class VotingSystem:
    """A named voting method. Wraps an evaluator and a ballot validator.

    :param name: Human readable name of the method.
    :param evaluator: Evaluator counting the ballots, see
        :mod:`ballotbox.evaluate`.
    :param validator: Validator checking the choices of the ballots, see
        :mod:`ballotbox.vote`.
    """
    def __init__(self,
                 name: str,
                 evaluator: ballotbox.evaluate.Evaluator,
                 validator: ballotbox.vote.VoteValidator,
                 ):
        self.name = name
        self.evaluator = evaluator
        self.validator = validator

    def compute(self, *args, **kwargs) -> ballotbox.evaluate.TallyResult:
        """Return the evaluator's result for the election and ballots."""
        return self.evaluator.compute(*args, **kwargs)

    def __repr__(self) -> str:
        return f'<VotingSystem {self.name}>'


SYSTEMS = {
    'fptp': VotingSystem(
        'First Past the Post',
        ballotbox.evaluate.Plurality(),
        ballotbox.vote.SimpleVoteValidator(),
    ),
    'approval': VotingSystem(
        'Approval Voting',
        ballotbox.evaluate.approval.Approval(),
        ballotbox.vote.ApprovalVoteValidator(),
    ),
    'irv': VotingSystem(
        'Instant Runoff',
        ballotbox.evaluate.sequential.InstantRunoff(),
        ballotbox.vote.RankedVoteValidator(),
    ),
    'stv': VotingSystem(
        'Single Transferable Vote',
        ballotbox.evaluate.sequential.SingleTransferableVote(
            quota_function='droop'
        ),
        ballotbox.vote.RankedVoteValidator(),
    ),
    'two-round': VotingSystem(
        'Two-Round System',
        ballotbox.evaluate.threshold.TwoRound(),
        ballotbox.vote.SimpleVoteValidator(),
    ),
    'weighted': VotingSystem(
        'Weighted Roles',
        ballotbox.evaluate.weighted.Weighted(),
        ballotbox.vote.WeightedVoteValidator(),
    ),
}


def get(method: str) -> VotingSystem:
    '''Return the voting system for a method key.

    :raises UnsupportedMethodError: If the key is unknown.
    '''
    try:
        return SYSTEMS[method]
    except (KeyError, TypeError):
        raise UnsupportedMethodError(method, SYSTEMS.keys()) from None


def compute_tally(election: Election,
                  ballots: Sequence[Ballot],
                  ) -> ballotbox.evaluate.TallyResult:
    '''Tally the ballots of an election by its voting method.

    :param election: The election to count.
    :param ballots: All live ballots of the election.
    :raises UnsupportedMethodError: If the election's method is unknown.
    '''
    system = get(election.method)
    logger.debug('tallying %s with %d ballots by %s',
                 election.id, len(ballots), system.name)
    return system.compute(election, ballots)
