import sys
import os

sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))
import ballotbox.vote
import ballotbox.evaluate.weighted

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))
import sample


WEIGHTED = ballotbox.evaluate.weighted.Weighted()


def test_weighted_roles():
    election = sample.election('weighted', role_weights={'mod': 3})
    weights = [
        ballotbox.vote.role_weight(election.role_weights, ['mod']),
        ballotbox.vote.role_weight(election.role_weights, []),
        ballotbox.vote.role_weight(election.role_weights, ['guest']),
    ]
    assert weights == [3, 1, 1]
    ballots = sample.ballots(election, 'ABB', weights)
    result = WEIGHTED.compute(election, ballots)
    assert result.counts == {'A': 3, 'B': 2, 'C': 0}
    assert result.winner == 'A'
    assert result.total_votes == 5
    assert result.details == {'ballots': 3}


def test_weighted_abstentions():
    election = sample.election('weighted')
    ballots = sample.ballots(election, ['A', '', 'B', 'C'], [2, 5, 0, -1])
    result = WEIGHTED.compute(election, ballots)
    assert result.counts == {'A': 2, 'B': 0, 'C': 0}
    assert result.abstain == 3
    assert result.total_votes == 2


def test_weighted_multiple_roles_sum():
    weights = {'mod': 3, 'admin': 5}
    assert ballotbox.vote.role_weight(weights, ['mod', 'admin']) == 8
