import sys
import os

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))
import ballotbox.evaluate
import ballotbox.evaluate.core

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))
import sample


PLURALITY = ballotbox.evaluate.Plurality()


def test_plurality_simple():
    election = sample.election('fptp')
    result = PLURALITY.compute(election, sample.ballots(election, 'AAB'))
    assert result.counts == {'A': 2, 'B': 1, 'C': 0}
    assert result.winner == 'A'
    assert result.total_votes == 3
    assert result.abstain == 0
    assert result.breakdown == [('A', 2), ('B', 1), ('C', 0)]


def test_plurality_tie_declaration_order():
    election = sample.election('fptp', options=('C', 'B', 'A'))
    result = PLURALITY.compute(election, sample.ballots(election, 'ABAB'))
    assert result.winner == ['B', 'A']
    assert result.tied
    assert result.breakdown == [('B', 2), ('A', 2), ('C', 0)]


def test_plurality_no_votes():
    election = sample.election('fptp')
    result = PLURALITY.compute(election, [])
    assert result.winner is None
    assert result.winners == []
    assert result.counts == {'A': 0, 'B': 0, 'C': 0}


@pytest.mark.parametrize('choices, abstain', [
    (['A', '', 'B'], 1),
    (['A', 'X', None], 2),
    ([['A'], ('B', ), []], 1),
])
def test_plurality_abstain_sum(choices, abstain):
    election = sample.election('fptp')
    ballots = sample.ballots(election, choices)
    result = PLURALITY.compute(election, ballots)
    assert result.abstain == abstain
    assert sum(result.counts.values()) + result.abstain == len(ballots)


def test_deterministic():
    election = sample.election('fptp')
    ballots = sample.ballots(election, 'CABBCA')
    first = PLURALITY.compute(election, ballots)
    assert PLURALITY.compute(election, list(ballots)) == first
    assert [b.choice for b in ballots] == list('CABBCA')


@pytest.mark.parametrize('counts, total, winner', [
    ({'A': 1, 'B': 0}, 1, 'A'),
    ({'A': 1, 'B': 1}, 2, ['A', 'B']),
    ({'A': 0, 'B': 0}, 0, None),
])
def test_pick_winner(counts, total, winner):
    assert ballotbox.evaluate.core.pick_winner(counts, total) == winner


@pytest.mark.parametrize('choice, expected', [
    ('A', 'A'),
    ('', None),
    (['B', 'A'], 'B'),
    ((), None),
    (None, None),
    (frozenset(['A']), None),
])
def test_first_choice(choice, expected):
    assert ballotbox.evaluate.core.first_choice(choice) == expected


def test_result_winner_list_normalized():
    result = ballotbox.evaluate.TallyResult(
        {'A': 1, 'B': 1}, 2, winner=('A', 'B')
    )
    assert result.winner == ['A', 'B']
    assert result.winners == ['A', 'B']
