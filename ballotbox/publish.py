'''Announcement of final election results.

The lifecycle manager hands every finalized election to a
:class:`Publisher`. Publishing is best effort: a failed announcement is
logged by the caller and never reopens the election.
'''

import abc
import logging
from fractions import Fraction
from typing import Dict, List, Optional
from numbers import Number

import ballotbox.system
from ballotbox.election import Election
from ballotbox.evaluate import TallyResult
from ballotbox.errors import UnsupportedMethodError

logger = logging.getLogger(__name__)

BAR_WIDTH = 20
BAR_FULL = '█'
BAR_EMPTY = '░'
NO_VALUE = '-'


class Publisher(metaclass=abc.ABCMeta):
    '''Announce the result of a finalized election.'''
    @abc.abstractmethod
    def publish(self, election: Election, result: TallyResult) -> bool:
        '''Announce the result.

        :returns: True if the announcement was delivered. Implementations
            may also raise :class:`ballotbox.errors.PublishError` on
            failure.
        '''
        raise NotImplementedError


class LoggingPublisher(Publisher):
    '''Write the rendered result to the log.

    :param level: Logging level of the announcement.
    '''
    def __init__(self, level: int = logging.INFO):
        self.level = level

    def publish(self, election: Election, result: TallyResult) -> bool:
        logger.log(self.level, '%s', render_result(election, result))
        return True


def render_result(election: Election, result: TallyResult) -> str:
    '''Render a plain text summary of an election result.

    Propositions list the count of every option, followed by the majority
    and minority option and the number of abstentions. Candidate elections
    list the winner and the number of votes, and for methods counting in
    rounds also the counts of the deciding round. A bar chart of the counts
    closes the summary.
    '''
    lines = [
        f'Results: {election.name or election.id}',
        f'Election ID: {election.id}',
        f'Method: {method_name(election.method)}',
    ]
    if election.description:
        lines.append(election.description)
    if election.kind == 'proposition':
        lines.append(' | '.join(
            f'{option}: {_format_number(count)}'
            for option, count in result.counts.items()
        ))
        majority = result.breakdown[0][0] if result.breakdown else NO_VALUE
        minority = (
            result.breakdown[1][0] if len(result.breakdown) > 1 else NO_VALUE
        )
        lines.append(
            f'Majority: {majority} | Minority: {minority}'
            f' | Abstain: {result.abstain}'
        )
    else:
        winners = ', '.join(result.winners) or NO_VALUE
        lines.append(f'Winner: {winners}')
        lines.append(f'Total Votes: {_format_number(result.total_votes)}')
        final_counts = final_round_counts(result)
        if final_counts is not None:
            lines.append('Final round counts: ' + ', '.join(
                f'{option}: {_format_number(count)}'
                for option, count in final_counts.items()
            ))
    lines.append('')
    lines.append(make_bar(
        result.counts, result.total_votes + result.abstain
    ))
    return '\n'.join(lines)


def final_round_counts(result: TallyResult) -> Optional[Dict[str, Number]]:
    '''Return the counts of the deciding round, or None for single rounds.'''
    if 'rounds' in result.details:
        return result.details['rounds'][-1]['counts']
    elif 'runoff_counts' in result.details:
        return result.details['runoff_counts']
    else:
        return None


def method_name(method: str) -> str:
    try:
        return ballotbox.system.get(method).name
    except UnsupportedMethodError:
        return method


def make_bar(counts: Dict[str, Number], total: Number) -> str:
    '''Draw a text bar chart of the counts.

    Each option gets a line with its padded name, a bar of
    :data:`BAR_WIDTH` cells filled in proportion to its share of the total,
    its count and its rounded percentage.
    '''
    if not counts:
        return ''
    width = max(max(len(option) for option in counts), 4)
    lines: List[str] = []
    for option, count in counts.items():
        share = Fraction(count) / Fraction(total) if total else Fraction(0)
        filled = _round_half_up(share * BAR_WIDTH)
        percent = f'{_round_half_up(share * 100)}%'
        lines.append(
            f'{option.ljust(width)} '
            f'{BAR_FULL * filled}{BAR_EMPTY * (BAR_WIDTH - filled)} '
            f'{_format_number(count)} ({percent:>4})'
        )
    return '\n'.join(lines)


def _round_half_up(value: Fraction) -> int:
    return int(value + Fraction(1, 2))


def _format_number(value: Number) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
