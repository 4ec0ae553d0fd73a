'''Various utility functions for other modules of Ballotbox.

There should normally be no need to use these functions directly.
'''

import operator
import datetime
from typing import Any, List, Tuple, Dict, Iterable
from numbers import Number


def zero_counts(options: Iterable[str]) -> Dict[str, Number]:
    '''Return a count mapping with a zero entry for every option, in order.'''
    return {option: 0 for option in options}


def sorted_votes(votes: Dict[Any, Number],
                 descending: bool = True,
                 ) -> List[Tuple[Any, Number]]:
    '''Return votes items sorted by value.

    The sort is stable, so items with equal values keep their order in the
    input mapping. Since count mappings are built in option declaration
    order, this breaks ties by declaration order.
    '''
    return list(sorted(
        votes.items(),
        key=operator.itemgetter(1),
        reverse=descending
    ))


def leaders(votes: Dict[Any, Number]) -> List[Any]:
    '''Return all keys sharing the maximum value, in input order.'''
    if not votes:
        return []
    top = max(votes.values())
    return [key for key, n_votes in votes.items() if n_votes == top]


def laggards(votes: Dict[Any, Number]) -> List[Any]:
    '''Return all keys sharing the minimum value, in input order.'''
    if not votes:
        return []
    bottom = min(votes.values())
    return [key for key, n_votes in votes.items() if n_votes == bottom]


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)
