'''Quota functions reported by transferable vote evaluators.

A quota function takes the total number of votes and the number of seats
to fill and returns the number of votes required to secure a seat.

All supported quota functions are assembled in the `QUOTAS` dictionary keyed
by their name. `get()` retrieves from this dictionary by string key;
`construct()` also accepts callables and passes them through.
'''

from fractions import Fraction

import ballotbox.component.core


QUOTAS = {}


quota_mark, get, construct = ballotbox.component.core.register_functions(
    QUOTAS, 'quota'
)


@quota_mark
def droop(votes: int, seats: int) -> int:
    '''Droop quota, the most widely used one.

    It is the smallest integer quota guaranteeing the number of passing
    candidates will not be higher than the number of seats. For a single
    seat, this is a strict majority: ``floor(votes / 2) + 1``.
    '''
    return int(Fraction(votes, seats + 1)) + 1
