'''Count the ballots of elections.

Every voting method is implemented by an evaluator with a single
``compute(election, ballots)`` method returning a :class:`core.TallyResult`.
Evaluators are pure and deterministic: they perform no I/O, never modify the
election or the ballots, and return equal results for equal inputs, so they
can safely be run again (e.g. to show interim results) or concurrently.

All results share the same tie policy: options with equal counts are ordered
by their declaration order in the election, and if several options share the
top count, the winner is the list of all of them in that order.

The evaluators do not validate ballots; ballots are validated when they are
cast (see :mod:`ballotbox.vote`). Ballots whose choice is empty or does not
name any option of the election are counted as abstentions.
'''

from ballotbox.evaluate.core import *    # noqa
