"""Input/output of elections and their ballots in file formats.

This subpackage is structured into modules by file format; currently only
the plain JSON dump format (:mod:`ballotbox.io.dump`) is supported.
"""

from ballotbox.io.core import ElectionData, ParseError    # noqa: F401
