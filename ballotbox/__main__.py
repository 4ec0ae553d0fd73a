"""A commandline tool for quick evaluation of dumped elections.

Loads an election with its ballots from a plain JSON dump, counts it by its
voting method (or another one given on the command line) and prints the
result. Nothing is closed or stored.
"""

import argparse
import io
import logging
import sys
import warnings
from typing import Optional

import ballotbox.system
import ballotbox.io.dump
from ballotbox.io.core import ElectionData
from ballotbox.publish import render_result

argparser = argparse.ArgumentParser(
    prog='ballotbox',
    description=__doc__,
    formatter_class=argparse.ArgumentDefaultsHelpFormatter,
)
argparser.add_argument(
    '-i', '--input-file',
    type=argparse.FileType('r', encoding='utf8'),
    help='file to load the election dump from',
)
argparser.add_argument(
    '-I', '--use-stdin',
    action='store_true',
    help='load the election dump from standard input',
)
argparser.add_argument(
    '-m', '--method',
    choices=sorted(ballotbox.system.SYSTEMS.keys()),
    help='count by this voting method instead of the dumped one',
)
argparser.add_argument(
    '-v', '--verbose',
    action='store_true',
    help='show all evaluator log messages and other info',
)
argparser.add_argument(
    '-q', '--quiet',
    action='store_true',
    help='do not show any evaluator log messages or other info',
)


def main(input_file: Optional[io.TextIOBase] = None,
         use_stdin: bool = False,
         method: Optional[str] = None,
         verbose: bool = False,
         quiet: bool = False,
         ) -> None:
    logging.basicConfig(
        level=(
            logging.DEBUG if verbose
            else (logging.WARNING if quiet else logging.INFO)
        ),
        format='%(levelname)-10s %(message)s'
    )
    if use_stdin:
        input_file = sys.stdin
    data = load_election(input_file, method=method)
    if not data.ballots:
        warnings.warn('no ballots in the dump, nothing will be counted')
    run_tally(data)


def load_election(input_file: io.TextIOBase,
                  method: Optional[str] = None,
                  ) -> ElectionData:
    """Load the election and its ballots from the given dump file."""
    return ballotbox.io.dump.load(input_file, method=method)


def run_tally(data: ElectionData) -> None:
    election = data.election
    system = ballotbox.system.get(election.method)
    print()
    print(f'Running a {system.name} count of {len(election.options)} options')
    print(f'Received {len(data.ballots)} ballots')
    print()
    result = ballotbox.system.compute_tally(election, data.ballots)
    print(render_result(election, result))


def cli() -> None:
    args = argparser.parse_args()
    if not args.input_file and not args.use_stdin:
        argparser.print_usage()
    else:
        main(**vars(args))


if __name__ == '__main__':
    cli()
