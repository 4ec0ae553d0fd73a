import sys
import os
import json

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))
import ballotbox.__main__


DUMP = {
    'election': {
        'kind': 'candidate',
        'method': 'two-round',
        'options': ['A', 'B', 'C'],
        'name': 'Mascot',
    },
    'ballots': [{'choice': choice} for choice in 'AABCC'],
}


@pytest.fixture
def dump_path(tmp_path):
    path = tmp_path / 'election.json'
    path.write_text(json.dumps(DUMP), encoding='utf8')
    return str(path)


def run(args):
    parsed = ballotbox.__main__.argparser.parse_args(args)
    ballotbox.__main__.main(**vars(parsed))


def test_tally(dump_path, capsys):
    run(['-i', dump_path, '-q'])
    out = capsys.readouterr().out
    assert 'Running a Two-Round System count of 3 options' in out
    assert 'Received 5 ballots' in out
    assert 'Results: Mascot' in out
    assert 'Winner: A, C' in out


def test_method_override(dump_path, capsys):
    run(['-i', dump_path, '-m', 'fptp', '-q'])
    out = capsys.readouterr().out
    assert 'Method: First Past the Post' in out
    assert 'Winner: A, C' in out
    assert 'Final round counts' not in out


def test_stdin(dump_path, capsys, monkeypatch):
    with open(dump_path, encoding='utf8') as infile:
        monkeypatch.setattr(sys, 'stdin', infile)
        run(['-I', '-q'])
    assert 'Results: Mascot' in capsys.readouterr().out


def test_unknown_method_rejected(dump_path):
    with pytest.raises(SystemExit):
        run(['-i', dump_path, '-m', 'borda'])


def test_no_input_prints_usage(capsys, monkeypatch):
    monkeypatch.setattr(sys, 'argv', ['ballotbox'])
    ballotbox.__main__.cli()
    assert 'usage' in capsys.readouterr().out
