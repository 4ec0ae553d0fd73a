import sys
import os
import datetime

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))
import ballotbox.config
from ballotbox.config import Settings
from ballotbox.errors import ConfigurationError

SECRET = 'test-secret-0123456789'


def test_defaults():
    settings = Settings.from_env({'BALLOTBOX_SECRET': SECRET})
    assert settings.secret == SECRET
    assert settings.default_duration == datetime.timedelta(hours=1)
    assert settings.default_threshold == 0.5
    assert settings.store_path is None
    assert settings.log_level == 'INFO'


def test_all_values():
    settings = Settings.from_env({
        'BALLOTBOX_SECRET': SECRET,
        'BALLOTBOX_DEFAULT_DURATION': '1d12h',
        'BALLOTBOX_THRESHOLD': '0.66',
        'BALLOTBOX_STORE_PATH': '/var/lib/ballotbox.json',
        'BALLOTBOX_LOG_LEVEL': 'debug',
    })
    assert settings.default_duration == datetime.timedelta(days=1, hours=12)
    assert settings.default_threshold == 0.66
    assert settings.store_path == '/var/lib/ballotbox.json'
    assert settings.log_level == 'DEBUG'


def test_process_environment(monkeypatch):
    monkeypatch.setenv('BALLOTBOX_SECRET', SECRET)
    monkeypatch.setenv('BALLOTBOX_THRESHOLD', '1')
    assert Settings.from_env().default_threshold == 1


@pytest.mark.parametrize('environ', [
    {},
    {'BALLOTBOX_SECRET': ''},
    {'BALLOTBOX_SECRET': 'CHANGE_THIS_IN_ENV'},
    {'BALLOTBOX_SECRET': SECRET, 'BALLOTBOX_DEFAULT_DURATION': 'forever'},
    {'BALLOTBOX_SECRET': SECRET, 'BALLOTBOX_DEFAULT_DURATION': '0m'},
    {'BALLOTBOX_SECRET': SECRET, 'BALLOTBOX_THRESHOLD': 'half'},
    {'BALLOTBOX_SECRET': SECRET, 'BALLOTBOX_THRESHOLD': '0'},
    {'BALLOTBOX_SECRET': SECRET, 'BALLOTBOX_THRESHOLD': '1.5'},
    {'BALLOTBOX_SECRET': SECRET, 'BALLOTBOX_LOG_LEVEL': 'LOUD'},
])
def test_invalid(environ):
    with pytest.raises(ConfigurationError):
        Settings.from_env(environ)


def test_repr_hides_secret():
    settings = Settings.from_env({'BALLOTBOX_SECRET': SECRET})
    assert SECRET not in repr(settings)


def test_configure_logging(monkeypatch):
    calls = []
    monkeypatch.setattr(
        ballotbox.config.logging, 'basicConfig',
        lambda **kwargs: calls.append(kwargs)
    )
    ballotbox.config.configure_logging('WARNING')
    assert calls == [{
        'level': ballotbox.config.logging.WARNING,
        'format': '%(levelname)-10s %(message)s',
    }]
