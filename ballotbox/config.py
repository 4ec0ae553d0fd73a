'''Runtime configuration of a Ballotbox deployment.

Settings are read from environment variables:

- ``BALLOTBOX_SECRET``: key for voter fingerprints (required, see
  :mod:`ballotbox.anonymize`). Must stay the same across restarts.
- ``BALLOTBOX_DEFAULT_DURATION``: how long an election without an explicit
  deadline stays open, as a compact duration like ``1h30m``. Default: ``1h``.
- ``BALLOTBOX_THRESHOLD``: default outright-win threshold of runoff methods,
  in (0, 1]. Default: ``0.5``.
- ``BALLOTBOX_STORE_PATH``: path of the JSON file store. If unset, elections
  are kept in memory only.
- ``BALLOTBOX_LOG_LEVEL``: standard logging level name. Default: ``INFO``.

Invalid values raise :class:`ballotbox.errors.ConfigurationError`; there are
no silent fallbacks.
'''

import os
import logging
import datetime
from dataclasses import dataclass, field
from typing import Mapping, Optional

import ballotbox.anonymize
import ballotbox.election
from ballotbox.errors import ConfigurationError, ValidationError

ENV_PREFIX = 'BALLOTBOX_'
LOG_FORMAT = '%(levelname)-10s %(message)s'
LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


@dataclass
class Settings:
    '''Configuration values of a deployment.'''
    secret: str = field(repr=False)
    default_duration: datetime.timedelta = ballotbox.election.DEFAULT_DURATION
    default_threshold: float = ballotbox.election.DEFAULT_THRESHOLD
    store_path: Optional[str] = None
    log_level: str = 'INFO'

    @classmethod
    def from_env(cls,
                 environ: Optional[Mapping[str, str]] = None,
                 ) -> 'Settings':
        '''Build the settings from environment variables.

        :param environ: The variables to read; the process environment by
            default.
        :raises ConfigurationError: If a value is missing or malformed.
        '''
        if environ is None:
            environ = os.environ
        secret = ballotbox.anonymize.check_secret(
            environ.get(ENV_PREFIX + 'SECRET', '')
        )

        duration_raw = environ.get(ENV_PREFIX + 'DEFAULT_DURATION', '').strip()
        if duration_raw:
            try:
                duration = ballotbox.election.parse_duration(duration_raw)
            except ValidationError as err:
                raise ConfigurationError(
                    f'{ENV_PREFIX}DEFAULT_DURATION: {err}'
                ) from err
        else:
            duration = cls.default_duration

        threshold_raw = environ.get(ENV_PREFIX + 'THRESHOLD', '').strip()
        if threshold_raw:
            try:
                threshold = float(threshold_raw)
            except ValueError as err:
                raise ConfigurationError(
                    f'{ENV_PREFIX}THRESHOLD must be a number,'
                    f' got {threshold_raw!r}'
                ) from err
            if not 0 < threshold <= 1:
                raise ConfigurationError(
                    f'{ENV_PREFIX}THRESHOLD must be in (0, 1],'
                    f' got {threshold_raw!r}'
                )
        else:
            threshold = cls.default_threshold

        store_path = environ.get(ENV_PREFIX + 'STORE_PATH', '').strip() or None

        log_level = environ.get(ENV_PREFIX + 'LOG_LEVEL', '').strip().upper()
        if not log_level:
            log_level = cls.log_level
        elif log_level not in LOG_LEVELS:
            raise ConfigurationError(
                f'{ENV_PREFIX}LOG_LEVEL must be one of '
                + ', '.join(LOG_LEVELS) + f', got {log_level!r}'
            )

        return cls(
            secret=secret,
            default_duration=duration,
            default_threshold=threshold,
            store_path=store_path,
            log_level=log_level,
        )


def configure_logging(level: str = 'INFO') -> None:
    '''Set up standard library logging for a Ballotbox process.'''
    logging.basicConfig(level=getattr(logging, level), format=LOG_FORMAT)
