'''
Runtime settings loaded from the environment.

Values come from process environment variables, with a .env file in the
working directory loaded first when present.
'''

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from dotenv import load_dotenv

__all__ = ['Settings']

_DEFAULT_DB_PATH = 'oms.sqlite3'
_DEFAULT_LOG_LEVEL = 'INFO'
_DEFAULT_ORDER_NO_ATTEMPTS = 3
_LOG_LEVELS = frozenset({'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'})


@dataclass(frozen=True)
class Settings:

    '''
    Configuration for the order management core.

    Args:
        db_path (str): SQLite database path, ":memory:" for an in-process database
        log_level (str): Minimum log level name
        order_no_max_attempts (int): Order-number generations tried on collision
    '''

    db_path: str = _DEFAULT_DB_PATH
    log_level: str = _DEFAULT_LOG_LEVEL
    order_no_max_attempts: int = _DEFAULT_ORDER_NO_ATTEMPTS

    def __post_init__(self) -> None:

        '''Validate invariants at construction time.'''

        if not self.db_path:
            msg = 'Settings.db_path must be a non-empty string'
            raise ValueError(msg)
        if self.log_level.upper() not in _LOG_LEVELS:
            msg = f'Settings.log_level must be one of {sorted(_LOG_LEVELS)}'
            raise ValueError(msg)
        if self.order_no_max_attempts < 1:
            msg = 'Settings.order_no_max_attempts must be positive'
            raise ValueError(msg)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:

        '''
        Build settings from OMS_* environment variables.

        Reads OMS_DB_PATH, OMS_LOG_LEVEL and OMS_ORDER_NO_MAX_ATTEMPTS.
        When environ is None the process environment is used after
        loading a .env file.

        Args:
            environ (Mapping[str, str] | None): Variables to read instead of os.environ

        Returns:
            Settings: Validated settings
        '''

        if environ is None:
            load_dotenv()
            environ = os.environ

        attempts = environ.get('OMS_ORDER_NO_MAX_ATTEMPTS', str(_DEFAULT_ORDER_NO_ATTEMPTS))
        try:
            order_no_max_attempts = int(attempts)
        except ValueError:
            msg = f'OMS_ORDER_NO_MAX_ATTEMPTS must be an integer, got {attempts!r}'
            raise ValueError(msg) from None

        return cls(
            db_path=environ.get('OMS_DB_PATH', _DEFAULT_DB_PATH),
            log_level=environ.get('OMS_LOG_LEVEL', _DEFAULT_LOG_LEVEL).upper(),
            order_no_max_attempts=order_no_max_attempts,
        )
