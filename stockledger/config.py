from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Callable, Mapping

_DEFAULT_ENV = "development"
_ENV_KEY = "FLASK_ENV"
_VALID_ENVS = {"development", "testing", "staging", "production"}
_FORBIDDEN_ENV_KEYS = ("APP_ENV", "STOCKLEDGER_ENV", "ENVIRONMENT")
_BOOL_WORDS = {
    "1": True, "true": True, "yes": True, "on": True,
    "0": False, "false": False, "no": False, "off": False,
}


@dataclass(frozen=True)
class EnvironmentInfo:
    name: str
    source: str
    raw_value: str


class EnvReader:
    """Typed reads over an environment mapping.

    Malformed or out-of-range values never raise: the default is used and a
    warning is collected for the startup diagnostics.
    """

    def __init__(self, data: Mapping[str, str] | None = None):
        self._data = dict(os.environ if data is None else data)
        self.warnings: list[str] = []

    def warn(self, message: str) -> None:
        self.warnings.append(message)

    def raw(self, key: str) -> str | None:
        return self._data.get(key)

    def _cleaned(self, key: str) -> str | None:
        value = (self._data.get(key) or "").strip()
        return value or None

    def str(self, key: str, default: str | None = None) -> str | None:
        value = self._cleaned(key)
        return default if value is None else value

    def _number(self, key: str, default, cast: Callable, label: str, minimum=None):
        text = self._cleaned(key)
        if text is None:
            return default
        try:
            value = cast(text)
        except ValueError:
            self.warn(f"{key} expected {label} but received {text!r}; falling back to {default}.")
            return default
        if minimum is not None and value < minimum:
            self.warn(f"{key} must be at least {minimum}, got {value}; falling back to {default}.")
            return default
        return value

    def int(self, key: str, default: int = 0, *, minimum: int | None = None) -> int:
        return self._number(key, default, int, "integer", minimum)

    def float(self, key: str, default: float | None = 0.0, *, minimum: float | None = None) -> float | None:
        return self._number(key, default, float, "float", minimum)

    def bool(self, key: str, default: bool = False) -> bool:
        text = self._cleaned(key)
        if text is None:
            return default
        parsed = _BOOL_WORDS.get(text.lower())
        if parsed is None:
            self.warn(f"{key} expected boolean but received {text!r}; falling back to {default}.")
            return default
        return parsed


def _normalize_db_url(url: str | None) -> str | None:
    if not url:
        return None
    if url.startswith('postgres://'):
        return 'postgresql://' + url[len('postgres://'):]
    return url


def resolve_environment(reader: EnvReader) -> EnvironmentInfo:
    """Pick the active environment from FLASK_ENV; legacy selector keys are refused."""
    legacy = [key for key in _FORBIDDEN_ENV_KEYS if reader.raw(key) not in (None, "")]
    if legacy:
        raise RuntimeError(
            f"{legacy[0]} is not supported. Set {_ENV_KEY} to one of {sorted(_VALID_ENVS)} instead."
        )

    raw_value = reader.str(_ENV_KEY, _DEFAULT_ENV)
    name = raw_value.strip().lower()
    if name not in _VALID_ENVS:
        raise RuntimeError(f"Invalid {_ENV_KEY}={raw_value!r}. Expected one of {sorted(_VALID_ENVS)}.")
    return EnvironmentInfo(name=name, source=_ENV_KEY, raw_value=raw_value)


env = EnvReader()
ENV_INFO = resolve_environment(env)


class BaseConfig:
    FLASK_ENV = ENV_INFO.name
    SECRET_KEY = env.str('FLASK_SECRET_KEY', 'devkey-please-change-in-production')

    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_RECORD_QUERIES = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_size': env.int('SQLALCHEMY_POOL_SIZE', 20, minimum=1),
        'max_overflow': env.int('SQLALCHEMY_MAX_OVERFLOW', 10, minimum=0),
        'pool_pre_ping': True,
        'pool_recycle': env.int('SQLALCHEMY_POOL_RECYCLE', 1800),
        'pool_timeout': env.int('SQLALCHEMY_POOL_TIMEOUT', 30, minimum=1),
    }

    LOG_LEVEL = env.str('LOG_LEVEL', 'WARNING')
    LOG_REDACT_PII = env.bool('LOG_REDACT_PII', True)

    # Single-row write contention on stock_level
    STOCK_LOCK_RETRY_ATTEMPTS = env.int('STOCK_LOCK_RETRY_ATTEMPTS', 5, minimum=1)
    STOCK_LOCK_RETRY_INITIAL_DELAY = env.float('STOCK_LOCK_RETRY_INITIAL_DELAY', 0.05, minimum=0.0)
    STOCK_LOCK_RETRY_MAX_DELAY = env.float('STOCK_LOCK_RETRY_MAX_DELAY', 2.0, minimum=0.0)
    # Unset means batches never time out on their own
    STOCK_BATCH_TIMEOUT_SECONDS = env.float('STOCK_BATCH_TIMEOUT_SECONDS', None, minimum=0.0)

    STOCK_AUDIT_TOLERANCE = env.float('STOCK_AUDIT_TOLERANCE', 0.01, minimum=0.0)
    STOCK_HISTORY_DEFAULT_LIMIT = env.int('STOCK_HISTORY_DEFAULT_LIMIT', 50, minimum=1)
    STOCK_RECENT_MOVEMENTS_LIMIT = env.int('STOCK_RECENT_MOVEMENTS_LIMIT', 100, minimum=1)


def _local_sqlite_uri() -> str:
    instance_path = os.path.join(os.path.abspath(os.path.dirname(__file__)), '..', 'instance')
    os.makedirs(instance_path, exist_ok=True)
    return 'sqlite:///' + os.path.join(instance_path, 'stockledger.db')


class DevelopmentConfig(BaseConfig):
    ENV = 'development'
    DEBUG = True
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
        'pool_recycle': 3600,
    }

    @classmethod
    def database_uri(cls) -> str:
        return _normalize_db_url(env.str('DATABASE_URL')) or _local_sqlite_uri()


class TestingConfig(BaseConfig):
    ENV = 'testing'
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
    }
    STOCK_LOCK_RETRY_INITIAL_DELAY = 0.01


class StagingConfig(BaseConfig):
    ENV = 'staging'
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = _normalize_db_url(env.str('DATABASE_URL'))
    SQLALCHEMY_ENGINE_OPTIONS = {
        **BaseConfig.SQLALCHEMY_ENGINE_OPTIONS,
        'pool_size': 10,
        'max_overflow': 20,
    }


class ProductionConfig(BaseConfig):
    ENV = 'production'
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = _normalize_db_url(env.str('DATABASE_URL'))
    LOG_LEVEL = env.str('LOG_LEVEL', 'INFO')


if ENV_INFO.name == 'development':
    DevelopmentConfig.SQLALCHEMY_DATABASE_URI = DevelopmentConfig.database_uri()
elif ENV_INFO.name in ('staging', 'production') and not env.str('DATABASE_URL'):
    env.warn(f"DATABASE_URL is not set for {ENV_INFO.name}; the app cannot reach its stock store.")

config_map = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'staging': StagingConfig,
    'production': ProductionConfig,
}

Config = config_map[ENV_INFO.name]
ENV_DIAGNOSTICS = {
    'active': ENV_INFO.name,
    'source': ENV_INFO.source,
    'variables': {ENV_INFO.source: ENV_INFO.raw_value},
    'warnings': tuple(env.warnings),
}
