import logging

import pytest
from sqlalchemy.pool import StaticPool

from stockledger import create_app
from stockledger.config import EnvReader, _normalize_db_url, resolve_environment
from stockledger.logging_config import PiiRedactionFilter, _coerce_level


class TestEnvReader:

    def test_typed_reads(self):
        reader = EnvReader({
            'RETRIES': '7',
            'DELAY': '0.25',
            'ENABLED': 'yes',
            'NAME': '  ledger  ',
            'BLANK': '   ',
        })

        assert reader.int('RETRIES') == 7
        assert reader.float('DELAY') == 0.25
        assert reader.bool('ENABLED') is True
        assert reader.str('NAME') == 'ledger'
        assert reader.str('BLANK', 'fallback') == 'fallback'
        assert reader.float('MISSING', None) is None
        assert reader.warnings == []

    def test_bad_values_fall_back_with_warning(self):
        reader = EnvReader({'RETRIES': 'many', 'DELAY': 'soon', 'ENABLED': 'perhaps'})

        assert reader.int('RETRIES', 5) == 5
        assert reader.float('DELAY', 0.05) == 0.05
        assert reader.bool('ENABLED', False) is False
        assert len(reader.warnings) == 3
        assert "RETRIES expected integer" in reader.warnings[0]

    def test_minimum_guards_ledger_knobs(self):
        reader = EnvReader({'STOCK_LOCK_RETRY_ATTEMPTS': '0', 'STOCK_AUDIT_TOLERANCE': '-1'})

        assert reader.int('STOCK_LOCK_RETRY_ATTEMPTS', 5, minimum=1) == 5
        assert reader.float('STOCK_AUDIT_TOLERANCE', 0.01, minimum=0.0) == 0.01
        assert len(reader.warnings) == 2
        assert "must be at least 1" in reader.warnings[0]


class TestResolveEnvironment:

    def test_defaults_to_development(self):
        assert resolve_environment(EnvReader({})).name == 'development'

    def test_normalizes_case(self):
        info = resolve_environment(EnvReader({'FLASK_ENV': ' Production '}))

        assert info.name == 'production'
        assert info.source == 'FLASK_ENV'

    def test_rejects_unknown_environment(self):
        with pytest.raises(RuntimeError, match="Invalid FLASK_ENV"):
            resolve_environment(EnvReader({'FLASK_ENV': 'qa'}))

    @pytest.mark.parametrize("key", ["APP_ENV", "STOCKLEDGER_ENV", "ENVIRONMENT"])
    def test_rejects_legacy_environment_keys(self, key):
        with pytest.raises(RuntimeError, match=key):
            resolve_environment(EnvReader({key: 'production'}))


def test_postgres_scheme_is_normalized():
    assert _normalize_db_url('postgres://u:p@db/ledger') == 'postgresql://u:p@db/ledger'
    assert _normalize_db_url('sqlite:///x.db') == 'sqlite:///x.db'
    assert _normalize_db_url('') is None


class TestAppFactory:

    def test_in_memory_sqlite_uses_static_pool(self):
        app = create_app({'TESTING': True, 'DATABASE_URL': 'sqlite://'})

        options = app.config['SQLALCHEMY_ENGINE_OPTIONS']
        assert options['poolclass'] is StaticPool
        assert options['connect_args']['check_same_thread'] is False
        assert 'pool_size' not in options

    def test_stock_settings_have_defaults(self, app):
        assert app.config['STOCK_LOCK_RETRY_ATTEMPTS'] == 5
        assert app.config['STOCK_AUDIT_TOLERANCE'] == 0.01
        assert app.config['STOCK_HISTORY_DEFAULT_LIMIT'] == 50
        assert app.config['STOCK_BATCH_TIMEOUT_SECONDS'] is None

    def test_commands_are_registered(self, app):
        assert 'stock-audit' in app.cli.commands
        assert 'stock-history' in app.cli.commands


class TestPiiRedaction:

    def _record(self, msg, *args):
        return logging.LogRecord("stockledger", logging.INFO, __file__, 1, msg, args, None)

    def test_redacts_emails_and_secrets(self):
        record = self._record("user %s sent token=%s", "jane@example.com", "abc123")

        assert PiiRedactionFilter().filter(record) is True
        assert record.getMessage() == "user [REDACTED_EMAIL] sent token=[REDACTED]"

    def test_redacts_bearer_headers(self):
        record = self._record("Authorization header Bearer eyJhbGciOi.abc")

        PiiRedactionFilter().filter(record)

        assert "eyJhbGciOi" not in record.getMessage()

    def test_leaves_stock_messages_alone(self):
        record = self._record("STOCK ADJUSTMENT: product=%s location=%s", 3, 1)

        PiiRedactionFilter().filter(record)

        assert record.getMessage() == "STOCK ADJUSTMENT: product=3 location=1"


@pytest.mark.parametrize("raw,expected", [
    ("debug", logging.DEBUG),
    (" WARNING ", logging.WARNING),
    (logging.ERROR, logging.ERROR),
    ("nonsense", logging.INFO),
    (None, logging.INFO),
])
def test_log_level_coercion(raw, expected):
    assert _coerce_level(raw) == expected
