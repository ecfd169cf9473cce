"""Global resilience and error-handler registration.

Synopsis:
Registers teardown and error handlers for database rollback safety and maps
ledger errors to JSON responses.

Glossary:
- Resilience handler: Global request teardown/error behavior for known failures.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import DBAPIError, OperationalError, SQLAlchemyError

from .extensions import db
from .services.stock_adjustment import InsufficientStockError, NotConfiguredError, PersistenceError
from .services.stock_reconciliation import AuditUnavailableError
from .utils.api_responses import APIResponse

logger = logging.getLogger(__name__)


def _safe_rollback() -> None:
    try:
        db.session.rollback()
    except SQLAlchemyError:
        logger.warning("Session rollback failed during error handling", exc_info=True)


def register_resilience_handlers(app) -> None:
    """Install global DB rollback and JSON handlers for ledger failures.

    The ``NotConfiguredError`` (404) and ``InsufficientStockError`` (409)
    handlers serve write routes mounted by the host application; the bundled
    /api/stock routes are read-only.
    """

    @app.teardown_request
    def _rollback_on_error(exc):
        if exc is not None:
            _safe_rollback()

    @app.errorhandler(OperationalError)
    @app.errorhandler(DBAPIError)
    def _db_error_handler(error):
        _safe_rollback()
        app.logger.error("Database unavailable: %s", error.__class__.__name__)
        return APIResponse.unavailable("Service temporarily unavailable. Please try again shortly.")

    @app.errorhandler(AuditUnavailableError)
    @app.errorhandler(PersistenceError)
    def _ledger_unavailable_handler(error):
        _safe_rollback()
        return APIResponse.unavailable(str(error))

    @app.errorhandler(NotConfiguredError)
    def _not_configured_handler(error):
        return APIResponse.not_found("Stock level", message=str(error), errors={
            'product_id': error.product_id,
            'location_id': error.location_id,
        })

    @app.errorhandler(InsufficientStockError)
    def _insufficient_stock_handler(error):
        return APIResponse.conflict(str(error), errors={
            'product_id': error.product_id,
            'location_id': error.location_id,
            'old_quantity': error.old_quantity,
            'new_quantity': error.new_quantity,
        })
