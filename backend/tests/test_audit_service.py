"""Operations log: license and config gating, retention cap, dispatcher behavior."""

import unittest
from unittest import mock

from sqlalchemy.exc import SQLAlchemyError

from caja.extensions import db
from caja.models import OperationLogEntry
from caja.services import audit_service, settings_service
from caja.services.dispatch import AuditDispatcher


def test_not_written_without_license(db_session):
    audit_service.log_operation("SALE", "Venta sin licencia")
    assert db_session.query(OperationLogEntry).count() == 0


def test_written_when_licensed(db_session, licensed):
    audit_service.log_operation(
        "PRODUCT_UPDATED", "Precio cambiado",
        entity_type="product", entity_id=7,
        before={"price_cents": 100}, after={"price_cents": 200},
    )
    entry = db_session.query(OperationLogEntry).filter_by(operation_type="PRODUCT_UPDATED").one()
    assert entry.actor == "Sistema"
    assert entry.to_dict()["before"] == {"price_cents": 100}
    assert entry.entity_id == 7


def test_logging_disabled_flag(db_session, licensed):
    settings_service.set_config(settings_service.LOGGING_ENABLED_KEY, "false")
    before = db_session.query(OperationLogEntry).count()
    audit_service.log_operation("SALE", "No se guarda")
    assert db_session.query(OperationLogEntry).count() == before


def test_retention_keeps_newest(app, db_session, licensed):
    app.config["OPERATION_LOG_RETENTION"] = 5
    try:
        for i in range(8):
            audit_service.log_operation("SALE", f"Venta {i}")
    finally:
        app.config["OPERATION_LOG_RETENTION"] = 1000

    rows = audit_service.list_operations(limit=100)
    assert len(rows) == 5
    assert rows[0]["description"] == "Venta 7"
    assert rows[-1]["description"] == "Venta 3"


def test_clear_operations(db_session, licensed):
    audit_service.log_operation("SALE", "Venta")
    audit_service.clear_operations()
    rows = audit_service.list_operations()
    assert [r["operation_type"] for r in rows] == ["LOG_CLEARED"]


def test_writer_failure_is_swallowed(db_session, licensed):
    with mock.patch.object(db.session, "flush", side_effect=SQLAlchemyError("boom")):
        assert audit_service.write_operation({
            "operation_type": "SALE",
            "description": "x",
            "actor": "Sistema",
        }) is False


class AuditDispatcherTests(unittest.TestCase):
    def _app(self, async_mode):
        app = mock.MagicMock()
        app.config = {"AUDIT_LOG_ASYNC": async_mode}
        app.extensions = {}
        return app

    def test_sync_mode_delivers_inline(self):
        written = []
        dispatcher = AuditDispatcher()
        dispatcher.init_app(self._app(False), written.append)

        dispatcher.publish({"operation_type": "SALE"})

        self.assertEqual(written, [{"operation_type": "SALE"}])

    def test_writer_errors_are_logged_not_raised(self):
        app = self._app(False)
        dispatcher = AuditDispatcher()
        dispatcher.init_app(app, mock.Mock(side_effect=RuntimeError("down")))

        dispatcher.publish({"operation_type": "SALE"})

        app.logger.exception.assert_called_once()

    def test_async_mode_drains_queue(self):
        written = []
        dispatcher = AuditDispatcher()
        dispatcher.init_app(self._app(True), written.append)

        for i in range(3):
            dispatcher.publish({"n": i})
        dispatcher.flush()
        dispatcher.stop()

        self.assertEqual([p["n"] for p in written], [0, 1, 2])
