"""Flask CLI commands."""

from caja.models import OperationLogEntry
from caja.services import license_service

from conftest import POOL_CODES


def test_generate_and_list_codes(app, db_session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=['license', 'generate-codes', '--count', '2'])
    assert result.exit_code == 0
    assert "PASS Added 2 codes" in result.output

    pool = license_service.load_activation_codes()
    assert len(pool) == len(POOL_CODES) + 2
    assert pool[:len(POOL_CODES)] == POOL_CODES

    result = runner.invoke(args=['license', 'list-codes'])
    assert f"{len(pool)} unused activation code(s)" in result.output


def test_generate_rejects_non_positive_count(app, db_session):
    result = app.test_cli_runner().invoke(args=['license', 'generate-codes', '--count', '0'])
    assert result.exit_code != 0


def test_license_status(app, db_session):
    runner = app.test_cli_runner()
    assert "NO LICENSE" in runner.invoke(args=['license', 'status']).output
    license_service.activate_license(POOL_CODES[0])
    assert "ACTIVE until" in runner.invoke(args=['license', 'status']).output


def test_prune_log(app, db_session):
    for i in range(5):
        db_session.add(OperationLogEntry(operation_type="SALE", description=f"venta {i}"))
    db_session.commit()

    result = app.test_cli_runner().invoke(args=['maintenance', 'prune-log', '--keep', '2'])

    assert "Deleted 3 operations log entries." in result.output
    assert db_session.query(OperationLogEntry).count() == 2
