import json
import logging
from unittest.mock import MagicMock

from app.core.logging import setup_logging
from app.schemas.alert import AlertCreate
from app.services.alerts import create_alert_if_needed


def _skip_records(caplog):
    return [record for record in caplog.records if record.getMessage() == "Alert skipped"]


def test_invalid_params_logged_as_warning(caplog):
    caplog.set_level(logging.INFO, logger="app.services.alerts")

    create_alert_if_needed(MagicMock(), AlertCreate(group_id="g-1"), actor_user_id="user-1")

    [record] = _skip_records(caplog)
    assert record.levelno == logging.WARNING
    assert record.reason == "invalid_params"
    assert record.group_id == "g-1"


def test_duplicate_logged_as_info(caplog, db_session, actor, care_ids, make_alert):
    make_alert()
    caplog.set_level(logging.INFO, logger="app.services.alerts")

    create_alert_if_needed(
        db_session,
        AlertCreate(**care_ids, type="agreement_declined", severity="tier2", title="Declined"),
        actor_user_id=actor.id,
    )

    [record] = _skip_records(caplog)
    assert record.levelno == logging.INFO
    assert record.reason == "duplicate_open"
    assert record.alert_type == "agreement_declined"


def test_store_failure_logged_as_error(caplog, actor, care_ids):
    db = MagicMock()
    db.scalar.side_effect = RuntimeError("connection reset")
    caplog.set_level(logging.INFO, logger="app.services.alerts")

    create_alert_if_needed(
        db,
        AlertCreate(**care_ids, type="agreement_declined", severity="tier2", title="Declined"),
        actor_user_id=actor.id,
    )

    errors = [record for record in caplog.records if record.levelno == logging.ERROR]
    assert errors
    assert errors[0].exc_info is not None
    db.rollback.assert_called_once()


def test_setup_logging_emits_json(capsys):
    setup_logging("INFO")
    try:
        logging.getLogger("carecircle.test").info("Alert created", extra={"alert_id": "a-1"})
        line = capsys.readouterr().err.strip().splitlines()[-1]
        payload = json.loads(line)
        assert payload["message"] == "Alert created"
        assert payload["alert_id"] == "a-1"
        assert payload["levelname"] == "INFO"
    finally:
        root_logger = logging.getLogger()
        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
