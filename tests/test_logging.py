import json

from app.core.logging import configure_logging, get_logger


def test_logger_filters_by_level_and_masks_secrets(capsys):
    configure_logging("INFO", json_output=True)
    log = get_logger("tests.logging").bind(request_id="r1")

    log.debug("hidden_event")
    log.info("login_failed", password="Secret123!", user_id="u1")

    lines = [line for line in capsys.readouterr().out.splitlines() if line.strip()]
    assert len(lines) == 1

    entry = json.loads(lines[0])
    assert entry["event"] == "login_failed"
    assert entry["level"] == "info"
    assert entry["request_id"] == "r1"
    assert entry["user_id"] == "u1"
    assert entry["password"] == "Se***3!"
