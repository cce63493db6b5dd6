import json
import logging
from pathlib import Path

from invpro.config import get_app_paths
from invpro.logging_config import JsonFormatter


def _record(msg: str, extra=None) -> logging.LogRecord:
    logger = logging.getLogger("invpro.ledger")
    return logger.makeRecord(logger.name, logging.INFO, __file__, 1, msg, (), None, extra=extra)


def test_json_lines_carry_extra_context():
    line = JsonFormatter().format(_record("purchase_created", {"order_id": "abc123xyz", "product_id": "p1"}))

    payload = json.loads(line)
    assert payload["logger"] == "invpro.ledger"
    assert payload["message"] == "purchase_created"
    assert payload["context"] == {"order_id": "abc123xyz", "product_id": "p1"}


def test_json_lines_without_extra_have_no_context():
    payload = json.loads(JsonFormatter().format(_record("store_loaded")))
    assert "context" not in payload


def test_app_paths_follow_home_override(tmp_path: Path):
    paths = get_app_paths(env={"INVPRO_HOME": str(tmp_path / "data")})

    assert paths.base_dir == tmp_path / "data"
    assert paths.db_path == tmp_path / "data" / "inventory.db"
    assert paths.logs_dir.is_dir()
