import json
import logging

from report_sync.utils.logger import ContextFormatter, JSONFormatter, get_logger


def _record(extra_data=None):
    record = logging.LogRecord("report_sync.test", logging.INFO, __file__, 10, "Sync finished", None, None)
    if extra_data is not None:
        record.extra_data = extra_data
    return record


def test_json_formatter_merges_structured_fields():
    payload = json.loads(JSONFormatter().format(_record({"keys": 3, "policy": "replace_snapshot"})))
    assert payload["message"] == "Sync finished"
    assert payload["level"] == "INFO"
    assert payload["keys"] == 3
    assert payload["policy"] == "replace_snapshot"


def test_context_formatter_appends_pairs():
    formatter = ContextFormatter(fmt="%(levelname)s %(message)s")
    assert formatter.format(_record({"keys": 3})) == "INFO Sync finished | keys=3"
    assert formatter.format(_record()) == "INFO Sync finished"


def test_get_logger_prefixes_package_and_drops_none():
    logger = get_logger("tests.logger")
    assert logger.logger.name == "report_sync.tests.logger"

    records = []
    handler = logging.Handler()
    handler.emit = records.append
    logger.logger.addHandler(handler)
    logger.logger.setLevel(logging.INFO)
    try:
        logger.info("hello", kept=1, dropped=None)
    finally:
        logger.logger.removeHandler(handler)

    assert records[-1].extra_data == {"kept": 1}
