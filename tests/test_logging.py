import logging

from planning_poker.core.logging import DEFAULT_FORMAT, InstanceFilter, setup_logging


def make_record(message="room ABC12 revealed"):
    return logging.LogRecord("planning_poker.test", logging.INFO, __file__, 1, message, None, None)


def test_instance_filter_tags_records():
    record = make_record()

    assert InstanceFilter("instance-a").filter(record) is True
    assert record.instance == "instance-a"

    line = logging.Formatter(DEFAULT_FORMAT).format(record)
    assert "| instance-a | planning_poker.test | room ABC12 revealed" in line


def test_instance_filter_keeps_existing_tag():
    record = make_record()
    record.instance = "instance-b"

    InstanceFilter("instance-a").filter(record)

    assert record.instance == "instance-b"


def test_setup_logging_tags_existing_handlers_once(monkeypatch):
    root_logger = logging.getLogger()
    handler = logging.NullHandler()
    monkeypatch.setattr(root_logger, "handlers", [handler])
    monkeypatch.setattr(root_logger, "level", root_logger.level)
    monkeypatch.setenv("LOG_LEVEL", "debug")

    setup_logging("instance-a")
    setup_logging("instance-a")

    assert [type(f) for f in handler.filters] == [InstanceFilter]
    assert root_logger.level == logging.DEBUG
    assert logging.getLogger("redis").level == logging.WARNING
