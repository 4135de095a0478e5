import logging

from loguru import logger

from app.core.logging import InterceptHandler


def test_forwarded_records_keep_their_origin() -> None:
    records = []
    sink_id = logger.add(lambda message: records.append(message.record), level="DEBUG")

    std_logger = logging.getLogger("forum.tests.intercept")
    std_logger.handlers = [InterceptHandler()]
    std_logger.propagate = False
    std_logger.setLevel(logging.DEBUG)
    try:
        std_logger.warning("disk almost full")
    finally:
        logger.remove(sink_id)
        std_logger.handlers = []

    assert len(records) == 1
    record = records[0]
    assert record["message"] == "disk almost full"
    assert record["level"].name == "WARNING"
    assert record["function"] == "test_forwarded_records_keep_their_origin"
