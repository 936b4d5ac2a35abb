import json
import logging

from utils.logging_config import (
    JSONFormatter, get_contextual_logger, log_api_request, log_harvest_progress
)


def make_record(**extra):
    record = logging.LogRecord('oai.harvester', logging.INFO, __file__, 10, 'Harvest started', None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_context_fields():
    entry = json.loads(JSONFormatter().format(make_record(ctx_source='ReplayClient', other='x')))

    assert entry['message'] == 'Harvest started'
    assert entry['level'] == 'INFO'
    assert entry['source'] == 'ReplayClient'
    assert 'other' not in entry


def test_contextual_logger_adds_context(caplog):
    logger = get_contextual_logger('tests.context', source='OAIClient')

    with caplog.at_level(logging.INFO, logger='tests.context'):
        log_harvest_progress(logger, 2, 100, 200, 'token')

    [record] = caplog.records
    assert record.getMessage() == 'Processed request 2: 100/200 processed records'
    assert record.ctx_source == 'OAIClient'
    assert record.ctx_harvest_has_token is True


def test_failed_request_logged_as_error(caplog):
    logger = logging.getLogger('tests.api')

    with caplog.at_level(logging.INFO, logger='tests.api'):
        log_api_request(logger, 'GET', 'http://example.org', 503, 0.2, error='HTTP 503')

    [record] = caplog.records
    assert record.levelno == logging.ERROR
    assert record.ctx_api_success is False
    assert 'HTTP 503' in record.getMessage()
