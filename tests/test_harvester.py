import pytest

from oai.client import ResponseParseError, TransportError
from oai.harvester import TRANSITIONS, Harvester
from oai.models import HarvestEvent, HarvestState, TerminationReason
from oai.replay import ReplayClient
from utils.exporters import RawPageExporter

from oai_samples import ScriptedSource, page_xml, record_xml


def ids(records):
    return [record.identifier for record in records]


def test_full_harvest_follows_tokens(pages, sleeps):
    source = ScriptedSource(pages)
    result = Harvester(source).run()

    assert result.reason is TerminationReason.COMPLETE
    assert result.pages_processed == 3
    assert source.requested_tokens == [None, 'token-1', 'token-2']
    # page order, unsorted
    assert ids(result.records) == ['PROV VA 2', 'PROV VA 1', 'PROV VF 1', 'PROV VPRS 5', 'PROV VA 10']
    assert result.raw_pages == pages
    assert not result.is_partial


def test_live_source_is_paced_between_requests(pages, sleeps):
    Harvester(ScriptedSource(pages), request_interval=2.0).run()
    assert sleeps == [2.0, 2.0]


def test_replay_is_not_paced(tmp_path, pages, sleeps):
    RawPageExporter(tmp_path).export(pages)
    result = Harvester(ReplayClient(tmp_path), request_interval=2.0).run()

    assert sleeps == []
    assert result.total_records == 5


def test_zero_interval_skips_sleep(pages, sleeps):
    Harvester(ScriptedSource(pages), request_interval=0).run()
    assert sleeps == []


def test_replay_runs_out_of_files(tmp_path, pages, sleeps):
    RawPageExporter(tmp_path).export(pages[:2])
    result = Harvester(ReplayClient(tmp_path)).run()

    assert result.reason is TerminationReason.EXHAUSTED
    assert result.pages_processed == 2
    assert result.total_records == 4


def test_empty_token_completes_harvest(sleeps):
    source = ScriptedSource([page_xml([record_xml('PROV VA 1')], token='')])
    result = Harvester(source).run()

    assert result.reason is TerminationReason.COMPLETE
    assert source.requested_tokens == [None]


def test_whitespace_token_completes_harvest(sleeps):
    source = ScriptedSource([page_xml([record_xml('PROV VA 1')], token='  \n ')])
    assert Harvester(source).run().reason is TerminationReason.COMPLETE


def test_protocol_error_on_first_page(sleeps):
    source = ScriptedSource([page_xml([], error='The value of the resumptionToken argument is invalid')])
    result = Harvester(source).run()

    assert result.reason is TerminationReason.PROTOCOL_ERROR
    assert result.error_code == 'badResumptionToken'
    assert result.error_message == 'The value of the resumptionToken argument is invalid'
    assert result.records == []
    assert result.raw_pages == []
    assert result.pages_processed == 0
    assert result.is_partial


def test_protocol_error_keeps_earlier_pages(pages, sleeps):
    error_page = page_xml([], error='Resumption token expired')
    result = Harvester(ScriptedSource([pages[0], error_page])).run()

    assert result.reason is TerminationReason.PROTOCOL_ERROR
    assert ids(result.records) == ['PROV VA 2', 'PROV VA 1']
    assert result.raw_pages == [pages[0]]
    assert result.pages_processed == 1


def test_no_records_match(sleeps):
    result = Harvester(ScriptedSource([page_xml([], error='No records', error_code='noRecordsMatch')])).run()
    assert result.error_code == 'noRecordsMatch'


def test_page_limit(pages, sleeps):
    source = ScriptedSource(pages)
    result = Harvester(source, max_pages=2).run()

    assert result.reason is TerminationReason.MAX_PAGES
    assert result.pages_processed == 2
    assert result.total_records == 4
    assert source.requested_tokens == [None, 'token-1']
    assert sleeps == [2.0]


def test_zero_page_limit_means_unbounded(pages, sleeps):
    assert Harvester(ScriptedSource(pages), max_pages=0).run().reason is TerminationReason.COMPLETE


def test_progress_reported_per_page(pages, sleeps):
    progress = []
    Harvester(ScriptedSource(pages), progress_callback=progress.append).run()

    assert [(p.page, p.page_records, p.total_records) for p in progress] == [
        (1, 2, 2), (2, 2, 4), (3, 1, 5)
    ]


def test_truncated_page_keeps_earlier_records(pages, sleeps):
    truncated = pages[1].replace('</OAI-PMH>', '')
    result = Harvester(ScriptedSource([pages[0], truncated, pages[2]])).run()

    assert result.reason is TerminationReason.COMPLETE
    assert ids(result.records) == ['PROV VA 2', 'PROV VA 1', 'PROV VF 1', 'PROV VPRS 5', 'PROV VA 10']
    assert result.raw_pages[1] == truncated


def test_garbled_page_ends_harvest_with_earlier_records(pages, sleeps):
    result = Harvester(ScriptedSource([pages[0], '<OAI-PMH>broken'])).run()

    assert result.reason is TerminationReason.COMPLETE
    assert ids(result.records) == ['PROV VA 2', 'PROV VA 1']


def test_unrecoverable_page_aborts(pages, sleeps):
    with pytest.raises(ResponseParseError):
        Harvester(ScriptedSource([pages[0], 'not xml at all'])).run()


def test_transport_error_propagates(sleeps):
    class FailingSource(ScriptedSource):
        def next_page(self, previous_token=None):
            raise TransportError('HTTP 500')

    with pytest.raises(TransportError):
        Harvester(FailingSource([])).run()


def test_each_run_starts_fresh(pages, sleeps):
    harvester = Harvester(ScriptedSource(pages + pages))
    first = harvester.run()
    second = harvester.run()

    assert first.total_records == second.total_records == 5


@pytest.mark.parametrize('state, event, expected', sorted(
    ((s, e, t) for (s, e), t in TRANSITIONS.items()), key=lambda item: (item[0].value, item[1].value)
))
def test_valid_transitions(state, event, expected):
    assert Harvester.transition(state, event) is expected


@pytest.mark.parametrize('state, event', [
    (HarvestState.AWAITING_PAGE, HarvestEvent.TOKEN_FOUND),
    (HarvestState.PARSED, HarvestEvent.NEXT_REQUEST),
    (HarvestState.CONTINUING, HarvestEvent.PAGE_RECEIVED),
    (HarvestState.DONE, HarvestEvent.NEXT_REQUEST),
    (HarvestState.ERROR, HarvestEvent.PAGE_RECEIVED),
])
def test_invalid_transitions(state, event):
    with pytest.raises(ValueError):
        Harvester.transition(state, event)
