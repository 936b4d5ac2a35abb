import json

import pytest
from lxml import etree

from oai.harvester import Harvester
from oai.models import Record
from oai.parsing import NS
from oai.replay import ReplayClient
from utils.exporters import (
    ExportConfig, JSONExporter, RawPageExporter, XMLExporter, build_filename
)

from oai_samples import ScriptedSource

DATE = '2024-05-01'


@pytest.fixture
def harvest(pages, sleeps):
    return Harvester(ScriptedSource(pages)).run()


def load_json(path):
    with open(path, encoding='utf-8') as f:
        return json.load(f)


def xml_ids(path):
    return etree.parse(str(path)).xpath('//oai:record/oai:header/oai:identifier/text()', namespaces=NS)


def test_filenames():
    config = ExportConfig(date=DATE)
    assert build_filename(config, 'json') == 'prov-oai-2024-05-01.json'
    assert build_filename(config, 'xml', 'agencies') == 'prov-oai-agencies-2024-05-01.xml'


def test_default_date_is_today():
    assert len(ExportConfig().date) == len('YYYY-MM-DD')


def test_json_export_sorted(tmp_path, harvest):
    [path] = JSONExporter(ExportConfig(output_dir=str(tmp_path), date=DATE)).export(harvest.records)

    assert path == str(tmp_path / 'prov-oai-2024-05-01.json')
    data = load_json(path)
    assert [r['identifier'] for r in data] == [
        'PROV VA 1', 'PROV VA 2', 'PROV VA 10', 'PROV VF 1', 'PROV VPRS 5'
    ]
    assert data[0] == {
        'identifier': 'PROV VA 1',
        'datestamp': '2024-01-01',
        'title': 'Title of PROV VA 1',
        'description': 'Full description'
    }


def test_json_export_split(tmp_path, harvest):
    exporter = JSONExporter(ExportConfig(output_dir=str(tmp_path), split=True, date=DATE))
    paths = exporter.export(harvest.records)

    assert [p.rsplit('/', 1)[-1] for p in paths] == [
        'prov-oai-agencies-2024-05-01.json',
        'prov-oai-functions-2024-05-01.json',
        'prov-oai-series-2024-05-01.json',
    ]
    assert [len(load_json(p)) for p in paths] == [3, 1, 1]
    assert exporter.exported_count == 5


def test_json_null_fields_and_unicode(tmp_path):
    records = [Record(identifier='PROV VA 7', title='Ōtautahi Office')]
    [path] = JSONExporter(ExportConfig(output_dir=str(tmp_path), date=DATE)).export(records)

    with open(path, encoding='utf-8') as f:
        text = f.read()
    assert 'Ōtautahi' in text
    assert load_json(path)[0]['description'] is None


def test_output_dir_created(tmp_path):
    target = tmp_path / 'nested' / 'out'
    JSONExporter(ExportConfig(output_dir=str(target), date=DATE)).export([])
    assert (target / 'prov-oai-2024-05-01.json').exists()


def test_xml_export(tmp_path, harvest):
    [path] = XMLExporter(ExportConfig(output_dir=str(tmp_path), date=DATE)).export(harvest.raw_pages)

    assert path.endswith('prov-oai-2024-05-01.xml')
    assert xml_ids(path) == ['PROV VA 1', 'PROV VA 2', 'PROV VA 10', 'PROV VF 1', 'PROV VPRS 5']
    with open(path, encoding='utf-8') as f:
        assert 'resumptionToken' not in f.read()


def test_xml_export_split(tmp_path, harvest):
    paths = XMLExporter(ExportConfig(output_dir=str(tmp_path), split=True, date=DATE)).export(harvest.raw_pages)
    assert [len(xml_ids(p)) for p in paths] == [3, 1, 1]


def test_json_and_xml_order_agree(tmp_path, harvest):
    config = ExportConfig(output_dir=str(tmp_path), date=DATE)
    [json_path] = JSONExporter(config).export(harvest.records)
    [xml_path] = XMLExporter(config).export(harvest.raw_pages)

    assert [r['identifier'] for r in load_json(json_path)] == xml_ids(xml_path)


def test_raw_dump_then_replay_reproduces_outputs(tmp_path, harvest, sleeps):
    RawPageExporter(tmp_path / 'raw').export(harvest.raw_pages)
    replayed = Harvester(ReplayClient(tmp_path / 'raw')).run()

    assert replayed.records == harvest.records
    assert replayed.raw_pages == harvest.raw_pages

    live_dir = ExportConfig(output_dir=str(tmp_path / 'live'), date=DATE)
    replay_dir = ExportConfig(output_dir=str(tmp_path / 'replay'), date=DATE)
    [live_xml] = XMLExporter(live_dir).export(harvest.raw_pages)
    [replay_xml] = XMLExporter(replay_dir).export(replayed.raw_pages)

    with open(live_xml, 'rb') as a, open(replay_xml, 'rb') as b:
        assert a.read() == b.read()
