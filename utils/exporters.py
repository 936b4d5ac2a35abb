"""
Export of harvest results to dated JSON and XML snapshots

File writes are independent of each other: a failure part way through
leaves whatever was already written on disk.
"""

import logging
import json
from typing import List, Dict, Any, Optional, Iterable
from dataclasses import dataclass
from pathlib import Path
from datetime import date

from oai.models import Record
from oai.replay import response_path

from .reconstruct import reconstruct, reconstruct_partitions, serialize, count_records
from .sorting import partition_records, sort_records

logger = logging.getLogger(__name__)


@dataclass
class ExportConfig:
    """Configuration for export operations"""
    output_dir: str = "."
    split: bool = False
    date: Optional[str] = None  # YYYY-MM-DD, defaults to today
    base_name: str = "prov-oai"

    def __post_init__(self):
        if self.date is None:
            self.date = date.today().strftime('%Y-%m-%d')


def build_filename(config: ExportConfig, extension: str, category: Optional[str] = None) -> str:
    """
    Dated output filename

    Example:
        prov-oai-2024-05-01.json, prov-oai-agencies-2024-05-01.xml
    """
    name = config.base_name if category is None else f"{config.base_name}-{category}"
    return f"{name}-{config.date}.{extension}"


class BaseExporter:
    """Base class for snapshot exporters"""

    extension = ""

    def __init__(self, config: ExportConfig):
        self.config = config
        self.exported_count = 0

    def export(self, items) -> List[str]:
        """Export and return the written file paths"""
        raise NotImplementedError

    def _get_output_path(self, category: Optional[str] = None) -> str:
        output_dir = Path(self.config.output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        return str(output_dir / build_filename(self.config, self.extension, category))


class JSONExporter(BaseExporter):
    """Export records to a pretty-printed JSON array, sorted by identifier"""

    extension = "json"

    def export(self, records: Iterable[Record]) -> List[str]:
        sorted_records = sort_records(records)

        if not self.config.split:
            return [self._write(sorted_records, self._get_output_path())]

        return [
            self._write(group, self._get_output_path(category))
            for category, group in partition_records(sorted_records).items()
        ]

    def _write(self, records: List[Record], output_path: str) -> str:
        records_list: List[Dict[str, Any]] = [record.to_dict() for record in records]

        with open(output_path, 'w', encoding='utf-8') as jsonfile:
            json.dump(records_list, jsonfile, indent=2, ensure_ascii=False)

        self.exported_count += len(records_list)
        logger.info(f"Sorted records saved to {output_path} ({len(records_list)} records)")
        return output_path


class XMLExporter(BaseExporter):
    """Export raw pages as one combined, sorted OAI-PMH document"""

    extension = "xml"

    def export(self, raw_pages: Iterable[str]) -> List[str]:
        raw_pages = list(raw_pages)

        if not self.config.split:
            return [self._write(reconstruct(raw_pages), self._get_output_path())]

        return [
            self._write(document, self._get_output_path(category))
            for category, document in reconstruct_partitions(raw_pages).items()
        ]

    def _write(self, document, output_path: str) -> str:
        with open(output_path, 'wb') as xmlfile:
            xmlfile.write(serialize(document))

        record_count = count_records(document)
        self.exported_count += record_count
        logger.info(
            f"Sorted, pretty-printed combined XML without resumption tokens saved to "
            f"{output_path} ({record_count} records)"
        )
        return output_path


class RawPageExporter:
    """Save raw response pages exactly as received, for later replay"""

    def __init__(self, directory: str):
        self.directory = Path(directory)

    def export(self, raw_pages: Iterable[str]) -> List[str]:
        self.directory.mkdir(parents=True, exist_ok=True)

        paths = []
        for index, raw in enumerate(raw_pages, 1):
            path = response_path(self.directory, index)
            with open(path, 'w', encoding='utf-8', newline='') as f:
                f.write(raw)
            paths.append(str(path))

        logger.info(f"Raw XML responses saved to {self.directory} ({len(paths)} files)")
        return paths
