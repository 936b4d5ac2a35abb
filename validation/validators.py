"""
Schema validation of reconstructed OAI-PMH documents

Validation is advisory: it runs after a document has been written, and
schema download failures skip it rather than failing the export.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

import requests
from lxml import etree

from oai.client import USER_AGENT

from .reports import ValidationReport, VALID, INVALID, SKIPPED

logger = logging.getLogger(__name__)

OAI_PMH_SCHEMA_URL = 'http://www.openarchives.org/OAI/2.0/OAI-PMH.xsd'


@dataclass(frozen=True)
class KnownIssue:
    """A schema violation known to be harmless and excluded from reports"""
    name: str
    description: str
    message: str

    def matches(self, error_message: str) -> bool:
        return self.message in error_message


KNOWN_ISSUES: Tuple[KnownIssue, ...] = (
    KnownIssue(
        name='rif-registry-objects-strict-wildcard',
        description=(
            "The OAI-PMH schema validates record metadata with a strict "
            "xs:any wildcard, and no schema for the RIF-CS namespace is loaded, "
            "so every registryObjects payload is rejected. The PROV endpoint's "
            "own responses fail the same way."
        ),
        message=(
            "Element '{http://ands.org.au/standards/rif-cs/registryObjects}registryObjects': "
            "No matching global element declaration available, but demanded by the strict wildcard"
        )
    ),
)


class SchemaValidator:
    """
    Validates documents against the published OAI-PMH XML schema

    The schema is downloaded on first use and reused for later documents.
    """

    def __init__(self,
                 schema_url: str = OAI_PMH_SCHEMA_URL,
                 timeout: float = 60.0,
                 known_issues: Sequence[KnownIssue] = KNOWN_ISSUES):
        self.schema_url = schema_url
        self.timeout = timeout
        self.known_issues = list(known_issues)
        self._schema: Optional[etree.XMLSchema] = None
        self._load_error: Optional[str] = None

    def load_schema(self) -> Optional[etree.XMLSchema]:
        """
        Fetch and compile the schema

        Returns:
            Compiled schema, or None if it could not be loaded
        """
        if self._schema is not None or self._load_error is not None:
            return self._schema

        try:
            response = requests.get(self.schema_url, timeout=self.timeout,
                                    headers={'User-Agent': USER_AGENT})
            response.raise_for_status()
            schema_doc = etree.fromstring(response.content, base_url=self.schema_url)
            self._schema = etree.XMLSchema(schema_doc)
            logger.info(f"Successfully loaded OAI-PMH schema from {self.schema_url}")
        except requests.exceptions.RequestException as e:
            self._load_error = f"Failed to load OAI-PMH schema: {e}"
            logger.warning(f"{self._load_error}. Skipping validation.")
        except (etree.XMLSyntaxError, etree.XMLSchemaParseError) as e:
            self._load_error = f"OAI-PMH schema could not be parsed: {e}"
            logger.warning(f"{self._load_error}. Skipping validation.")

        return self._schema

    def known_issue_for(self, message: str) -> Optional[KnownIssue]:
        for issue in self.known_issues:
            if issue.matches(message):
                return issue
        return None

    def validate(self, document, source: Optional[str] = None) -> ValidationReport:
        """
        Validate a parsed document

        Args:
            document: lxml element or element tree
            source: Name used in the report (e.g. the file path)

        Returns:
            ValidationReport; never raises for schema problems
        """
        schema = self.load_schema()
        if schema is None:
            return ValidationReport(status=SKIPPED, source=source, reason=self._load_error)

        schema.validate(document)

        errors: List[str] = []
        suppressed_names: List[str] = []
        suppressed = 0
        for entry in schema.error_log:
            issue = self.known_issue_for(entry.message)
            if issue is None:
                errors.append(f"line {entry.line}: {entry.message}")
                continue
            suppressed += 1
            if issue.name not in suppressed_names:
                suppressed_names.append(issue.name)

        report = ValidationReport(
            status=INVALID if errors else VALID,
            source=source,
            errors=errors,
            suppressed=suppressed,
            suppressed_issues=suppressed_names
        )

        if errors:
            logger.warning(f"{report.summary()}")
        else:
            logger.info(f"{report.summary()}")
        return report

    def validate_file(self, path: Union[str, Path]) -> ValidationReport:
        """Validate an XML file already written to disk"""
        logger.info(f"Validating XML file: {path}")
        document = etree.parse(str(path))
        return self.validate(document, source=str(path))
