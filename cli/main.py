"""
Command-line interface for the PROV OAI-PMH harvester
"""

import click
import logging
from pathlib import Path
from dotenv import load_dotenv
from lxml import etree
from tqdm import tqdm

from oai import __version__
from oai.client import HarvestError, OAIClient
from oai.harvester import Harvester
from oai.models import TerminationReason
from oai.replay import ReplayClient
from utils.config import CONFIG_FILE, HarvestConfig
from utils.exporters import ExportConfig, JSONExporter, RawPageExporter, XMLExporter
from utils.logging_config import init_from_environment
from validation.validators import SchemaValidator

logger = logging.getLogger(__name__)

TERMINATION_MESSAGES = {
    TerminationReason.COMPLETE: "✅ Harvest completed",
    TerminationReason.EXHAUSTED: "✅ Replay completed (no more saved XML files)",
    TerminationReason.PROTOCOL_ERROR: "⚠️  Harvest stopped early by an OAI-PMH error",
    TerminationReason.MAX_PAGES: "⚠️  Harvest stopped at the page limit",
}


@click.group()
@click.option('--debug', is_flag=True, help='Enable debug logging and full tracebacks')
@click.version_option(__version__, '-v', '--version',
                      prog_name='PROV OAI Harvester',
                      message='%(prog)s version %(version)s')
@click.pass_context
def cli(ctx, debug):
    """PROV OAI-PMH harvester - dated JSON and XML snapshots of the PROV registry"""

    if debug:
        root_logger = logging.getLogger()
        root_logger.setLevel(logging.DEBUG)
        # handlers carry the LOG_LEVEL threshold too
        for handler in root_logger.handlers:
            handler.setLevel(logging.DEBUG)

    ctx.ensure_object(dict)
    ctx.obj['debug'] = debug


@cli.command()
@click.option('--save-raw-xml', '-s', 'save_raw_xml', type=click.Path(file_okay=False),
              help='Save raw XML responses to the specified directory')
@click.option('--use-saved-raw-xml', '-u', 'use_saved_raw_xml', type=click.Path(file_okay=False),
              help='Use saved raw XML from the specified directory instead of fetching')
@click.option('--split', is_flag=True,
              help='Split output into separate files for agencies, functions, and series')
@click.option('--output-dir', '-o', type=click.Path(file_okay=False),
              help='Directory for JSON and XML output (default: OAI_OUTPUT_DIR or .)')
@click.option('--interval', type=float, help='Seconds between live requests')
@click.option('--max-pages', type=int, help='Stop after this many pages (0 = no limit)')
@click.option('--no-validate', is_flag=True, help='Skip OAI-PMH schema validation')
@click.pass_context
def harvest(ctx, save_raw_xml, use_saved_raw_xml, split, output_dir, interval, max_pages, no_validate):
    """Harvest all records and write sorted JSON and XML snapshots"""

    debug = ctx.obj.get('debug') if ctx.obj else False

    try:
        config = HarvestConfig.from_environment()
        if output_dir:
            config.output_dir = output_dir
        if interval is not None:
            config.request_interval = interval
        if max_pages is not None:
            config.max_pages = max_pages or None

        if use_saved_raw_xml:
            click.echo(f"📂 Using saved XML from directory: {use_saved_raw_xml}")
            source = ReplayClient(use_saved_raw_xml)
        else:
            click.echo(f"🌐 Harvesting from: {config.base_url}")
            source = OAIClient(config.base_url, timeout=config.request_timeout)

        with source, tqdm(desc="Harvesting records", unit="record") as pbar:
            def on_page(progress):
                pbar.update(progress.page_records)
                pbar.set_postfix({"page": progress.page, "total": f"{progress.total_records:,}"})

            harvester = Harvester(
                source,
                request_interval=config.request_interval,
                max_pages=config.max_pages,
                progress_callback=on_page
            )
            result = harvester.run()

    except HarvestError as e:
        click.echo(f"❌ Harvest failed: {e}", err=True)
        if debug:
            raise
        ctx.exit(1)

    click.echo(f"\n{TERMINATION_MESSAGES[result.reason]}: "
               f"{result.total_records:,} records from {result.pages_processed} page(s)")
    if result.reason is TerminationReason.PROTOCOL_ERROR:
        click.echo(f"   Error encountered: [{result.error_code}] {result.error_message}")

    export_config = ExportConfig(output_dir=config.output_dir, split=split)

    try:
        for path in JSONExporter(export_config).export(result.records):
            click.echo(f"💾 Sorted records saved to {path}")

        if save_raw_xml:
            if use_saved_raw_xml:
                click.echo("⚠️  --save-raw-xml ignored when replaying saved XML")
            else:
                RawPageExporter(save_raw_xml).export(result.raw_pages)
                click.echo(f"💾 Raw XML responses saved to {save_raw_xml}")

        xml_paths = XMLExporter(export_config).export(result.raw_pages)
        for path in xml_paths:
            click.echo(f"💾 Combined XML saved to {path}")

    except OSError as e:
        click.echo(f"❌ Export failed: {e}", err=True)
        if debug:
            raise
        ctx.exit(1)

    if not no_validate:
        validator = SchemaValidator(timeout=config.request_timeout)
        for path in xml_paths:
            click.echo(validator.validate_file(path).generate_console_report())

    click.echo("\n📋 Sample of retrieved records:")
    for record in result.records[:5]:
        click.echo(f"ID: {record.identifier}, Title: {record.title}")


@cli.command()
@click.argument('xml_file', type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def validate(ctx, xml_file):
    """Validate an XML snapshot against the OAI-PMH schema"""

    try:
        config = HarvestConfig.from_environment()
        report = SchemaValidator(timeout=config.request_timeout).validate_file(Path(xml_file))
    except (HarvestError, etree.XMLSyntaxError) as e:
        click.echo(f"❌ Validation failed: {e}", err=True)
        if ctx.obj and ctx.obj.get('debug'):
            raise
        ctx.exit(1)

    click.echo(report.generate_console_report())


def main():
    """Main entry point"""
    load_dotenv(CONFIG_FILE)
    init_from_environment()
    cli()


if __name__ == '__main__':
    main()
