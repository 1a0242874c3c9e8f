"""Command-line interface for provider ingestion and agent sessions."""

import json
import logging
import sys
from typing import Any, Dict, Optional

import click
import pandas as pd

from .models.core import AdapterType, ParseResult
from .sessions.base import AgentSessionStore, serialize_session
from .sessions.factory import create_store_from_config
from .utils.adapter_registry import AdapterRegistry, create_default_registry
from .utils.config_manager import ConfigManager
from .utils.error_handler import ProvidersError, configure_logging


logger = logging.getLogger(__name__)


class ProvidersCLI:
    """Wires configuration, registry and session store for CLI commands"""

    def __init__(self, config_path: Optional[str] = None):
        self.config_manager = ConfigManager(config_path)
        self.config = self.config_manager.load_config()
        self.registry: AdapterRegistry = create_default_registry(self.config)
        self._store: Optional[AgentSessionStore] = None

    @property
    def store(self) -> AgentSessionStore:
        if self._store is None:
            self._store = create_store_from_config(self.config.session_store)
        return self._store

    def parse_statement_file(self, file_path: str, country: str, provider: str) -> Dict[str, Any]:
        """Parse every row of a statement export with one adapter"""
        adapter = self.registry.get_adapter(country, provider, AdapterType.STATEMENT)
        if adapter is None:
            raise click.ClickException(f"No statement adapter registered for {country}/{provider}")

        try:
            df = pd.read_csv(file_path, dtype=str, keep_default_na=False)
        except pd.errors.EmptyDataError:
            raise click.ClickException(f"Statement file is empty: {file_path}")
        headers = [str(column) for column in df.columns]
        if not adapter.validate_headers(headers):
            raise click.ClickException(f"Unrecognized statement headers: {', '.join(headers)}")

        results = []
        for row in df.itertuples(index=False):
            results.append(adapter.parse_row(list(row)))

        parsed = [r for r in results if r.success]
        return {
            'results': results,
            'total_rows': len(results),
            'parsed_rows': len(parsed),
            'failed_rows': len(results) - len(parsed),
        }


def _echo_result(result: ParseResult) -> None:
    click.echo(json.dumps(result.to_dict(), default=str))


@click.group()
@click.option('--config', '-c', help='Path to configuration file')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--json-logs', is_flag=True, help='Emit logs as JSON lines')
@click.option('--log-file', help='Also write JSON logs to this file')
@click.pass_context
def cli(ctx, config, verbose, json_logs, log_file):
    """Mobile money ingestion adapters and agent session tools"""
    configure_logging(logging.DEBUG if verbose else logging.WARNING, json_logs, log_file)

    ctx.ensure_object(dict)
    try:
        ctx.obj['cli'] = ProvidersCLI(config)
    except ProvidersError as e:
        raise click.ClickException(str(e))


@cli.command()
@click.argument('text')
@click.option('--type', 'adapter_type', type=click.Choice(['statement', 'sms']),
              help='Only try adapters of this type')
@click.pass_context
def parse(ctx, text, adapter_type):
    """Auto-detect the provider of TEXT and print the parsed transaction"""
    result = ctx.obj['cli'].registry.auto_parse(text, adapter_type)
    _echo_result(result)
    if not result.success:
        sys.exit(1)


@cli.command('parse-csv')
@click.argument('file_path', type=click.Path(exists=True, dir_okay=False))
@click.option('--country', default='RWA', help='Country code of the statement provider')
@click.option('--provider', default='MTN Rwanda', help='Provider name')
@click.pass_context
def parse_csv(ctx, file_path, country, provider):
    """Parse a statement export row by row"""
    summary = ctx.obj['cli'].parse_statement_file(file_path, country, provider)

    for result in summary['results']:
        _echo_result(result)

    click.echo(
        f"Parsed {summary['parsed_rows']}/{summary['total_rows']} rows "
        f"({summary['failed_rows']} failed)",
        err=True,
    )
    if summary['failed_rows']:
        sys.exit(1)


@cli.command()
@click.option('--type', 'adapter_type', type=click.Choice(['statement', 'sms']),
              help='Only list adapters of this type')
@click.pass_context
def adapters(ctx, adapter_type):
    """List registered adapters in evaluation order"""
    registry = ctx.obj['cli'].registry
    entries = registry.get_adapters_by_type(adapter_type) if adapter_type else registry.get_all()

    if not entries:
        click.echo("No adapters registered")
        return

    for entry in entries:
        click.echo(
            f"{entry.country_code:<5} {entry.provider_name:<20} "
            f"{entry.adapter_type.value:<10} priority={entry.priority} "
            f"({entry.adapter.__class__.__name__})"
        )


@cli.group()
def session():
    """Inspect agent sessions in the configured store"""


@session.command('get')
@click.argument('session_id')
@click.pass_context
def session_get(ctx, session_id):
    """Print a live session as JSON"""
    try:
        record = ctx.obj['cli'].store.get(session_id)
    except ProvidersError as e:
        raise click.ClickException(str(e))

    if record is None:
        click.echo(f"Session not found or expired: {session_id}", err=True)
        sys.exit(1)
    click.echo(json.dumps(serialize_session(record), indent=2))


@session.command('delete')
@click.argument('session_id')
@click.pass_context
def session_delete(ctx, session_id):
    """Delete a session"""
    try:
        ctx.obj['cli'].store.delete(session_id)
    except ProvidersError as e:
        raise click.ClickException(str(e))
    click.echo(f"Deleted session {session_id}")


@cli.command('init-config')
@click.argument('output_path')
@click.pass_context
def init_config(ctx, output_path):
    """Write a configuration template to OUTPUT_PATH (.json or .yml)"""
    ctx.obj['cli'].config_manager.save_config_template(output_path)
    click.echo(f"Configuration template saved to {output_path}")


if __name__ == '__main__':
    cli()
