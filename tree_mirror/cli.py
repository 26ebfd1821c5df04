"""Command-line interface for tree mirror."""

import json
import logging
import sys
import click
from typing import Any, Dict, Optional

from .core.lister import glob_star, list_entries
from .core.mirror import TreeMirror
from .core.runner import MirrorRunner
from .core.sources import SOURCE_TYPES, open_source
from .config.config_manager import ConfigManager

DEFAULT_LOG_LEVEL = 'WARNING'


def setup_logging(level: str, log_file: Optional[str] = None):
    """Set up logging configuration."""
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f'Invalid log level: {level}')

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    # Logs go to stderr so stdout stays clean for listings and JSON
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        try:
            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
        except OSError as e:
            click.echo(f"Warning: Could not set up file logging: {e}", err=True)


@click.group()
@click.option('--config', '-c', 'config_path',
              help='Path to configuration file')
@click.option('--log-level',
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
              help='Logging level (default WARNING, or the config file\'s logging.level)')
@click.option('--log-file',
              help='Log file path (default: the config file\'s logging.file)')
@click.pass_context
def cli(ctx, config_path: Optional[str], log_level: Optional[str], log_file: Optional[str]):
    """Tree Mirror - copy a tree into a destination, only where the source is newer."""
    ctx.ensure_object(dict)

    setup_logging(log_level or DEFAULT_LOG_LEVEL, log_file)

    ctx.obj['config_path'] = config_path
    ctx.obj['log_level'] = log_level
    ctx.obj['log_file'] = log_file


def apply_logging_config(ctx, logging_config: Dict[str, Any]):
    """Reconfigure logging from the config file; command-line flags take precedence."""
    if ctx.obj.get('log_level') and ctx.obj.get('log_file'):
        return

    setup_logging(
        ctx.obj.get('log_level') or logging_config.get('level') or DEFAULT_LOG_LEVEL,
        ctx.obj.get('log_file') or logging_config.get('file')
    )


@cli.command()
@click.argument('source')
@click.argument('destination_root')
@click.option('--subtree', '-s', default='', help='Subtree of the source to mirror')
@click.option('--prefix', '-p', default='', help='Subdirectory below the destination root')
@click.option('--type', '-t', 'source_type', type=click.Choice(SOURCE_TYPES), default='auto',
              help='Source kind')
@click.option('--output', '-o', type=click.Choice(['text', 'json']), default='text',
              help='Output format')
def copy(source: str, destination_root: str, subtree: str, prefix: str, source_type: str, output: str):
    """Mirror SOURCE (a directory or zip archive) under DESTINATION_ROOT."""
    try:
        tree = open_source(source, source_type)
    except (OSError, ValueError) as e:
        click.echo(f"Error opening source: {e}", err=True)
        sys.exit(1)

    with tree:
        result = TreeMirror(tree).mirror(subtree, destination_root, prefix)

    if output == 'json':
        click.echo(json.dumps({
            'mapping': result.mapping,
            'report': result.report.lines,
            'error': str(result.error) if result.error is not None else None
        }, indent=2))
    else:
        click.echo(str(result.report), nl=False)
        click.echo(f"{len(result.mapping)} entries visited, {result.copied} created or copied")

    if result.error is not None:
        click.echo(f"Error during mirror: {result.error}", err=True)
        sys.exit(1)


@cli.command()
@click.option('--save/--no-save', default=True,
              help='Save the report locally when configured')
@click.pass_context
def run(ctx, save: bool):
    """Run every mirror job in the configuration file."""
    try:
        runner = MirrorRunner(ctx.obj.get('config_path'))
        apply_logging_config(ctx, runner.config_manager.get_logging_config())
        results = runner.run_with_report(save_report=save)
    except (OSError, ValueError) as e:
        click.echo(f"Error running mirrors: {e}", err=True)
        sys.exit(1)

    click.echo(results['report'], nl=False)

    if results['report_file']:
        click.echo(f"Report saved: {results['report_file']}")

    if any(job.error_message for job in results['job_results']):
        sys.exit(1)


@cli.command(name='ls')
@click.argument('source')
@click.option('--subtree', '-s', default='', help='Subtree to list')
@click.option('--type', '-t', 'source_type', type=click.Choice(SOURCE_TYPES), default='auto',
              help='Source kind')
@click.option('--long', '-l', 'long_format', is_flag=True, help='Show mode, size and modification time')
def list_command(source: str, subtree: str, source_type: str, long_format: bool):
    """List every path in SOURCE, directories included."""
    try:
        tree = open_source(source, source_type)
    except (OSError, ValueError) as e:
        click.echo(f"Error opening source: {e}", err=True)
        sys.exit(1)

    with tree:
        if long_format:
            for info in list_entries(tree, subtree):
                click.echo(str(info))
        else:
            for path in glob_star(tree, subtree):
                click.echo(path)


@cli.command()
@click.pass_context
def validate_config(ctx):
    """Validate configuration file."""
    try:
        config_manager = ConfigManager(ctx.obj.get('config_path'))
        config_manager.load_config()
        apply_logging_config(ctx, config_manager.get_logging_config())
    except (OSError, ValueError) as e:
        click.echo(f"Configuration validation failed: {e}", err=True)
        sys.exit(1)

    click.echo("Configuration loaded successfully")

    mirrors = config_manager.get_mirrors()
    click.echo(f"Mirror jobs: {len(mirrors)}")
    for i, mirror in enumerate(mirrors, 1):
        click.echo(f"  {i}. {mirror['name']} ({mirror['type']}): "
                   f"{mirror['source']}:{mirror['subtree'] or '.'} -> {mirror['destination_root']}"
                   f"{'/' + mirror['destination_prefix'] if mirror['destination_prefix'] else ''}")

    reports_config = config_manager.get_reports_config()
    if reports_config.get('save_local'):
        click.echo(f"Reports saved to: {reports_config.get('local_directory')}")
    else:
        click.echo("Reports: not saved")


def main():
    """Main CLI entry point."""
    cli()


if __name__ == '__main__':
    main()
