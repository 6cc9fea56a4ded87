"""
Command Line Interface for bootc-provider.
"""
import json
import os

import click

from .. import __version__
from ..CONFIG.settings import ProviderSettings
from ..CONVERTERS.to_markdown import MarkdownDocsConverter
from ..FRAMEWORK.provider import ProviderSchemaResponse
from ..FRAMEWORK.resource import MetadataRequest, MetadataResponse, SchemaResponse
from ..FRAMEWORK.values import is_unknown
from ..MANAGERS.lifecycle_manager import Action, LifecycleManager
from ..PARSERS.config_parser import ConfigParser
from ..PROVIDER.bootc_provider import PROVIDER_TYPE_NAME, BootcProvider
from ..STATE.state_store import StateStore
from ..UTILS.log_config import configure_logging

SYMBOLS = {
    Action.CREATE: "+",
    Action.DELETE: "-",
    Action.REPLACE: "-/+",
    Action.UPDATE: "~",
    Action.NOOP: " ",
}


def _echo_diagnostics(diagnostics):
    for diag in diagnostics:
        click.echo(str(diag), err=True)


def _format_value(value):
    if is_unknown(value):
        return "(known after apply)"
    return json.dumps(value)


def _state(ctx) -> StateStore:
    try:
        return StateStore(ctx.obj['state_file'])
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)


def _manager(ctx) -> LifecycleManager:
    config_file = ctx.obj['config_file']
    if not os.path.exists(config_file):
        click.echo(f"Error: {config_file} not found.", err=True)
        ctx.exit(1)
    try:
        config = ConfigParser().parse(config_file)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)
    return LifecycleManager(ctx.obj['provider'], config, _state(ctx))


@click.group()
@click.option('--config', '-c', 'config_file', default='bootc.yml', help='Resource configuration file')
@click.option('--state', '-s', 'state_file', default='bootc.state.json', help='State file path')
@click.option('--env-file', default='.env', help='Settings file read with python-dotenv')
@click.version_option(__version__, prog_name='bootc-provider')
@click.pass_context
def cli(ctx, config_file, state_file, env_file):
    """
    bootc-provider - build qcow2 disk images from bootc container images.

    Declare bootc_image resources in a YAML file, then plan and apply them.
    """
    ctx.ensure_object(dict)
    settings = ProviderSettings.from_env(env_file)
    configure_logging(settings.log_level, settings.log_format)
    ctx.obj['config_file'] = config_file
    ctx.obj['state_file'] = state_file
    ctx.obj['settings'] = settings
    ctx.obj['provider'] = BootcProvider(settings=settings)


@cli.command()
@click.pass_context
def validate(ctx):
    """Check the configuration against the resource schemas."""
    diagnostics = _manager(ctx).validate()
    _echo_diagnostics(diagnostics)
    if diagnostics.has_error():
        ctx.exit(1)
    click.echo("Configuration is valid.")


@cli.command()
@click.pass_context
def plan(ctx):
    """Show what apply would do."""
    changes, diagnostics = _manager(ctx).plan()
    _echo_diagnostics(diagnostics)
    if diagnostics.has_error():
        ctx.exit(1)

    counts = {action: 0 for action in Action}
    for change in changes:
        counts[change.action] += 1
        click.echo(f"{SYMBOLS[change.action]:>3} {change.address} ({change.action.value})")
        if change.action in (Action.CREATE, Action.REPLACE, Action.UPDATE):
            for name, value in sorted((change.planned or {}).items()):
                if value is None:
                    continue
                marker = "  # forces replacement" if name in change.requires_replace else ""
                click.echo(f"      {name} = {_format_value(value)}{marker}")

    click.echo(
        f"Plan: {counts[Action.CREATE]} to create, {counts[Action.REPLACE]} to replace, "
        f"{counts[Action.UPDATE]} to update, {counts[Action.DELETE]} to delete."
    )


@cli.command()
@click.pass_context
def apply(ctx):
    """Create, replace or delete resources to match the configuration."""
    report = _manager(ctx).apply()
    for change in report.applied:
        if change.action is not Action.NOOP:
            click.echo(f"{change.address}: {change.action.value} complete")
    _echo_diagnostics(report.diagnostics)
    if report.diagnostics.has_error():
        ctx.exit(1)
    click.echo(f"Apply complete! {len(report.applied)} resource(s) processed.")


@cli.command()
@click.pass_context
def destroy(ctx):
    """Delete every resource recorded in the state file."""
    config = ConfigParser().parse_from_string("")
    report = LifecycleManager(ctx.obj['provider'], config, _state(ctx)).destroy()
    for change in report.applied:
        click.echo(f"{change.address}: destroyed")
    _echo_diagnostics(report.diagnostics)
    if report.diagnostics.has_error():
        ctx.exit(1)
    click.echo(f"Destroy complete! {len(report.applied)} resource(s) destroyed.")


@cli.command()
@click.pass_context
def show(ctx):
    """Print the recorded state."""
    state = _state(ctx)
    output = {address: state.get(address) for address in state.addresses()}
    click.echo(json.dumps(output, indent=2, sort_keys=True))


@cli.command()
@click.pass_context
def schema(ctx):
    """Print the provider and resource schemas as JSON."""
    provider = ctx.obj['provider']
    provider_schema = ProviderSchemaResponse()
    provider.schema(provider_schema)

    resources = {}
    for factory in provider.resources():
        resource = factory()
        md = MetadataResponse()
        resource.metadata(MetadataRequest(provider_type_name=PROVIDER_TYPE_NAME), md)
        sch = SchemaResponse()
        resource.schema(sch)
        resources[md.type_name] = sch.schema.to_dict()

    click.echo(json.dumps({
        "provider": provider_schema.schema.to_dict(),
        "resource_schemas": resources,
    }, indent=2))


@cli.command()
@click.option('--out', '-o', default='docs', help='Output directory')
@click.pass_context
def docs(ctx, out):
    """Generate Markdown reference documentation."""
    written = MarkdownDocsConverter(ctx.obj['provider']).convert(out)
    for path in written:
        click.echo(f"wrote: {path}")


def main():
    """
    Main entry point for the CLI.
    """
    cli(obj={})


if __name__ == '__main__':
    main()
