"""
Config command group.

Commands:
    - config show [--field FIELD]    # Display configuration
    - config set KEY VALUE           # Update one field and save
    - config reset [--yes]           # Reset to defaults and save
"""

import json
from typing import Optional

import click
from pydantic import ValidationError

from chainselector.exceptions import wrap_pydantic_error
from chainselector.models import AppConfig

from ..utils import CliContext, echo_error, load_config_service, parse_value


@click.group(name="config", invoke_without_command=True)
@click.pass_context
def config_group(ctx):
    """Show or change chain selector settings."""
    if ctx.invoked_subcommand is None:
        ctx.invoke(show)


@config_group.command()
@click.option('--field', '-f', default=None, help='Show a single field')
@click.pass_obj
def show(obj: CliContext, field: Optional[str]):
    """Display the configuration."""
    config_service = load_config_service(obj.config_path)
    values = config_service.get_all()

    if field is not None:
        if field not in values:
            raise click.BadParameter(f"Unknown field '{field}'", param_hint="--field")
        click.echo(json.dumps(values[field]))
        return

    click.echo(f"Config file: {obj.config_path}\n")
    for key, value in values.items():
        click.echo(f"  {key}: {json.dumps(value)}")


@config_group.command(name="set")
@click.argument("key")
@click.argument("value")
@click.pass_obj
def set_value(obj: CliContext, key: str, value: str):
    """
    Set KEY to VALUE and save.

    VALUE is parsed as JSON when possible ("null" clears optional fields).

    \b
    Examples:
      chainselector config set osc_send_port 11000
      chainselector config set switch_strategy solo
      chainselector config set selected_midi_device null
    """
    if key not in AppConfig.model_fields:
        valid = ", ".join(AppConfig.model_fields)
        raise click.BadParameter(f"Unknown field '{key}'. Valid fields: {valid}", param_hint="KEY")

    config_service = load_config_service(obj.config_path)
    try:
        config_service.set(key, parse_value(value))
    except ValidationError as e:
        echo_error(wrap_pydantic_error(e, str(obj.config_path)))
        raise SystemExit(1)

    config_service.save()
    click.echo(f"{key}: {json.dumps(config_service.get_all()[key])}")


@config_group.command()
@click.option('--yes', '-y', is_flag=True, help='Do not ask for confirmation')
@click.pass_obj
def reset(obj: CliContext, yes: bool):
    """Reset all settings (including learned pads) to defaults."""
    if not yes:
        click.confirm("Reset all settings to defaults?", abort=True)

    config_service = load_config_service(obj.config_path)
    config_service.reset()
    config_service.save()
    click.echo("Configuration reset to defaults.")
