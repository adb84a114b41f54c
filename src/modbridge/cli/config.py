"""Configuration utilities and the config command for the modbridge CLI.

Commands:
- config show: Print the saved configuration
- config set: Save one configuration value
"""

from __future__ import annotations

import json
from pathlib import Path

import click

from modbridge.core.config import DeviceConfig

CONFIG_KEYS = (
    "adb_path",
    "serial",
    "agent_path",
    "game_package",
    "upload_dir",
    "command_timeout",
)


def get_config_dir() -> Path:
    """Get the configuration directory for modbridge.

    Returns:
        Path to ~/.modbridge or equivalent.
    """
    return Path.home() / ".modbridge"


def get_config_file() -> Path:
    """Get the path to the config file."""
    return get_config_dir() / "config.json"


def load_config() -> dict[str, str]:
    """Load configuration from config file."""
    config_file = get_config_file()
    if config_file.exists():
        return dict(json.loads(config_file.read_text()))
    return {}


def save_config(config: dict[str, str]) -> None:
    """Save configuration to config file."""
    config_file = get_config_file()
    config_file.parent.mkdir(parents=True, exist_ok=True)
    config_file.write_text(json.dumps(config, indent=2))


def load_device_config(**overrides: str | None) -> DeviceConfig:
    """Build the device config from the config file and CLI overrides.

    Args:
        **overrides: Values given on the command line; None means unset.

    Returns:
        The merged device configuration.
    """
    config = load_config()
    config.update({key: value for key, value in overrides.items() if value is not None})
    return DeviceConfig.from_dict(config)


@click.group("config")
def config_cmd() -> None:
    """Show or change the saved configuration."""


@config_cmd.command("show")
def show_cmd() -> None:
    """Print the effective configuration."""
    device_config = load_device_config()
    click.echo(f"Config file: {get_config_file()}")
    for key in CONFIG_KEYS:
        click.echo(f"  {key}: {getattr(device_config, key)}")


@config_cmd.command("set")
@click.argument("key", type=click.Choice(CONFIG_KEYS))
@click.argument("value")
def set_cmd(key: str, value: str) -> None:
    """Save a configuration value."""
    if key == "command_timeout":
        try:
            float(value)
        except ValueError as e:
            raise click.BadParameter("must be a number", param_hint="value") from e

    config = load_config()
    config[key] = value
    save_config(config)
    click.echo(f"Saved {key} = {value}")
