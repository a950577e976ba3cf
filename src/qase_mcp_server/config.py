"""Qase MCP Server Configuration

Resolves server settings from three sources, highest priority first:
command-line flags, environment variables, and a JSON config file
(``~/.qase-mcp-server.json`` unless ``--config`` points elsewhere).
"""
import argparse
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from .client import DEFAULT_API_URL
from .utils.errors import ConfigError
from .utils.validation import format_validation_errors

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".qase-mcp-server.json"


class Config(BaseModel):
    """Validated server configuration."""

    model_config = ConfigDict(populate_by_name=True)

    api_token: str = Field(alias="apiToken", min_length=1, description="Qase API token")
    config_path: Optional[str] = Field(default=None, alias="configPath")
    debug: bool = Field(default=False)
    api_url: str = Field(default=DEFAULT_API_URL, alias="apiUrl", description="Qase API base URL")

    def masked_token(self) -> str:
        return self.api_token[:4] + "..."


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="qase-mcp-server",
        description="MCP server for the Qase test management API",
        epilog=(
            "Environment variables:\n"
            "  QASE_API_TOKEN         Qase API token\n"
            "  QASE_API_URL           Qase API base URL (default: %s)" % DEFAULT_API_URL
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--token", "-t",
        dest="apiToken",
        help="Qase API token (can also be set via QASE_API_TOKEN env var)",
    )
    parser.add_argument(
        "--config", "-c",
        dest="configPath",
        help=f"Path to config file (default: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument(
        "--debug", "-d",
        action="store_true",
        default=None,
        help="Enable debug logging",
    )
    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> Dict[str, Any]:
    """Parse command-line flags, keeping only the ones actually given."""
    namespace = build_arg_parser().parse_args(argv)
    return {key: value for key, value in vars(namespace).items() if value is not None}


def load_config_file(config_path: Path) -> Dict[str, Any]:
    """Load settings from a JSON config file.

    A missing file yields no settings. An unreadable or malformed file is
    logged and ignored so the other sources can still supply the token.
    """
    if not config_path.exists():
        logger.debug(f"No config file at {config_path}")
        return {}

    try:
        with open(config_path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.error(f"Error loading config file {config_path}: {e}")
        return {}

    if not isinstance(data, dict):
        logger.error(f"Config file {config_path} must contain a JSON object")
        return {}
    return data


def load_env_config(environ: Mapping[str, str]) -> Dict[str, Any]:
    env_config = {}
    if environ.get("QASE_API_TOKEN"):
        env_config["apiToken"] = environ["QASE_API_TOKEN"]
    if environ.get("QASE_API_URL"):
        env_config["apiUrl"] = environ["QASE_API_URL"]
    return env_config


def get_config(
    argv: Optional[Sequence[str]] = None,
    environ: Optional[Mapping[str, str]] = None
) -> Config:
    """Resolve configuration from all sources.

    Args:
        argv: Command-line arguments (default: sys.argv[1:])
        environ: Environment mapping (default: os.environ)

    Returns:
        Validated Config

    Raises:
        ConfigError: If the merged settings are invalid (e.g. no API token)
    """
    environ = os.environ if environ is None else environ

    args_config = parse_args(argv)
    config_path = Path(args_config.get("configPath") or DEFAULT_CONFIG_PATH).expanduser()
    file_config = load_config_file(config_path)
    env_config = load_env_config(environ)

    merged = {**file_config, **env_config, **args_config}

    try:
        return Config.model_validate(merged)
    except PydanticValidationError as e:
        errors = format_validation_errors(e)
        raise ConfigError(
            "Configuration error: " + "; ".join(f"{path}: {reason}" for path, reason in errors),
            details={"fields": [path for path, _ in errors]},
        ) from e
