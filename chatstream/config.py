# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Processor configuration with environment variable and YAML support."""
import os
from pathlib import Path
from typing import Literal

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from chatstream.core.constants import SUMMARY_MAX_LENGTH
from chatstream.core.exceptions import ConfigurationError


DEFAULT_CONFIG_FILE = "chatstream.yaml"
CONFIG_ENV_VAR = "CHATSTREAM_CONFIG"


class ProcessorConfig(BaseSettings):
    """Message pipeline configuration.

    All settings can be overridden via environment variables with the
    CHATSTREAM_ prefix. Example: CHATSTREAM_UNMATCHED_TOOL_RESULT=drop.
    """

    model_config = SettingsConfigDict(
        env_prefix="CHATSTREAM_",
        extra="ignore",
    )

    summary_max_length: int = Field(
        default=SUMMARY_MAX_LENGTH,
        ge=1,
        description="Tool output shorter than this is used verbatim as its summary",
    )
    unmatched_tool_result: Literal["placeholder", "drop"] = Field(
        default="placeholder",
        description="Display of tool results whose tool_use was never seen",
    )
    log_level: str = Field(
        default="INFO",
        description="Minimum loguru level for the command line tool",
    )
    show_init_message: bool = Field(
        default=True,
        description="Whether the streaming adapter shows the init system event",
    )
    read_chunk_size: int = Field(
        default=64 * 1024,
        ge=1,
        description="Bytes read per chunk when streaming from a file",
    )


def load_config(config_path: Path | None = None) -> ProcessorConfig:
    """Load processor configuration from a YAML file.

    Resolution order:
    1. Explicit config_path parameter (if provided)
    2. CHATSTREAM_CONFIG environment variable (if set)
    3. Default: 'chatstream.yaml' in the current directory

    Values from the file take precedence over CHATSTREAM_* environment
    variables. When no file is named and the default file is absent, the
    environment and built-in defaults are used.

    Args:
        config_path: Optional explicit path to the configuration file.

    Returns:
        The loaded configuration.

    Raises:
        FileNotFoundError: If an explicitly named configuration file does not exist.
        yaml.YAMLError: If the YAML file is malformed.
        ConfigurationError: If the file does not contain a mapping.
        pydantic.ValidationError: If the configuration fails validation.
    """
    explicit = config_path is not None
    if config_path is None:
        env_path = os.environ.get(CONFIG_ENV_VAR)
        explicit = bool(env_path)
        config_path = Path(env_path) if env_path else Path(DEFAULT_CONFIG_FILE)

    if not config_path.exists():
        if explicit:
            raise FileNotFoundError(f"Configuration file not found at {config_path}")
        return ProcessorConfig()

    with open(config_path) as f:
        data = yaml.safe_load(f)

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file {config_path} must contain a mapping")

    return ProcessorConfig(**data)
