"""Channel arguments read from a JSON configuration file."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from typing import Any

logger = logging.getLogger(__name__)

ENV_VAR_CHANNEL_CONFIG = "SDV_VDB_CHANNEL_CONFIG_PATH"
JSON_CHANNEL_ARGS_KEY = "channelArguments"


def parse_channel_arguments(config: Any) -> dict[str, int | str]:
    """Extract integer and string channel arguments from a parsed config.

    Raises ValueError if the configuration is not a JSON object.
    """
    if not isinstance(config, Mapping):
        raise ValueError("channel configuration is not an object")
    channel_args = config.get(JSON_CHANNEL_ARGS_KEY)
    if channel_args is None:
        return {}
    if not isinstance(channel_args, Mapping):
        raise ValueError(f"'{JSON_CHANNEL_ARGS_KEY}' is not an object")

    result: dict[str, int | str] = {}
    for key, value in channel_args.items():
        if isinstance(value, int) and not isinstance(value, bool):
            result[key] = value
        elif isinstance(value, str):
            result[key] = value
        else:
            logger.warning("Ignoring channel argument %s - unknown type.", key)
    return result


def load_channel_arguments(path: str | os.PathLike[str]) -> dict[str, int | str]:
    """Read channel arguments from a file; problems are logged, not raised."""
    try:
        with open(path, encoding="utf-8") as stream:
            logger.info("Reading channel configuration from file %s.", path)
            try:
                config = json.load(stream)
                return parse_channel_arguments(config)
            except (json.JSONDecodeError, ValueError):
                logger.warning("Error reading channel configuration file %s.", path)
                return {}
    except OSError:
        logger.warning("Cannot open channel configuration file %s.", path)
        return {}


def get_channel_arguments(environ: Mapping[str, str] | None = None) -> dict[str, int | str]:
    """Channel arguments from the file named by the environment, if any."""
    env = os.environ if environ is None else environ
    path = env.get(ENV_VAR_CHANNEL_CONFIG, "")
    if not path:
        return {}
    return load_channel_arguments(path)