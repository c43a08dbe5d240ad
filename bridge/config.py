#
# Copyright Elasticsearch B.V. and/or licensed to Elasticsearch B.V. under one
# or more contributor license agreements. Licensed under the Elastic License 2.0;
# you may not use this file except in compliance with the Elastic License 2.0.
#

import os

from envyaml import EnvYAML

from bridge.logger import logger

DEFAULT_CAPACITY = 10
DEFAULT_TIMEOUT = 60


def load_config(config_file):
    logger.info(f"Loading config from {config_file}")
    configuration = dict(
        _merge_dicts(_default_config(), EnvYAML(config_file).export())
    )
    _env_overrides(configuration)
    return configuration


# environment variable -> configuration field
env_mappings = {
    "BRIDGE_LOG_LEVEL": "service.log_level",
    "BRIDGE_GITHUB_TOKEN": "github.token",
}

log_levels = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL", "NOTSET")


def _default_config():
    return {
        "service": {
            "log_level": "INFO",
            "filebeat": False,
        },
        "github": {
            "target": "github",
            "base_url": "https://api.github.com",
            "ssl_enabled": False,
            "ssl_ca": None,
        },
        "sync": {
            "capacity": DEFAULT_CAPACITY,
            "timeout": DEFAULT_TIMEOUT,
            "since": None,
        },
        "tokens": {},
    }


def _env_overrides(configuration):
    for env_field, config_field in env_mappings.items():
        if env_field not in os.environ:
            continue

        value = os.environ[env_field]
        if config_field == "service.log_level":
            value = value.upper()
            if value not in log_levels:
                msg = f"Unexpected log level: {value}. Allowed values: {', '.join(log_levels)}"
                raise ValueError(msg)

        _update_config_field(configuration, config_field, value)

        logger.debug(f"Overridden {config_field}")


def _update_config_field(configuration, field, value):
    """
    Update configuration field value taking into account the nesting.

    Configuration is a hash of hashes, so we need to dive inside to do proper assignment.

    E.g. _update_config_field({}, "sync.capacity", 20) will result in the following config:
    {
        "sync": {
            "capacity": 20
        }
    }
    """
    subfields = field.split(".")

    current_leaf = configuration
    for subfield in subfields[:-1]:
        if subfield not in current_leaf or current_leaf[subfield] is None:
            current_leaf[subfield] = {}
        current_leaf = current_leaf[subfield]

    current_leaf[subfields[-1]] = value


def _merge_dicts(hsh1, hsh2):
    for k in set(hsh1.keys()).union(hsh2.keys()):
        if k in hsh1 and k in hsh2:
            if isinstance(hsh1[k], dict) and isinstance(
                hsh2[k], dict
            ):  # only merge objects
                yield (k, dict(_merge_dicts(hsh1[k], hsh2[k])))
            else:
                yield (k, hsh2[k])
        elif k in hsh1:
            yield (k, hsh1[k])
        else:
            yield (k, hsh2[k])
