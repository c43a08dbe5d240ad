#
# Copyright Elasticsearch B.V. and/or licensed to Elasticsearch B.V. under one
# or more contributor license agreements. Licensed under the Elastic License 2.0;
# you may not use this file except in compliance with the Elastic License 2.0.
#
"""
API access tokens.

Tokens live in the `tokens` section of the configuration, keyed by their id:

    tokens:
      3f2a...:
        value: ghp_xxx
        target: github
        createtime: 2024-01-01T00:00:00+00:00
"""

import hashlib
from dataclasses import dataclass, field
from datetime import datetime, timezone

from bridge.exceptions import (
    InvalidTokenError,
    MultipleMatchTokenError,
    TokenNotFoundError,
)
from bridge.utils import iso_utc, parse_datetime_string

TOKEN_VALUE_KEY = "value"
TOKEN_TARGET_KEY = "target"
TOKEN_CREATE_TIME_KEY = "createtime"

KNOWN_TARGETS = ("github",)


@dataclass
class Token:
    """Holds an API access token data"""

    value: str
    target: str
    create_time: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @property
    def id(self):  # noqa: A003
        return hashlib.sha256((self.target + self.value).encode("utf8")).hexdigest()

    def validate(self):
        if not self.value:
            msg = "missing value"
            raise InvalidTokenError(msg)
        if not self.target:
            msg = "missing target"
            raise InvalidTokenError(msg)
        if self.create_time is None:
            msg = "missing creation time"
            raise InvalidTokenError(msg)
        if self.target not in KNOWN_TARGETS:
            msg = "unknown target"
            raise InvalidTokenError(msg)

    def to_config(self):
        return {
            TOKEN_VALUE_KEY: self.value,
            TOKEN_TARGET_KEY: self.target,
            TOKEN_CREATE_TIME_KEY: iso_utc(self.create_time),
        }

    @classmethod
    def from_config(cls, raw):
        create_time = raw.get(TOKEN_CREATE_TIME_KEY)
        if isinstance(create_time, str):
            create_time = parse_datetime_string(create_time)
        return cls(
            value=raw.get(TOKEN_VALUE_KEY, ""),
            target=raw.get(TOKEN_TARGET_KEY, ""),
            create_time=create_time,
        )


def _tokens_section(config):
    tokens = config.get("tokens")
    if tokens is None:
        tokens = config["tokens"] = {}
    return tokens


def list_tokens(config, target=None):
    """Return the sorted ids of the stored tokens, optionally for one target."""
    tokens = _tokens_section(config)
    return sorted(
        token_id
        for token_id, raw in tokens.items()
        if target is None or raw.get(TOKEN_TARGET_KEY) == target
    )


def load_token(config, token_id):
    tokens = _tokens_section(config)
    if token_id not in tokens:
        raise TokenNotFoundError(token_id)
    return Token.from_config(tokens[token_id])


def load_token_prefix(config, prefix):
    matching = [
        token_id for token_id in list_tokens(config) if token_id.startswith(prefix)
    ]

    if len(matching) > 1:
        raise MultipleMatchTokenError(matching)

    if not matching:
        raise TokenNotFoundError(prefix)

    return load_token(config, matching[0])


def store_token(config, token):
    _tokens_section(config)[token.id] = token.to_config()


def load_or_create_token(config, target, value):
    """Load the token of the given target with the same value, or store a new one."""
    for token_id in list_tokens(config, target=target):
        token = load_token(config, token_id)
        if token.value == value:
            return token

    token = Token(value=value, target=target)
    store_token(config, token)
    return token


def remove_token(config, token_id):
    tokens = _tokens_section(config)
    if token_id not in tokens:
        raise TokenNotFoundError(token_id)
    del tokens[token_id]


def token_exist(config, value, target=None):
    """Tell whether a token with this value is stored, for `target` if given."""
    return any(
        load_token(config, token_id).value == value
        for token_id in list_tokens(config, target=target)
    )
