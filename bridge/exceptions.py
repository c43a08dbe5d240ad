#
# Copyright Elasticsearch B.V. and/or licensed to Elasticsearch B.V. under one
# or more contributor license agreements. Licensed under the Elastic License 2.0;
# you may not use this file except in compliance with the Elastic License 2.0.
#
"""
Common exceptions for the bridge package.
"""


class BridgeError(Exception):
    """Base class of every error raised by the bridge."""

    pass


class TransportError(BridgeError):
    """A remote query failed: network, timeout or deserialization.

    The underlying exception is always chained as `__cause__`.
    """

    pass


class ConfigurationError(BridgeError):
    pass


class TokenError(BridgeError):
    pass


class TokenNotFoundError(TokenError):
    def __init__(self, token_id=None):
        msg = "token doesn't exist"
        if token_id:
            msg = f"{msg}: {token_id}"
        super().__init__(msg)
        self.token_id = token_id


class MultipleMatchTokenError(TokenError):
    def __init__(self, matching):
        self.matching = list(matching)
        super().__init__(
            "Multiple matching token found:\n" + "\n".join(self.matching)
        )


class InvalidTokenError(TokenError):
    pass
