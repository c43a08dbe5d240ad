#
# Copyright Elasticsearch B.V. and/or licensed to Elasticsearch B.V. under one
# or more contributor license agreements. Licensed under the Elastic License 2.0;
# you may not use this file except in compliance with the Elastic License 2.0.
#

from datetime import date, datetime, time, timezone

from bridge.config import DEFAULT_CAPACITY, DEFAULT_TIMEOUT
from bridge.core.token import load_or_create_token, load_token_prefix
from bridge.exceptions import ConfigurationError, InvalidTokenError
from bridge.github.client import GitHubClient
from bridge.github.config import resolve_project, validate_config
from bridge.github.iterator import IssueIterator
from bridge.github.utils import GITHUB_CLOUD_URL, KEY_TOKEN, KEY_TOKEN_ID, TARGET
from bridge.logger import logger
from bridge.utils import CancellableContext, parse_datetime_string


class GitHubBridge:
    """Import of one GitHub project."""

    def __init__(self, config):
        """Setup the bridge to one GitHub project.

        Args:
            config (dict): configuration as returned by `bridge.config.load_config`.
        """
        self._logger = logger
        self.config = config
        self.github_config = config["github"]
        self.sync_config = config.get("sync") or {}

        validate_config(self.github_config)
        self.owner, self.project = resolve_project(self.github_config)
        self.token = self._resolve_token()

        self.github_client = GitHubClient(
            token=self.token.value,
            base_url=self.github_config.get("base_url") or GITHUB_CLOUD_URL,
            ssl_enabled=self.github_config.get("ssl_enabled", False),
            ssl_ca=self.github_config.get("ssl_ca"),
        )

    def set_logger(self, logger_):
        self._logger = logger_
        self.github_client.set_logger(logger_)

    def _resolve_token(self):
        if self.github_config.get(KEY_TOKEN_ID):
            token = load_token_prefix(self.config, self.github_config[KEY_TOKEN_ID])
            if token.target != TARGET:
                msg = f"token target is incompatible {token.target}"
                raise ConfigurationError(msg)
        else:
            token = load_or_create_token(
                self.config, TARGET, self.github_config[KEY_TOKEN]
            )

        try:
            token.validate()
        except InvalidTokenError as exception:
            msg = f"invalid token: {exception}"
            raise ConfigurationError(msg) from exception
        return token

    def _since(self, since):
        if since is None:
            since = self.sync_config.get("since")
        if isinstance(since, str):
            since = parse_datetime_string(since)
        elif isinstance(since, date) and not isinstance(since, datetime):
            since = datetime.combine(since, time.min, tzinfo=timezone.utc)
        if since is not None and not isinstance(since, datetime):
            msg = f"invalid since watermark: {since}"
            raise ConfigurationError(msg)
        return since

    def iterator(self, since=None, context=None):
        """Build the iterator of an incremental import.

        Args:
            since (datetime): watermark, defaults to `sync.since`.
            context (CancellableContext): cancellation signal of the job.
        """
        since = self._since(since)
        if context is None:
            context = CancellableContext(
                timeout=self.sync_config.get("timeout") or DEFAULT_TIMEOUT
            )

        self._logger.info(
            f"Importing issues of '{self.owner}/{self.project}' updated since {since}"
        )
        iterator = IssueIterator(
            executor=self.github_client,
            owner=self.owner,
            project=self.project,
            since=since,
            capacity=self.sync_config.get("capacity") or DEFAULT_CAPACITY,
            context=context,
        )
        iterator.set_logger(self._logger)
        return iterator

    async def ping(self):
        if not await self.github_client.validate_project(self.owner, self.project):
            msg = "project doesn't exist or authentication token has an incorrect scope"
            raise ConfigurationError(msg)

    async def close(self):
        await self.github_client.close()
