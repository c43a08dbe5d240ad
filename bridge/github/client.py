#
# Copyright Elasticsearch B.V. and/or licensed to Elasticsearch B.V. under one
# or more contributor license agreements. Licensed under the Elastic License 2.0;
# you may not use this file except in compliance with the Elastic License 2.0.
#

import json
from functools import cached_property

import aiohttp
import gidgethub
from gidgethub import QueryError
from gidgethub.abc import (
    BadGraphQLRequest,
    GraphQLAuthorizationFailure,
)
from gidgethub.aiohttp import GitHubAPI

from bridge.github.cursor import QueryRequest
from bridge.github.utils import (
    FORBIDDEN,
    GITHUB_CLOUD_URL,
    NOT_FOUND,
    UNAUTHORIZED,
    ForbiddenException,
    RateLimitExceeded,
    UnauthorizedException,
)
from bridge.logger import logger
from bridge.utils import nested_get_from_dict, ssl_context


class GitHubClient:
    """GraphQL and REST access to GitHub with a bearer token.

    Queries are never retried: callers decide what to do with a failure.
    """

    def __init__(
        self, token, base_url=GITHUB_CLOUD_URL, ssl_enabled=False, ssl_ca=None
    ):
        self._logger = logger
        self._token = token
        self.base_url = base_url.rstrip("/")

        if self.base_url == GITHUB_CLOUD_URL:
            self.endpoints = {
                "REPO": "/repos/{owner}/{project}",
                "USER": "/users/{owner}",
            }
        else:
            self.endpoints = {
                "REPO": "/v3/repos/{owner}/{project}",
                "USER": "/v3/users/{owner}",
            }
        if ssl_enabled and ssl_ca:
            self.ssl_ctx = ssl_context(certificate=ssl_ca)
        else:
            self.ssl_ctx = False

    def set_logger(self, logger_):
        self._logger = logger_

    @cached_property
    def _get_session(self):
        connector = aiohttp.TCPConnector(ssl=self.ssl_ctx)
        # each call is bounded by the caller's CancellableContext
        timeout = aiohttp.ClientTimeout(total=None)
        return aiohttp.ClientSession(
            timeout=timeout,
            raise_for_status=False,
            connector=connector,
        )

    @cached_property
    def _get_client(self):
        return GitHubAPI(
            session=self._get_session,
            requester="issue-bridge",
            oauth_token=self._token,
            base_url=self.base_url,
        )

    async def graphql(self, query, variables=None):
        """Invoke a GraphQL request.

        Args:
            query (str): GraphQL document.
            variables (dict): variables of the document.

        Raises:
            UnauthorizedException: the token is expired or revoked.
            ForbiddenException: the token lacks the permissions for the query.
            RateLimitExceeded: GitHub refused the query because of rate limits.

        Returns:
            dict: the `data` object of the response.
        """
        url = f"{self.base_url}/graphql"
        self._logger.debug(
            f"Sending POST to {url} with query: '{json.dumps(query)}' and variables: '{json.dumps(variables)}'"
        )
        try:
            return await self._get_client.graphql(
                query, endpoint=url, **(variables or {})
            )
        except GraphQLAuthorizationFailure as exception:
            msg = "Your Github token is either expired or revoked. Please check again."
            raise UnauthorizedException(msg) from exception
        except BadGraphQLRequest as exception:
            if exception.status_code == FORBIDDEN:
                msg = f"Provided GitHub token does not have the necessary permissions to perform the request for the URL: {url}."
                raise ForbiddenException(msg) from exception
            raise
        except QueryError as exception:
            errors = exception.response.get("errors", [])
            for error in errors:
                if (error.get("type") or "").lower() == "rate_limited":
                    msg = f"GitHub rate limit exceeded: {error.get('message')}"
                    raise RateLimitExceeded(msg) from exception

            msg = f"Error while executing query. Exception: {errors}"
            raise Exception(msg) from exception

    async def execute(self, request: QueryRequest):
        return await self.graphql(**request.to_dict())

    async def get_github_item(self, resource):
        """Execute request using getitem method of GitHubAPI which is using REST API.

        Args:
            resource (str): API to get the response

        Returns:
            dict/list: Response of the request
        """
        self._logger.debug(f"Getting github item: {resource}")
        try:
            return await self._get_client.getitem(resource, oauth_token=self._token)
        except gidgethub.HTTPException as exception:
            if exception.status_code == UNAUTHORIZED:
                msg = "Your Github token is either expired or revoked. Please check again."
                raise UnauthorizedException(msg) from exception
            elif exception.status_code == FORBIDDEN:
                msg = f"Provided GitHub token does not have the necessary permissions to perform the request for the URL: {resource}."
                raise ForbiddenException(msg) from exception
            raise

    async def _exists(self, resource):
        try:
            await self.get_github_item(resource)
        except gidgethub.HTTPException as exception:
            if exception.status_code == NOT_FOUND:
                return False
            raise
        return True

    async def validate_username(self, owner):
        """Whether the user or organization exists."""
        return await self._exists(self.endpoints["USER"].format(owner=owner))

    async def validate_project(self, owner, project):
        """Whether the repository exists and the token can read it."""
        return await self._exists(
            self.endpoints["REPO"].format(owner=owner, project=project)
        )

    async def get_logged_in_user(self):
        data = await self.graphql(query="query { viewer { login } }")
        return nested_get_from_dict(data, ["viewer", "login"])

    async def ping(self):
        await self.get_logged_in_user()

    async def close(self):
        if "_get_session" in self.__dict__:
            await self._get_session.close()
            del self._get_session
        self.__dict__.pop("_get_client", None)
