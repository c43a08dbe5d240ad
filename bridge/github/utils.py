#
# Copyright Elasticsearch B.V. and/or licensed to Elasticsearch B.V. under one
# or more contributor license agreements. Licensed under the Elastic License 2.0;
# you may not use this file except in compliance with the Elastic License 2.0.
#

TARGET = "github"
GITHUB_CLOUD_URL = "https://api.github.com"

KEY_TARGET = "target"
KEY_TOKEN = "token"
KEY_TOKEN_ID = "token_id"
KEY_OWNER = "owner"
KEY_PROJECT = "project"
KEY_URL = "url"

FORBIDDEN = 403
UNAUTHORIZED = 401
NOT_FOUND = 404

ISSUE_COMMENT = "IssueComment"


class UnauthorizedException(Exception):
    pass


class ForbiddenException(Exception):
    pass


class RateLimitExceeded(Exception):
    pass


class BadProjectURLError(ValueError):
    pass
