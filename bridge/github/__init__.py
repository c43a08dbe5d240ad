#
# Copyright Elasticsearch B.V. and/or licensed to Elasticsearch B.V. under one
# or more contributor license agreements. Licensed under the Elastic License 2.0;
# you may not use this file except in compliance with the Elastic License 2.0.
#

from .bridge import GitHubBridge
from .client import GitHubClient
from .iterator import (
    CommentEditEvent,
    IssueEditEvent,
    IssueEvent,
    IssueIterator,
    QueryExecutor,
    TimelineItemEvent,
)
from .utils import (
    BadProjectURLError,
    ForbiddenException,
    RateLimitExceeded,
    UnauthorizedException,
)

__all__ = [
    "GitHubBridge",
    "GitHubClient",
    "IssueIterator",
    "QueryExecutor",
    "IssueEvent",
    "IssueEditEvent",
    "TimelineItemEvent",
    "CommentEditEvent",
    "BadProjectURLError",
    "ForbiddenException",
    "RateLimitExceeded",
    "UnauthorizedException",
]
