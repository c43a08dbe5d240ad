#
# Copyright Elasticsearch B.V. and/or licensed to Elasticsearch B.V. under one
# or more contributor license agreements. Licensed under the Elastic License 2.0;
# you may not use this file except in compliance with the Elastic License 2.0.
#

from enum import Enum

# GitHub returns user content edits newest first, hence `last`/`before`
USER_CONTENT_EDITS_FIELDS = """
        nodes {
            id
            createdAt
            editedAt
            deletedAt
            diff
            editor {
                login
            }
            deletedBy {
                login
            }
        }
        pageInfo {
            hasNextPage
            hasPreviousPage
            startCursor
            endCursor
        }
"""

ACTOR_FIELDS = """
    login
"""

ISSUES_CONNECTION = """
    issues(
        first: $issueFirst
        after: $issueAfter
        orderBy: {field: UPDATED_AT, direction: ASC}
        filterBy: {since: $issueSince}
    )
"""


class GithubQuery(Enum):
    ISSUE_TIMELINE_QUERY = f"""
    query (
        $owner: String!
        $name: String!
        $issueFirst: Int!
        $issueAfter: String
        $issueSince: DateTime
        $timelineFirst: Int!
        $timelineAfter: String
        $issueEditLast: Int!
        $issueEditBefore: String
        $commentEditLast: Int!
        $commentEditBefore: String
    ) {{
    repository(owner: $owner, name: $name) {{
        {ISSUES_CONNECTION} {{
        pageInfo {{
            hasNextPage
            hasPreviousPage
            startCursor
            endCursor
        }}
        nodes {{
            id
            number
            url
            title
            body
            createdAt
            updatedAt
            author {{
            {ACTOR_FIELDS}
            }}
            userContentEdits(last: $issueEditLast, before: $issueEditBefore) {{
            {USER_CONTENT_EDITS_FIELDS}
            }}
            timelineItems(first: $timelineFirst, after: $timelineAfter) {{
            pageInfo {{
                hasNextPage
                hasPreviousPage
                startCursor
                endCursor
            }}
            edges {{
                cursor
                node {{
                __typename
                ... on IssueComment {{
                    id
                    url
                    body
                    createdAt
                    author {{
                    {ACTOR_FIELDS}
                    }}
                    userContentEdits(last: $commentEditLast, before: $commentEditBefore) {{
                    {USER_CONTENT_EDITS_FIELDS}
                    }}
                }}
                ... on LabeledEvent {{
                    id
                    createdAt
                    actor {{
                    {ACTOR_FIELDS}
                    }}
                    label {{
                    name
                    color
                    }}
                }}
                ... on UnlabeledEvent {{
                    id
                    createdAt
                    actor {{
                    {ACTOR_FIELDS}
                    }}
                    label {{
                    name
                    color
                    }}
                }}
                ... on ClosedEvent {{
                    id
                    createdAt
                    actor {{
                    {ACTOR_FIELDS}
                    }}
                }}
                ... on ReopenedEvent {{
                    id
                    createdAt
                    actor {{
                    {ACTOR_FIELDS}
                    }}
                }}
                ... on RenamedTitleEvent {{
                    id
                    createdAt
                    currentTitle
                    previousTitle
                    actor {{
                    {ACTOR_FIELDS}
                    }}
                }}
                }}
            }}
            }}
        }}
        }}
    }}
    }}
    """
    ISSUE_EDIT_QUERY = f"""
    query (
        $owner: String!
        $name: String!
        $issueFirst: Int!
        $issueAfter: String
        $issueSince: DateTime
        $issueEditLast: Int!
        $issueEditBefore: String
    ) {{
    repository(owner: $owner, name: $name) {{
        {ISSUES_CONNECTION} {{
        nodes {{
            id
            userContentEdits(last: $issueEditLast, before: $issueEditBefore) {{
            {USER_CONTENT_EDITS_FIELDS}
            }}
        }}
        }}
    }}
    }}
    """
    COMMENT_EDIT_QUERY = f"""
    query (
        $owner: String!
        $name: String!
        $issueFirst: Int!
        $issueAfter: String
        $issueSince: DateTime
        $timelineFirst: Int!
        $timelineAfter: String
        $commentEditLast: Int!
        $commentEditBefore: String
    ) {{
    repository(owner: $owner, name: $name) {{
        {ISSUES_CONNECTION} {{
        nodes {{
            id
            timelineItems(first: $timelineFirst, after: $timelineAfter) {{
            nodes {{
                __typename
                ... on IssueComment {{
                id
                userContentEdits(last: $commentEditLast, before: $commentEditBefore) {{
                {USER_CONTENT_EDITS_FIELDS}
                }}
                }}
            }}
            }}
        }}
        }}
    }}
    }}
    """
