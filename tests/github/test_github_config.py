#
# Copyright Elasticsearch B.V. and/or licensed to Elasticsearch B.V. under one
# or more contributor license agreements. Licensed under the Elastic License 2.0;
# you may not use this file except in compliance with the Elastic License 2.0.
#
import pytest

from bridge.exceptions import ConfigurationError
from bridge.github.config import (
    get_valid_github_remote_urls,
    resolve_project,
    split_url,
    validate_config,
)
from bridge.github.utils import BadProjectURLError


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://github.com/octo/hello", ("octo", "hello")),
        ("https://github.com/octo/hello.git", ("octo", "hello")),
        ("git@github.com:octo/hello.git", ("octo", "hello")),
        ("https://github.com/octo/hello.js/", ("octo", "hello.js")),
        ("https://github.com/octo/hello/issues/1", ("octo", "hello")),
        ("github.com/my-org/my_project", ("my-org", "my_project")),
    ],
)
def test_split_url(url, expected):
    assert split_url(url) == expected


@pytest.mark.parametrize(
    "url",
    ["https://gitlab.com/octo/hello", "https://github.com/octo", "not an url"],
)
def test_split_bad_url(url):
    with pytest.raises(BadProjectURLError, match="bad project url"):
        split_url(url)


def test_get_valid_github_remote_urls():
    remotes = {
        "upstream": "git@github.com:octo/hello.git",
        "origin": "https://github.com/me/hello",
        "mirror": "https://gitlab.com/me/hello",
    }

    assert get_valid_github_remote_urls(remotes) == [
        "github.com/me/hello",
        "github.com/octo/hello",
    ]


def test_resolve_project_prefers_explicit_keys():
    conf = {
        "owner": "octo",
        "project": "hello",
        "url": "https://github.com/other/world",
    }

    assert resolve_project(conf) == ("octo", "hello")


def test_resolve_project_from_url():
    assert resolve_project({"url": "https://github.com/octo/hello"}) == (
        "octo",
        "hello",
    )


def test_resolve_project_from_bad_url():
    with pytest.raises(ConfigurationError):
        resolve_project({"url": "https://gitlab.com/octo/hello"})


def test_validate_config():
    validate_config(
        {"target": "github", "token": "ghp_xxx", "owner": "octo", "project": "hello"}
    )
    validate_config(
        {
            "target": "github",
            "token_id": "3f2a",
            "url": "https://github.com/octo/hello",
        }
    )


@pytest.mark.parametrize(
    "conf, message",
    [
        ({"token": "t", "owner": "o", "project": "p"}, "missing target key"),
        (
            {"target": "gitlab", "token": "t", "owner": "o", "project": "p"},
            "unexpected target name: gitlab",
        ),
        ({"target": "github", "owner": "o", "project": "p"}, "missing token_id key"),
        ({"target": "github", "token": "t", "project": "p"}, "missing owner key"),
        ({"target": "github", "token": "t", "owner": "o"}, "missing project key"),
    ],
)
def test_validate_config_errors(conf, message):
    with pytest.raises(ConfigurationError, match=message):
        validate_config(conf)
