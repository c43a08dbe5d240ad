#
# Copyright Elasticsearch B.V. and/or licensed to Elasticsearch B.V. under one
# or more contributor license agreements. Licensed under the Elastic License 2.0;
# you may not use this file except in compliance with the Elastic License 2.0.
#

import re

from bridge.exceptions import ConfigurationError
from bridge.github.utils import (
    KEY_OWNER,
    KEY_PROJECT,
    KEY_TARGET,
    KEY_TOKEN,
    KEY_TOKEN_ID,
    KEY_URL,
    TARGET,
    BadProjectURLError,
)

PROJECT_URL_PATTERN = re.compile(r"github\.com[/:]([a-zA-Z0-9\-_]+)/([a-zA-Z0-9\-_.]+)")


def split_url(url):
    """Extract the owner and project from a GitHub repository URL.

    The '.git' extension is removed before parsing, GitHub removes it from
    project names at their creation anyway.
    """
    clean_url = url.removesuffix(".git")

    match = PROJECT_URL_PATTERN.search(clean_url)
    if match is None:
        msg = f"bad project url: {url}"
        raise BadProjectURLError(msg)

    return match.group(1), match.group(2)


def get_valid_github_remote_urls(remotes):
    """Short `github.com/owner/project` URLs of the remotes pointing to GitHub."""
    urls = []
    for url in remotes.values():
        try:
            owner, project = split_url(url)
        except BadProjectURLError:
            continue
        urls.append(f"github.com/{owner}/{project}")

    return sorted(urls)


def resolve_project(conf):
    """Owner and project, from the explicit keys or else from the project URL."""
    owner, project = conf.get(KEY_OWNER), conf.get(KEY_PROJECT)
    if owner and project:
        return owner, project

    if conf.get(KEY_URL):
        try:
            return split_url(conf[KEY_URL])
        except BadProjectURLError as exception:
            raise ConfigurationError(str(exception)) from exception

    return owner, project


def validate_config(conf):
    """Check the `github` section of the configuration.

    Raises:
        ConfigurationError: when a key is missing or has an unexpected value.
    """
    if not conf.get(KEY_TARGET):
        msg = f"missing {KEY_TARGET} key"
        raise ConfigurationError(msg)
    if conf[KEY_TARGET] != TARGET:
        msg = f"unexpected target name: {conf[KEY_TARGET]}"
        raise ConfigurationError(msg)

    if not conf.get(KEY_TOKEN_ID) and not conf.get(KEY_TOKEN):
        msg = f"missing {KEY_TOKEN_ID} key"
        raise ConfigurationError(msg)

    owner, project = resolve_project(conf)
    if not owner:
        msg = f"missing {KEY_OWNER} key"
        raise ConfigurationError(msg)
    if not project:
        msg = f"missing {KEY_PROJECT} key"
        raise ConfigurationError(msg)
