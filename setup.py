#
# Copyright Elasticsearch B.V. and/or licensed to Elasticsearch B.V. under one
# or more contributor license agreements. Licensed under the Elastic License 2.0;
# you may not use this file except in compliance with the Elastic License 2.0.
#
import os
import sys

from setuptools import find_packages, setup

try:
    ARCH = os.uname().machine
except Exception as e:
    ARCH = "x86_64"
    print(
        f"Defaulting to architecture '{ARCH}'. Unable to determine machine architecture due to error: {e}"
    )

HERE = os.path.dirname(os.path.abspath(__file__))
REQUIREMENTS_DIR = os.path.join(HERE, "requirements")


def ensure_python_3_10_or_higher():
    if sys.version_info < (3, 10):
        msg = "Requires Python 3.10 or higher."
        raise ValueError(msg)


ensure_python_3_10_or_higher()

from bridge import __version__  # NOQA

# We feed install_requires with the requirements files but we unpin versions so
# we don't enforce them and trap folks into dependency hell. (only works with
# `==` here)
#
# A proper production installation will do the following sequence:
#
# $ pip install -r requirements/`uname -m`.txt
# $ pip install issue-bridge
#
# Because the *pinned* dependencies is what we tested
#


def extract_req(req):
    req = req.strip().split(";")
    if len(req) > 1:
        from packaging.markers import Marker

        env_marker = req[-1].strip()
        marker = Marker(env_marker)
        if not marker.evaluate():
            return None
    req = req[0]
    req = req.split("=")
    return req[0]


def read_reqs(req_file):
    deps = []
    reqs_dir, __ = os.path.split(req_file)

    with open(req_file) as f:
        reqs = f.readlines()
        for req in reqs:
            req = req.strip()
            if req == "" or req.startswith("#"):
                continue
            if req.startswith("-r"):
                subreq_file = req.split("-r")[-1].strip()
                subreq_file = os.path.join(reqs_dir, subreq_file)
                for subreq in read_reqs(subreq_file):
                    dep = extract_req(subreq)
                    if dep is not None and dep not in deps:
                        deps.append(dep)
            else:
                dep = extract_req(req)
                if dep is not None and dep not in deps:
                    deps.append(dep)
    return deps


arch_requirements = os.path.join(REQUIREMENTS_DIR, f"{ARCH}.txt")
if not os.path.exists(arch_requirements):
    arch_requirements = os.path.join(REQUIREMENTS_DIR, "framework.txt")

install_requires = read_reqs(arch_requirements)
tests_require = read_reqs(os.path.join(REQUIREMENTS_DIR, "tests.txt"))


with open(os.path.join(HERE, "README.md")) as f:
    long_description = f.read()


classifiers = [
    "Programming Language :: Python",
    "Programming Language :: Python :: 3 :: Only",
]


setup(
    name="issue-bridge",
    version=__version__,
    packages=find_packages(include=["bridge", "bridge.*"]),
    description=("Incremental import of GitHub issues, timelines and edits."),
    long_description=long_description,
    long_description_content_type="text/markdown",
    python_requires=">=3.10",
    include_package_data=True,
    package_data={"bridge": ["VERSION"]},
    zip_safe=False,
    classifiers=classifiers,
    install_requires=install_requires,
    extras_require={"tests": tests_require},
)
