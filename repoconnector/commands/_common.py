#
# Copyright 2024 zhlinh and repoconnector Project Authors. All rights reserved.
# Use of this source code is governed by a MIT-style
# license that can be found at
#
# https://opensource.org/license/MIT
#
# The above copyright notice and this permission
# notice shall be included in all copies or
# substantial portions of the Software.

"""Helpers shared by the resolve, install and deploy subcommands."""

import argparse
import os
import sys
import tempfile
from contextlib import contextmanager

from repoconnector.utils.context.context import CliContext
from repoconnector.utils.context.result import CliResult
from repoconnector.utils.maven.artifact import Artifact
from repoconnector.utils.maven.config import ConnectorConfig, load_connector_config
from repoconnector.utils.maven.connector import RepositoryConnector
from repoconnector.utils.maven.metadata import build_pom


def add_common_arguments(parser: argparse.ArgumentParser):
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Configuration file (default: REPOCONNECTOR.toml in the current directory)",
    )
    parser.add_argument(
        "--local-repo",
        type=str,
        default=None,
        help="Local repository directory (default: from configuration or ~/.m2/repository)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Print every transfer and repository event",
    )


def fail(message: str):
    print(f"ERROR: {message}")
    sys.exit(1)


def load_config(args) -> ConnectorConfig:
    """Load and validate the configuration, exit on errors."""
    try:
        config = load_connector_config(args.config)
    except (OSError, ValueError) as e:
        fail(str(e))

    is_valid, error_msg = config.validate()
    if not is_valid:
        fail(f"Configuration validation failed: {error_msg}")
    return config


def create_connector(context: CliContext, config: ConnectorConfig, args) -> RepositoryConnector:
    if args.verbose:
        print("Configuration:")
        print(config.get_config_summary())
    return config.create_connector(
        context.logger,
        extended_logging=True if args.verbose else None,
        local_repository=args.local_repo,
    )


def parse_artifact(coords: str) -> Artifact:
    try:
        return Artifact.parse(coords)
    except ValueError as e:
        fail(str(e))


@contextmanager
def attach_files(artifact: Artifact, file_path: str, pom_path: str):
    """
    Attach the artifact file and its POM.

    Yields:
        Tuple of (artifact, pom), a minimal POM is generated when pom_path is
        None and removed again when the block exits
    """
    if not os.path.isfile(file_path):
        fail(f"File not found: {file_path}")

    if pom_path:
        if not os.path.isfile(pom_path):
            fail(f"POM not found: {pom_path}")
        yield artifact.set_file(file_path), artifact.pom().set_file(pom_path)
        return

    with tempfile.TemporaryDirectory() as tmp_dir:
        pom_path = os.path.join(tmp_dir, f"{artifact.artifact_id}-{artifact.version}.pom")
        with open(pom_path, "wb") as f:
            f.write(build_pom(artifact.group_id, artifact.artifact_id,
                              artifact.version, artifact.extension))
        print(f"Generated POM for {artifact}")
        yield artifact.set_file(file_path), artifact.pom().set_file(pom_path)


def check(result: CliResult):
    """Exit with the result's error, or return its value."""
    if result.is_failure():
        print(f"ERROR: {result.get_error()}")
        sys.exit(result.exit_code)
    return result.get_value()
