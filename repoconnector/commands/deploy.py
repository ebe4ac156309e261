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

import argparse
import os
import sys

from repoconnector.utils.context.command import CliCommand
from repoconnector.utils.context.context import CliContext
from repoconnector.utils.context.namespace import CliNameSpace
from repoconnector.utils.context.result import CliResult
from repoconnector.utils.maven.repository import Repository
from repoconnector.commands._common import (
    add_common_arguments,
    attach_files,
    check,
    create_connector,
    fail,
    load_config,
    parse_artifact,
)


class Deploy(CliCommand):
    def description(self) -> str:
        return """
        This is a subcommand to deploy an artifact to a remote repository.

        The repository is either taken from the configuration by id or given
        by url. Credentials default to MAVEN_USERNAME / MAVEN_PASSWORD.

        Examples:
            repoconnector deploy org.example:lib:1.0.0 --file lib.jar --pom pom.xml --repository releases
            repoconnector deploy org.example:lib:1.0.0-SNAPSHOT --file lib.jar --url https://repo.example.com/snapshots
            repoconnector deploy org.example:lib:1.0.0 --file lib.jar --url file:///srv/maven --id local-mirror
        """

    def cli(self, argv=None) -> CliNameSpace:
        parser = argparse.ArgumentParser(
            prog="repoconnector deploy",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            description=self.description(),
        )
        parser.add_argument(
            "coords",
            type=str,
            help="<groupId>:<artifactId>[:<extension>[:<classifier>]]:<version>",
        )
        parser.add_argument(
            "--file",
            type=str,
            required=True,
            help="Artifact file to deploy",
        )
        parser.add_argument(
            "--pom",
            type=str,
            default=None,
            help="POM file of the artifact, a minimal one is generated if omitted",
        )
        parser.add_argument(
            "--repository",
            type=str,
            default=None,
            help="Id of a repository from the configuration",
        )
        parser.add_argument(
            "--url",
            type=str,
            default=None,
            help="Repository URL, used instead of --repository",
        )
        parser.add_argument(
            "--id",
            type=str,
            default="remote-repository",
            help="Repository id used together with --url",
        )
        parser.add_argument(
            "--user",
            type=str,
            default=None,
            help="Repository username (default: MAVEN_USERNAME)",
        )
        parser.add_argument(
            "--password",
            type=str,
            default=None,
            help="Repository password (default: MAVEN_PASSWORD)",
        )
        parser.add_argument(
            "--repository-manager",
            action="store_true",
            help="Mark the repository given by --url as a repository manager",
        )
        add_common_arguments(parser)
        input_argv = argv if argv is not None else sys.argv[2:]
        args, unknown = parser.parse_known_args(input_argv, namespace=CliNameSpace())
        return args

    def get_repository(self, config, args) -> Repository:
        if args.url:
            return Repository(
                id=args.id,
                url=args.url,
                user=args.user or os.environ.get('MAVEN_USERNAME') or None,
                password=args.password or os.environ.get('MAVEN_PASSWORD') or None,
                repository_manager=args.repository_manager,
            )
        if not args.repository:
            fail("Either --repository or --url is required")
        repository = config.find_repository(args.repository)
        if repository is None:
            fail(f"Repository '{args.repository}' is not configured")
        if args.user:
            repository.user = args.user
        if args.password:
            repository.password = args.password
        return repository

    def exec(self, context: CliContext, args: CliNameSpace):
        config = load_config(args)
        repository = self.get_repository(config, args)
        connector = create_connector(context, config, args)
        with attach_files(parse_artifact(args.coords), args.file, args.pom) as (artifact, pom):
            print(f"Deploying {artifact} to {repository.url}")
            result = check(CliResult.capture(lambda: connector.deploy(repository, artifact, pom)))
        for deployed in result.artifacts:
            print(f"✓ Deployed: {deployed}")
