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
import sys

from repoconnector.utils.context.command import CliCommand
from repoconnector.utils.context.context import CliContext
from repoconnector.utils.context.namespace import CliNameSpace
from repoconnector.utils.context.result import CliResult
from repoconnector.commands._common import (
    add_common_arguments,
    attach_files,
    check,
    create_connector,
    load_config,
    parse_artifact,
)


class Install(CliCommand):
    def description(self) -> str:
        return """
        This is a subcommand to install an artifact into the local repository.

        Examples:
            repoconnector install org.example:lib:1.0.0 --file build/lib.jar --pom pom.xml
            repoconnector install org.example:lib:aar:1.0.0 --file lib.aar
            repoconnector install org.example:lib:1.0.0 --file lib.jar --local-repo /tmp/m2
        """

    def cli(self, argv=None) -> CliNameSpace:
        parser = argparse.ArgumentParser(
            prog="repoconnector install",
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
            help="Artifact file to install",
        )
        parser.add_argument(
            "--pom",
            type=str,
            default=None,
            help="POM file of the artifact, a minimal one is generated if omitted",
        )
        add_common_arguments(parser)
        input_argv = argv if argv is not None else sys.argv[2:]
        args, unknown = parser.parse_known_args(input_argv, namespace=CliNameSpace())
        return args

    def exec(self, context: CliContext, args: CliNameSpace):
        config = load_config(args)
        connector = create_connector(context, config, args)
        with attach_files(parse_artifact(args.coords), args.file, args.pom) as (artifact, pom):
            print(f"Installing {artifact} to {connector.local_repository}")
            result = check(CliResult.capture(lambda: connector.install(artifact, pom)))
        for installed in result.artifacts:
            print(f"✓ Installed: {installed.file}")
