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
import shutil
import sys

from repoconnector.utils.context.command import CliCommand
from repoconnector.utils.context.context import CliContext
from repoconnector.utils.context.namespace import CliNameSpace
from repoconnector.utils.context.result import CliResult
from repoconnector.commands._common import (
    add_common_arguments,
    check,
    create_connector,
    fail,
    load_config,
    parse_artifact,
)


class Resolve(CliCommand):
    def description(self) -> str:
        return """
        This is a subcommand to resolve an artifact from the configured repositories.

        Only the requested artifact is downloaded, its direct dependencies
        are listed in the dependency tree.

        Examples:
            repoconnector resolve org.example:lib:1.0.0
            repoconnector resolve org.example:lib:aar:1.0.0 --target libs/
            repoconnector resolve org.example:lib:jar:sources:1.0.0-SNAPSHOT --verbose
        """

    def cli(self, argv=None) -> CliNameSpace:
        parser = argparse.ArgumentParser(
            prog="repoconnector resolve",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            description=self.description(),
        )
        parser.add_argument(
            "coords",
            type=str,
            help="<groupId>:<artifactId>[:<extension>[:<classifier>]]:<version>",
        )
        parser.add_argument(
            "--target",
            type=str,
            default=None,
            help="Directory to copy the resolved files to",
        )
        add_common_arguments(parser)
        input_argv = argv if argv is not None else sys.argv[2:]
        args, unknown = parser.parse_known_args(input_argv, namespace=CliNameSpace())
        return args

    def exec(self, context: CliContext, args: CliNameSpace):
        config = load_config(args)
        connector = create_connector(context, config, args)
        artifact = parse_artifact(args.coords)

        result = check(CliResult.capture(lambda: connector.resolve(
            artifact.group_id,
            artifact.artifact_id,
            artifact.classifier,
            artifact.extension,
            artifact.version,
        )))

        print("\nDependency tree:")
        self.print_tree(result.root_node)

        for file in result.resolved_files:
            print(f"Resolved: {file}")

        if args.target:
            self.copy_files(result.resolved_files, args.target)

    def print_tree(self, node, depth=0):
        print(f"  {'   ' * depth}{node.dependency}")
        for child in node.children:
            self.print_tree(child, depth + 1)

    def copy_files(self, files, target):
        try:
            os.makedirs(target, exist_ok=True)
            for file in files:
                dest = os.path.join(target, os.path.basename(file))
                shutil.copyfile(file, dest)
                print(f"Copied {file} to {dest}")
        except OSError as e:
            fail(f"Failed to copy resolved files to {target}: {e}")
