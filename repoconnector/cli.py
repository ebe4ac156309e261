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

import os
import sys
import importlib
import argparse

from repoconnector.utils.context.namespace import CliNameSpace
from repoconnector.utils.context.context import CliContext
from repoconnector.utils.context.command import CliCommand

SCRIPT_PATH = os.path.split(os.path.realpath(__file__))[0]
PACKAGE_NAME = os.path.basename(SCRIPT_PATH)


# Root Class for Command Line Interface
class Cli(CliCommand):
    def description(self) -> str:
        return """repoconnector - Maven Repository Connector

Resolve, install and deploy Maven artifacts from CI jobs.

USAGE:
    repoconnector <command> [options]

COMMANDS:
    resolve     Resolve an artifact from the configured repositories
    install     Install an artifact into the local repository
    deploy      Deploy an artifact to a remote repository
    help        Show detailed help information

EXAMPLES:
    repoconnector resolve org.example:lib:1.0.0 --target libs/
    repoconnector install org.example:lib:1.0.0 --file lib.jar --pom pom.xml
    repoconnector deploy org.example:lib:1.0.0 --file lib.jar --repository releases

For more information on a specific command:
    repoconnector <command> --help
        """

    def get_command_list(self) -> list:
        arr = []
        for command in os.listdir(os.path.join(SCRIPT_PATH, "commands")):
            if not command.startswith("_") and command.endswith(".py"):
                arr.append(os.path.splitext(os.path.basename(command))[0])
        return sorted(arr)

    def _parser(self, add_help=True) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog="repoconnector",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            description=self.description(),
            add_help=add_help,
        )
        parser.add_argument(
            "subcommand",
            metavar=f"{self.get_command_list()}",
            type=str,
            nargs='?',
            choices=self.get_command_list(),
        )
        return parser

    def cli(self, argv=None) -> CliNameSpace:
        input_argv = argv if argv is not None else sys.argv[1:]
        # Show help for the main command only (repoconnector --help),
        # subcommands handle their own --help
        if len(input_argv) == 1 and input_argv[0] in ['--help', '-h']:
            self._parser().print_help()
            sys.exit(0)

        # parse only known args - this will NOT consume --help if present
        args, unknown = self._parser(add_help=False).parse_known_args(
            input_argv[:1], namespace=CliNameSpace()
        )
        return args

    def exec(self, context: CliContext, args: CliNameSpace):
        # Check if subcommand is provided
        if not args.subcommand:
            print("ERROR: No command specified\n")
            self._parser().print_help()
            sys.exit(1)

        module = importlib.import_module(f"{PACKAGE_NAME}.commands.{args.subcommand}")
        klass = getattr(module, args.subcommand.capitalize())
        sub_cmd = klass()
        sub_cmd.exec(context, sub_cmd.cli())


def main():
    cmd = Cli()
    cmd.exec(CliContext(), cmd.cli())


if __name__ == "__main__":
    main()
