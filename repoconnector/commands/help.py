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


class Help(CliCommand):
    def description(self) -> str:
        return """Show detailed help information for repoconnector commands.

Use 'repoconnector <command> --help' for command-specific help.
        """

    def cli(self, argv=None) -> CliNameSpace:
        parser = argparse.ArgumentParser(
            prog="repoconnector help",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            description=self.description(),
        )
        input_argv = argv if argv is not None else sys.argv[2:]
        args, unknown = parser.parse_known_args(input_argv, namespace=CliNameSpace())
        return args

    def exec(self, context: CliContext, args: CliNameSpace):
        print("\n" + "=" * 70)
        print("repoconnector - Maven Repository Connector")
        print("=" * 70)

        print("\n1. Resolve an artifact")
        print("\n  repoconnector resolve <coords> [--target <dir>]")

        print("\n2. Install an artifact into the local repository")
        print("\n  repoconnector install <coords> --file <file> [--pom <pom>]")

        print("\n3. Deploy an artifact to a remote repository")
        print("\n  repoconnector deploy <coords> --file <file> [--pom <pom>]")
        print("                      (--repository <id> | --url <url> [--id <id>])")
        print("                      [--user <user>] [--password <password>]")

        print("\n  Common options:")
        print("    --config <file>         Configuration file (default: REPOCONNECTOR.toml)")
        print("    --local-repo <dir>      Local repository (default: ~/.m2/repository)")
        print("    -v, --verbose           Print every transfer and repository event")

        print("\n  Coordinates:")
        print("    <groupId>:<artifactId>[:<extension>[:<classifier>]]:<version>")

        print("\n" + "=" * 70)
        print("Configuration (REPOCONNECTOR.toml)")
        print("=" * 70)
        print("""
  [local]
  path = "~/.m2/repository"

  [policy]
  snapshot_update = "daily"      # always | daily | never | interval:<minutes>
  snapshot_checksum = "warn"     # fail | warn | ignore
  release_update = "daily"
  release_checksum = "warn"

  [[repositories]]
  id = "central"
  url = "https://repo.maven.apache.org/maven2/"
  user = "${MAVEN_USERNAME}"
  password = "${MAVEN_PASSWORD}"
""")

        print("Environment variables:")
        print("  MAVEN_USERNAME / MAVEN_PASSWORD   Default deploy credentials")
