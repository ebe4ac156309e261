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

from repoconnector.utils.maven.exceptions import RepositoryException


# Outcome of a connector call made by a subcommand
class CliResult:
    def __init__(self, value=None, error=None):
        self.value = value
        self.error = error

    @classmethod
    def capture(cls, call) -> "CliResult":
        """Run call, engine and configuration errors become the result's error."""
        try:
            return cls(value=call())
        except (RepositoryException, ValueError) as e:
            return cls(error=e)

    def is_success(self):
        return self.error is None

    def is_failure(self):
        return self.error is not None

    @property
    def exit_code(self) -> int:
        return 0 if self.is_success() else 1

    def get_value(self, default=None):
        return self.value if self.is_success() else default

    def get_error(self, default=None):
        return self.error if self.is_failure() else default
