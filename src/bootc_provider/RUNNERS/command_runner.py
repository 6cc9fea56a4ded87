# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Blocking execution of external tools with captured combined output.
"""
import subprocess
from typing import List, Optional

from ..UTILS.log_config import get_logger

log = get_logger(__name__)


class CommandError(RuntimeError):
    """
    An external command could not be started or exited non-zero.
    """
    def __init__(self, command: List[str], returncode: Optional[int], output: str):
        self.command = list(command)
        self.returncode = returncode
        self.output = output
        if returncode is None:
            reason = f"failed to start {command[0]}"
        else:
            reason = f"exit status {returncode}"
        super().__init__(f"{reason}: {output}")


class CommandRunner:
    """
    Runs one external program to completion.
    """
    def __init__(self, name: str = "command"):
        """
        Initializes the command runner.

        Args:
            name (str): Identifier used in log lines.
        """
        self.name = name

    def run(self, command: List[str], cwd: Optional[str] = None) -> str:
        """
        Runs the command and waits for it to finish.

        Args:
            command (List[str]): Program and arguments. Never passed through a shell.
            cwd (Optional[str]): Directory to run in.

        Returns:
            str: Combined stdout and stderr. Undecodable bytes become U+FFFD.

        Raises:
            CommandError: If the program cannot be started or exits non-zero.
        """
        log.info("command.start", runner=self.name, command=command)
        try:
            completed = subprocess.run(
                command,
                cwd=cwd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding="utf-8",
                errors="replace",
                shell=False,
                check=False,
            )
        except OSError as e:
            raise CommandError(command, None, str(e)) from e

        if completed.returncode != 0:
            log.info("command.failed", runner=self.name, returncode=completed.returncode)
            raise CommandError(command, completed.returncode, completed.stdout or "")

        return completed.stdout or ""
