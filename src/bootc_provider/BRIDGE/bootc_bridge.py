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
In-process invocation of bootc through the libbootc_bridge shared library.

The library exports a single C function::

    int32_t bootc_run(int32_t argc, const char *const *argv);

which runs the bootc command line with ``argv[0]`` as the program name
and returns 0 on success. Errors are printed to stderr by bootc itself.
"""

import ctypes
from typing import Optional, Sequence

from ..UTILS.log_config import get_logger

PROGRAM_NAME = "bootc"
DEFAULT_LIBRARY = "libbootc_bridge.so"

log = get_logger(__name__)


class BootcExitError(RuntimeError):
    """bootc returned a non-zero exit code."""

    def __init__(self, code: int):
        self.code = code
        super().__init__(f"bootc exited with error: code {code}")


class BootcBridge:
    """
    Calls ``bootc_run`` from the bridge library.

    Not safe for concurrent use: bootc sets up process-global state, so
    callers must not invoke ``run`` from two threads at once. The call
    blocks until bootc finishes and cannot be cancelled.
    """

    def __init__(self, library_path: Optional[str] = None):
        """
        Args:
            library_path: Path or soname of the bridge library.
        """
        self.library_path = library_path or DEFAULT_LIBRARY
        self._lib: Optional[ctypes.CDLL] = None

    def _load(self) -> ctypes.CDLL:
        if self._lib is None:
            lib = ctypes.CDLL(self.library_path)
            try:
                bootc_run = lib.bootc_run
            except AttributeError as e:
                raise OSError(f"{self.library_path} does not export bootc_run") from e
            bootc_run.argtypes = [ctypes.c_int32, ctypes.POINTER(ctypes.c_char_p)]
            bootc_run.restype = ctypes.c_int32
            self._lib = lib
        return self._lib

    def run(self, args: Sequence[str]) -> None:
        """
        Runs bootc with the full argument vector.

        Args:
            args: Arguments including the program name, e.g.
                ``["bootc", "install", "to-disk", ...]``.

        Raises:
            ValueError: If ``args`` is empty.
            OSError: If the bridge library cannot be loaded or lacks bootc_run.
            BootcExitError: If bootc exits with a non-zero code.
        """
        if not args:
            raise ValueError("bootc argument vector must include the program name")

        lib = self._load()
        argv = (ctypes.c_char_p * len(args))(*[arg.encode("utf-8") for arg in args])

        log.info("bootc.run", argv=list(args))
        rc = lib.bootc_run(len(args), argv)
        if rc != 0:
            raise BootcExitError(rc)
