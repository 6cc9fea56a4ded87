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
Builds a qcow2 disk image from a bootc container image.

The pipeline is strictly sequential:

1. create the output directory
2. allocate a sparse raw file with ``truncate``
3. ``bootc install to-disk --via-loopback`` into the raw file
4. ``qemu-img convert`` the raw file to qcow2
5. remove the raw file
"""

import os
from typing import List, Optional

from ..BRIDGE.bootc_bridge import BootcBridge, PROGRAM_NAME
from ..CONFIG.settings import ProviderSettings
from ..FRAMEWORK.values import is_unknown
from ..MODELS.image_resource import ImageResourceModel
from ..RUNNERS.command_runner import CommandError, CommandRunner
from ..UTILS.log_config import get_logger

RAW_IMAGE_NAME = "disk.raw"
INSTALL_SUBCOMMAND = ["install", "to-disk", "--via-loopback"]

log = get_logger(__name__)


class InvalidKernelArgumentsError(ValueError):
    """The kargs list is unknown or holds a value that is not a known string."""


class BuildStepError(RuntimeError):
    """
    A pipeline step failed.

    ``summary`` names the step; ``detail`` carries the underlying error and
    any captured tool output.
    """
    def __init__(self, summary: str, detail: str):
        self.summary = summary
        self.detail = detail
        super().__init__(f"{summary}: {detail}")


def raw_image_path(output_path: str) -> str:
    """Returns the intermediate raw image path inside ``output_path``."""
    return os.path.join(output_path, RAW_IMAGE_NAME)


def final_image_path(output_path: str, output_filename: str) -> str:
    """Returns the path of the converted image."""
    return os.path.join(output_path, output_filename)


def _kernel_arguments(kargs) -> List[str]:
    if is_unknown(kargs):
        raise InvalidKernelArgumentsError("kargs is not known yet")
    values = []
    for index, karg in enumerate(kargs):
        if is_unknown(karg):
            raise InvalidKernelArgumentsError(f"kargs[{index}] is not known yet")
        if not isinstance(karg, str):
            raise InvalidKernelArgumentsError(
                f"kargs[{index}] must be a string, got {type(karg).__name__}"
            )
        values.append(karg)
    return values


def build_install_args(model: ImageResourceModel, raw_path: str) -> List[str]:
    """
    Assembles the bootc argument vector for an install into ``raw_path``.

    Null optional attributes contribute nothing. Boolean attributes add a
    bare flag only when true; ``generic_image=False`` therefore just omits
    ``--generic-image`` and leaves the choice to bootc.

    Args:
        model: The resource attributes.
        raw_path: Target raw image, passed as the trailing positional argument.

    Returns:
        The argument vector, program name first.

    Raises:
        InvalidKernelArgumentsError: If ``kargs`` is unknown or holds an unknown or non-string element.
    """
    args = [PROGRAM_NAME, *INSTALL_SUBCOMMAND, "--source-imgref", model.source_image]

    if model.generic_image:
        args.append("--generic-image")
    if model.filesystem is not None:
        args += ["--filesystem", model.filesystem]
    if model.root_size is not None:
        args += ["--root-size", model.root_size]
    if model.kargs is not None:
        for karg in _kernel_arguments(model.kargs):
            args += ["--karg", karg]
    if model.root_ssh_authorized_keys is not None:
        args += ["--root-ssh-authorized-keys", model.root_ssh_authorized_keys]
    if model.target_imgref is not None:
        args += ["--target-imgref", model.target_imgref]
    if model.disable_selinux:
        args.append("--disable-selinux")
    if model.bootloader is not None:
        args += ["--bootloader", model.bootloader]

    args.append(raw_path)
    return args


def remove_quietly(path: str) -> None:
    """Best-effort removal; errors are logged and otherwise ignored."""
    try:
        os.remove(path)
    except OSError as e:
        log.debug("cleanup.skipped", path=path, error=str(e))


class DiskImageBuilder:
    """
    Runs the build pipeline for one image. Builds must not overlap:
    the bootc bridge is not reentrant.
    """

    def __init__(self,
                 settings: Optional[ProviderSettings] = None,
                 bridge: Optional[BootcBridge] = None,
                 runner: Optional[CommandRunner] = None):
        """
        Initializes the builder.

        :param settings: Tool locations; defaults are used when omitted.
        :param bridge: bootc bridge, created from settings when omitted.
        :param runner: Runner for truncate and qemu-img.
        """
        self.settings = settings or ProviderSettings()
        self.bridge = bridge or BootcBridge(self.settings.bridge_library)
        self.runner = runner or CommandRunner("disk-image")

    def build(self, model: ImageResourceModel) -> str:
        """
        Builds the image described by ``model``.

        On a failed bootc install (or invalid kargs) the raw file is removed.
        On a failed conversion it is left in place.

        :param model: Resource attributes.
        :return: Path of the qcow2 image.
        :raises BuildStepError: If any step fails.
        """
        out_dir = model.output_path
        raw_path = raw_image_path(out_dir)
        qcow2_path = final_image_path(out_dir, model.output_filename)
        blog = log.bind(source_image=model.source_image, image_path=qcow2_path)

        try:
            os.makedirs(out_dir, mode=0o755, exist_ok=True)
        except OSError as e:
            raise BuildStepError("Failed to create output directory", str(e)) from e

        blog.info("build.allocate", raw_path=raw_path, disk_size=model.disk_size)
        try:
            self.runner.run([self.settings.truncate_binary, "-s", model.disk_size, raw_path])
        except CommandError as e:
            raise BuildStepError("Failed to create raw disk image", str(e)) from e

        try:
            args = build_install_args(model, raw_path)
        except InvalidKernelArgumentsError as e:
            remove_quietly(raw_path)
            raise BuildStepError("Invalid kargs", str(e)) from e

        blog.info("build.install")
        try:
            self.bridge.run(args)
        except (RuntimeError, OSError) as e:
            remove_quietly(raw_path)
            raise BuildStepError("bootc install failed", str(e)) from e

        blog.info("build.convert")
        try:
            self.runner.run([
                self.settings.qemu_img_binary, "convert",
                "-f", "raw", "-O", "qcow2",
                raw_path, qcow2_path,
            ])
        except CommandError as e:
            raise BuildStepError("qemu-img convert failed", str(e)) from e

        remove_quietly(raw_path)
        blog.info("build.done")
        return qcow2_path
