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
The bootc_image resource.
"""
from typing import Any, Callable, Optional

from pydantic import ValidationError

from ..BUILDERS.disk_image_builder import BuildStepError, DiskImageBuilder, remove_quietly
from ..CONFIG.settings import ProviderSettings
from ..FRAMEWORK.resource import (
    CreateRequest,
    CreateResponse,
    DeleteRequest,
    DeleteResponse,
    MetadataRequest,
    MetadataResponse,
    ReadRequest,
    ReadResponse,
    Resource,
    SchemaResponse,
    UpdateRequest,
    UpdateResponse,
)
from ..FRAMEWORK.schema import (
    BoolAttribute,
    ListAttribute,
    Schema,
    StringAttribute,
    requires_replace,
    use_state_for_unknown,
)
from ..MODELS.image_resource import DEFAULT_DISK_SIZE, DEFAULT_OUTPUT_FILENAME, ImageResourceModel
from ..UTILS.log_config import get_logger
from ..VALIDATORS.string_one_of import string_one_of

FILESYSTEMS = ("xfs", "ext4", "btrfs")
BOOTLOADERS = ("grub", "systemd", "none")

log = get_logger(__name__)


class ImageResource(Resource):
    """
    Builds a qcow2 disk image on create and deletes it on destroy.

    The image is never updated in place: every input change requires
    replacement. Read performs no drift detection.
    """

    def __init__(self, builder_factory: Optional[Callable[[ProviderSettings], DiskImageBuilder]] = None):
        self.settings = ProviderSettings()
        self._builder_factory = builder_factory or DiskImageBuilder

    def metadata(self, request: MetadataRequest, response: MetadataResponse) -> None:
        response.type_name = request.provider_type_name + "_image"

    def schema(self, response: SchemaResponse) -> None:
        response.schema = Schema(
            description=(
                "Builds a qcow2 disk image from a bootc container image using "
                "bootc install to-disk --via-loopback."
            ),
            attributes={
                "source_image": StringAttribute(
                    description="Container image reference (e.g. quay.io/fedora/fedora-coreos:stable).",
                    required=True,
                    plan_modifiers=[requires_replace()],
                ),
                "output_path": StringAttribute(
                    description="Directory where the disk image will be written.",
                    required=True,
                    plan_modifiers=[requires_replace()],
                ),
                "disk_size": StringAttribute(
                    description="Total raw disk image size (passed to truncate -s). Supports K, M, G, T suffixes.",
                    optional=True,
                    computed=True,
                    default=DEFAULT_DISK_SIZE,
                ),
                "output_filename": StringAttribute(
                    description="Filename for the resulting qcow2 image within output_path.",
                    optional=True,
                    computed=True,
                    default=DEFAULT_OUTPUT_FILENAME,
                ),
                "filesystem": StringAttribute(
                    description="Root filesystem type: xfs, ext4, or btrfs.",
                    optional=True,
                    validators=[string_one_of(*FILESYSTEMS)],
                ),
                "root_size": StringAttribute(
                    description=(
                        "Size of the root partition. Allowed suffixes: M (MiB), G (GiB), T (TiB). "
                        "By default all remaining disk space is used."
                    ),
                    optional=True,
                ),
                "kargs": ListAttribute(
                    description=(
                        'Kernel arguments to pass to the installed system '
                        '(e.g. ["console=ttyS0,115200n8", "nosmt"]).'
                    ),
                    optional=True,
                ),
                "root_ssh_authorized_keys": StringAttribute(
                    description="Path to an authorized_keys file to inject into the root account via systemd tmpfiles.d.",
                    optional=True,
                ),
                "target_imgref": StringAttribute(
                    description="Container image reference for subsequent bootc upgrades. If unset, defaults to the source image.",
                    optional=True,
                ),
                "disable_selinux": BoolAttribute(
                    description="Disable SELinux in the installed system.",
                    optional=True,
                    computed=True,
                    default=False,
                ),
                "generic_image": BoolAttribute(
                    description=(
                        "Build a generic disk image (all bootloader types installed, firmware changes skipped). "
                        "Enabled by default for loopback installs."
                    ),
                    optional=True,
                    computed=True,
                    default=True,
                ),
                "bootloader": StringAttribute(
                    description="Bootloader to use: grub, systemd, or none.",
                    optional=True,
                    validators=[string_one_of(*BOOTLOADERS)],
                ),
                "image_path": StringAttribute(
                    description="Full path to the resulting qcow2 file.",
                    computed=True,
                    plan_modifiers=[use_state_for_unknown()],
                ),
            },
        )

    def configure(self, provider_data: Any) -> None:
        if isinstance(provider_data, ProviderSettings):
            self.settings = provider_data

    def create(self, request: CreateRequest, response: CreateResponse) -> None:
        try:
            data = ImageResourceModel.from_values(request.plan)
        except ValidationError as e:
            response.diagnostics.add_error("Invalid plan", str(e))
            return

        builder = self._builder_factory(self.settings)
        try:
            image_path = builder.build(data)
        except BuildStepError as e:
            response.diagnostics.add_error(e.summary, e.detail)
            return

        response.state = data.model_copy(update={"image_path": image_path}).to_state()

    def read(self, request: ReadRequest, response: ReadResponse) -> None:
        response.state = request.state

    def update(self, request: UpdateRequest, response: UpdateResponse) -> None:
        response.diagnostics.add_error(
            "Update not supported",
            "bootc_image is immutable. Changes require replacement.",
        )

    def delete(self, request: DeleteRequest, response: DeleteResponse) -> None:
        image_path = (request.state or {}).get("image_path")
        if image_path is None:
            return
        log.info("image.delete", image_path=image_path)
        remove_quietly(image_path)


def new_image_resource() -> Resource:
    return ImageResource()
