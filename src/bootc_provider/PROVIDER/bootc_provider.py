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
The bootc provider: registers the bootc_image resource.
"""
from typing import Callable, List, Optional

from .. import __version__
from ..CONFIG.settings import ProviderSettings
from ..FRAMEWORK.provider import (
    ConfigureRequest,
    ConfigureResponse,
    Provider,
    ProviderMetadataResponse,
    ProviderSchemaResponse,
    ResourceFactory,
)
from ..FRAMEWORK.schema import Schema
from ..RESOURCES.image_resource import new_image_resource

PROVIDER_TYPE_NAME = "bootc"


class BootcProvider(Provider):
    """
    Provider for bootc image builds. Takes no configuration attributes;
    tool locations come from ProviderSettings.
    """

    def __init__(self, version: str = __version__, settings: Optional[ProviderSettings] = None):
        self.version = version
        self.settings = settings

    def metadata(self, response: ProviderMetadataResponse) -> None:
        response.type_name = PROVIDER_TYPE_NAME
        response.version = self.version

    def schema(self, response: ProviderSchemaResponse) -> None:
        response.schema = Schema(description="Build qcow2 disk images from bootc container images.")

    def configure(self, request: ConfigureRequest, response: ConfigureResponse) -> None:
        response.resource_data = self.settings or ProviderSettings()

    def resources(self) -> List[ResourceFactory]:
        return [new_image_resource]

    def data_sources(self) -> List[Callable]:
        return []


def new(version: str = __version__, settings: Optional[ProviderSettings] = None) -> Callable[[], Provider]:
    """Returns a factory producing a configured BootcProvider."""
    def factory() -> Provider:
        return BootcProvider(version=version, settings=settings)
    return factory
