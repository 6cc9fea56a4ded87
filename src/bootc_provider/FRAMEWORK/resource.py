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
Resource lifecycle contract: metadata, schema and CRUD requests/responses.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .diagnostics import Diagnostics
from .schema import Schema


@dataclass
class MetadataRequest:
    provider_type_name: str = ""


@dataclass
class MetadataResponse:
    type_name: str = ""


@dataclass
class SchemaResponse:
    schema: Schema = field(default_factory=Schema)
    diagnostics: Diagnostics = field(default_factory=Diagnostics)


@dataclass
class CreateRequest:
    plan: Dict[str, Any] = field(default_factory=dict)


@dataclass
class CreateResponse:
    state: Optional[Dict[str, Any]] = None
    diagnostics: Diagnostics = field(default_factory=Diagnostics)


@dataclass
class ReadRequest:
    state: Optional[Dict[str, Any]] = None


@dataclass
class ReadResponse:
    state: Optional[Dict[str, Any]] = None
    diagnostics: Diagnostics = field(default_factory=Diagnostics)


@dataclass
class UpdateRequest:
    plan: Dict[str, Any] = field(default_factory=dict)
    state: Optional[Dict[str, Any]] = None


@dataclass
class UpdateResponse:
    state: Optional[Dict[str, Any]] = None
    diagnostics: Diagnostics = field(default_factory=Diagnostics)


@dataclass
class DeleteRequest:
    state: Optional[Dict[str, Any]] = None


@dataclass
class DeleteResponse:
    diagnostics: Diagnostics = field(default_factory=Diagnostics)


class Resource(ABC):
    """
    A managed resource kind. The host calls these methods synchronously,
    one request at a time.
    """

    @abstractmethod
    def metadata(self, request: MetadataRequest, response: MetadataResponse) -> None:
        ...

    @abstractmethod
    def schema(self, response: SchemaResponse) -> None:
        ...

    def configure(self, provider_data: Any) -> None:
        """Receives whatever the provider produced in its configure step."""

    @abstractmethod
    def create(self, request: CreateRequest, response: CreateResponse) -> None:
        ...

    @abstractmethod
    def read(self, request: ReadRequest, response: ReadResponse) -> None:
        ...

    @abstractmethod
    def update(self, request: UpdateRequest, response: UpdateResponse) -> None:
        ...

    @abstractmethod
    def delete(self, request: DeleteRequest, response: DeleteResponse) -> None:
        ...
