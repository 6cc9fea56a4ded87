"""
Provider contract: metadata, schema, configuration and resource discovery.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List

from .diagnostics import Diagnostics
from .resource import Resource
from .schema import Schema


@dataclass
class ProviderMetadataResponse:
    type_name: str = ""
    version: str = ""


@dataclass
class ProviderSchemaResponse:
    schema: Schema = field(default_factory=Schema)
    diagnostics: Diagnostics = field(default_factory=Diagnostics)


@dataclass
class ConfigureRequest:
    config: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ConfigureResponse:
    resource_data: Any = None
    diagnostics: Diagnostics = field(default_factory=Diagnostics)


ResourceFactory = Callable[[], Resource]


class Provider(ABC):
    """
    Entry point loaded by the host. Exposes resource factories.
    """

    @abstractmethod
    def metadata(self, response: ProviderMetadataResponse) -> None:
        ...

    @abstractmethod
    def schema(self, response: ProviderSchemaResponse) -> None:
        ...

    @abstractmethod
    def configure(self, request: ConfigureRequest, response: ConfigureResponse) -> None:
        ...

    @abstractmethod
    def resources(self) -> List[ResourceFactory]:
        ...

    def data_sources(self) -> List[Callable[[], Any]]:
        return []
