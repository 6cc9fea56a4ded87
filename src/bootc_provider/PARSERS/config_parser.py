"""
Parser for YAML resource configuration files.

Layout::

    resources:
      bootc_image:
        fedora:
          source_image: quay.io/fedora/fedora-bootc:41
          output_path: ${HOME}/images
"""
import os
from typing import Any, Dict, List, Mapping, Optional

import yaml
from pydantic import BaseModel

from ..UTILS.string_interpolation import interpolate


class ResourceConfig(BaseModel):
    """
    Configuration of a single resource instance.
    """
    type_name: str
    name: str
    values: Dict[str, Any] = {}

    @property
    def address(self) -> str:
        return f"{self.type_name}.{self.name}"


class ConfigFile(BaseModel):
    """
    All resource instances declared in one configuration file.
    """
    resources: List[ResourceConfig] = []

    def get(self, address: str) -> Optional[ResourceConfig]:
        for resource in self.resources:
            if resource.address == address:
                return resource
        return None


class ConfigParser:
    """
    Parser for resource configuration files.
    """
    def __init__(self, context: Optional[Mapping[str, str]] = None):
        """
        Initializes the parser with an optional interpolation context.

        :param context: Variables for ${VAR} interpolation, os.environ by default.
        """
        self.context = context if context is not None else dict(os.environ)

    def parse(self, config_path: str) -> ConfigFile:
        """
        Parses a configuration file from a path.

        :param config_path: Path to the YAML file.
        :return: Parsed configuration.
        """
        with open(config_path, 'r', encoding='utf-8') as f:
            content = f.read()
        return self.parse_from_string(content)

    def _interpolate(self, value: Any) -> Any:
        if isinstance(value, str):
            try:
                return interpolate(value, self.context)
            except KeyError as e:
                raise ValueError(f"Interpolation failed: {e.args[0]}") from e
        if isinstance(value, list):
            return [self._interpolate(item) for item in value]
        if isinstance(value, dict):
            return {key: self._interpolate(item) for key, item in value.items()}
        return value

    def parse_from_string(self, content: str) -> ConfigFile:
        """
        Parses configuration from a string.

        Variables are substituted in string values after YAML parsing, so
        comments are never interpolated and substituted text is never
        reinterpreted as YAML.

        :param content: YAML content.
        :return: Parsed configuration.
        :raises ValueError: On invalid YAML, unresolved variables or a malformed layout.
        """
        try:
            data = yaml.safe_load(content) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML: {e}") from e
        if not isinstance(data, dict):
            raise ValueError("Configuration must be a mapping")

        resources = []
        for type_name, instances in (data.get('resources') or {}).items():
            if not isinstance(instances, dict):
                raise ValueError(f"resources.{type_name} must map instance names to attributes")
            for name, values in instances.items():
                if values is not None and not isinstance(values, dict):
                    raise ValueError(f"resources.{type_name}.{name} must be a mapping of attributes")
                resources.append(ResourceConfig(
                    type_name=type_name,
                    name=str(name),
                    values=self._interpolate(values or {}),
                ))

        return ConfigFile(resources=resources)
