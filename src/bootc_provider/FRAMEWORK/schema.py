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
Declarative attribute schemas, validators and plan modifiers.

A schema describes every attribute of a resource: its type, whether it
is required, optional or computed, its default, the validators run
against user configuration and the plan modifiers run when a plan is
computed against prior state.
"""

import copy
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Optional

from .diagnostics import Diagnostics
from .values import UNKNOWN, is_unknown


@dataclass
class StringRequest:
    """Input to a string validator."""

    path: str
    config_value: Any


@dataclass
class StringResponse:
    """Output of a string validator."""

    diagnostics: Diagnostics = field(default_factory=Diagnostics)


class StringValidator(ABC):
    """Validates a single string attribute value from configuration."""

    @abstractmethod
    def description(self) -> str:
        ...

    def markdown_description(self) -> str:
        return self.description()

    @abstractmethod
    def validate_string(self, request: StringRequest, response: StringResponse) -> None:
        ...


@dataclass
class PlanModifierRequest:
    """Input to a plan modifier."""

    path: str
    config_value: Any
    plan_value: Any
    state_value: Any
    state_exists: bool


@dataclass
class PlanModifierResponse:
    """Output of a plan modifier."""

    plan_value: Any
    requires_replace: bool = False
    diagnostics: Diagnostics = field(default_factory=Diagnostics)


class PlanModifier(ABC):
    """Adjusts a planned attribute value before it is shown or applied."""

    @abstractmethod
    def description(self) -> str:
        ...

    @abstractmethod
    def modify_plan(self, request: PlanModifierRequest, response: PlanModifierResponse) -> None:
        ...


class RequiresReplaceModifier(PlanModifier):
    """Marks the resource for replacement when the attribute changes."""

    def description(self) -> str:
        return "If the value of this attribute changes, the resource will be destroyed and recreated."

    def modify_plan(self, request: PlanModifierRequest, response: PlanModifierResponse) -> None:
        # Nothing to replace on create.
        if not request.state_exists:
            return
        if response.plan_value == request.state_value:
            return
        response.requires_replace = True


class UseStateForUnknownModifier(PlanModifier):
    """Copies the prior state value into the plan when the planned value is unknown."""

    def description(self) -> str:
        return "Once set, the value of this attribute in state will not change."

    def modify_plan(self, request: PlanModifierRequest, response: PlanModifierResponse) -> None:
        if not request.state_exists or request.state_value is None:
            return
        if not is_unknown(response.plan_value):
            return
        response.plan_value = request.state_value


def requires_replace() -> PlanModifier:
    return RequiresReplaceModifier()


def use_state_for_unknown() -> PlanModifier:
    return UseStateForUnknownModifier()


@dataclass
class Attribute:
    """Base attribute definition."""

    description: str = ""
    required: bool = False
    optional: bool = False
    computed: bool = False
    default: Any = None
    validators: List[StringValidator] = field(default_factory=list)
    plan_modifiers: List[PlanModifier] = field(default_factory=list)

    type_name: ClassVar[str] = "dynamic"

    def accepts(self, value: Any) -> bool:
        """Return True if a concrete (non-null, known) value has this attribute's type."""
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type_name,
            "description": self.description,
            "required": self.required,
            "optional": self.optional,
            "computed": self.computed,
            "default": self.default,
            "validators": [v.description() for v in self.validators],
            "plan_modifiers": [m.description() for m in self.plan_modifiers],
        }


@dataclass
class StringAttribute(Attribute):
    type_name: ClassVar[str] = "string"

    def accepts(self, value: Any) -> bool:
        return isinstance(value, str)


@dataclass
class BoolAttribute(Attribute):
    type_name: ClassVar[str] = "bool"

    def accepts(self, value: Any) -> bool:
        return isinstance(value, bool)


@dataclass
class ListAttribute(Attribute):
    """A list of strings. Individual elements may be unknown at plan time."""

    type_name: ClassVar[str] = "list(string)"

    def accepts(self, value: Any) -> bool:
        if not isinstance(value, (list, tuple)):
            return False
        return all(isinstance(item, str) or is_unknown(item) for item in value)


@dataclass
class PlanResult:
    """Planned attribute values and the attributes forcing replacement."""

    planned: Dict[str, Any]
    requires_replace: List[str] = field(default_factory=list)
    diagnostics: Diagnostics = field(default_factory=Diagnostics)


@dataclass
class Schema:
    """
    Schema of a resource or provider.
    """

    description: str = ""
    attributes: Dict[str, Attribute] = field(default_factory=dict)

    def validate_config(self, config: Dict[str, Any], diagnostics: Diagnostics) -> None:
        """
        Validates user configuration against the schema.

        Null and unknown values are still passed to validators, which are
        expected to skip them.

        Args:
            config: Attribute values as written by the user.
            diagnostics: Collection receiving any errors.
        """
        for name in config:
            if name not in self.attributes:
                diagnostics.add_attribute_error(
                    name,
                    "Unsupported argument",
                    f'An argument named "{name}" is not expected here.',
                )

        for name, attr in self.attributes.items():
            value = config.get(name)

            if attr.required and value is None:
                diagnostics.add_attribute_error(
                    name,
                    "Missing required argument",
                    f'The argument "{name}" is required, but no definition was found.',
                )
                continue

            if attr.computed and not (attr.optional or attr.required) and value is not None:
                diagnostics.add_attribute_error(
                    name,
                    "Invalid configuration",
                    f'"{name}" is computed and cannot be set in configuration.',
                )
                continue

            if value is not None and not is_unknown(value) and not attr.accepts(value):
                diagnostics.add_attribute_error(
                    name,
                    "Incorrect attribute value type",
                    f'Inappropriate value for attribute "{name}": {attr.type_name} required.',
                )
                continue

            for validator in attr.validators:
                response = StringResponse()
                validator.validate_string(StringRequest(path=name, config_value=value), response)
                diagnostics.append(response.diagnostics)

    def plan(self, config: Dict[str, Any], prior_state: Optional[Dict[str, Any]] = None) -> PlanResult:
        """
        Computes planned attribute values.

        Defaults fill null optional attributes, unset computed attributes
        become unknown, then plan modifiers run against the prior state.

        Args:
            config: Validated user configuration.
            prior_state: Current state of the resource, None if it does not exist yet.

        Returns:
            The planned values and the names of attributes requiring replacement.
        """
        result = PlanResult(planned={})
        state_exists = prior_state is not None

        for name, attr in self.attributes.items():
            value = config.get(name)
            if value is None:
                if attr.default is not None:
                    value = copy.deepcopy(attr.default)
                elif attr.computed:
                    value = UNKNOWN

            state_value = prior_state.get(name) if state_exists else None
            request = PlanModifierRequest(
                path=name,
                config_value=config.get(name),
                plan_value=value,
                state_value=state_value,
                state_exists=state_exists,
            )
            response = PlanModifierResponse(plan_value=value)
            for modifier in attr.plan_modifiers:
                modifier.modify_plan(request, response)
                request.plan_value = response.plan_value

            result.planned[name] = response.plan_value
            result.diagnostics.append(response.diagnostics)
            if response.requires_replace:
                result.requires_replace.append(name)

        return result

    def to_dict(self) -> Dict[str, Any]:
        return {
            "description": self.description,
            "attributes": {name: attr.to_dict() for name, attr in sorted(self.attributes.items())},
        }
