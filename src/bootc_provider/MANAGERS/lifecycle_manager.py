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
Reconciles declared resources against recorded state, one resource at a time.
"""
import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from ..FRAMEWORK.diagnostics import Diagnostics
from ..FRAMEWORK.provider import (
    ConfigureRequest,
    ConfigureResponse,
    Provider,
    ProviderMetadataResponse,
)
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
from ..FRAMEWORK.schema import Schema
from ..PARSERS.config_parser import ConfigFile
from ..STATE.state_store import StateStore
from ..UTILS.log_config import get_logger

log = get_logger(__name__)


class Action(str, Enum):
    """What apply will do with a resource."""
    CREATE = "create"
    NOOP = "no-op"
    REPLACE = "replace"
    UPDATE = "update"
    DELETE = "delete"


@dataclass
class PlannedChange:
    address: str
    type_name: str
    action: Action
    planned: Optional[Dict[str, Any]] = None
    prior_state: Optional[Dict[str, Any]] = None
    requires_replace: List[str] = field(default_factory=list)


@dataclass
class ApplyReport:
    applied: List[PlannedChange] = field(default_factory=list)
    diagnostics: Diagnostics = field(default_factory=Diagnostics)


def _type_of(address: str) -> str:
    return address.split(".", 1)[0]


class LifecycleManager:
    """
    Drives a provider's resources from a configuration file and a state file.

    Every request is handled synchronously and in declaration order; the
    first failing request stops the run.
    """

    def __init__(self, provider: Provider, config: ConfigFile, state: StateStore):
        """
        Configures the provider and instantiates its resources.

        :param provider: Provider exposing the resources.
        :param config: Declared resource instances.
        :param state: Recorded state of created instances.
        """
        self.provider = provider
        self.config = config
        self.state = state
        self.resources: Dict[str, Tuple[Resource, Schema]] = {}

        meta = ProviderMetadataResponse()
        provider.metadata(meta)
        self.provider_type_name = meta.type_name

        configured = ConfigureResponse()
        provider.configure(ConfigureRequest(), configured)
        if configured.diagnostics.has_error():
            raise RuntimeError("; ".join(str(d) for d in configured.diagnostics.errors()))

        for factory in provider.resources():
            resource = factory()
            md = MetadataResponse()
            resource.metadata(MetadataRequest(provider_type_name=self.provider_type_name), md)
            resource.configure(configured.resource_data)
            sch = SchemaResponse()
            resource.schema(sch)
            self.resources[md.type_name] = (resource, sch.schema)

    def validate(self) -> Diagnostics:
        """
        Validates every declared resource against its schema.

        :return: Diagnostics, attributed as ``<address>.<attribute>``.
        """
        diagnostics = Diagnostics()
        for rc in self.config.resources:
            if rc.type_name not in self.resources:
                diagnostics.add_attribute_error(
                    rc.address,
                    "Invalid resource type",
                    f'The provider {self.provider_type_name} does not support resource type "{rc.type_name}".',
                )
                continue

            _, schema = self.resources[rc.type_name]
            found = Diagnostics()
            schema.validate_config(rc.values, found)
            diagnostics.append(
                dataclasses.replace(d, attribute=f"{rc.address}.{d.attribute}") if d.attribute else d
                for d in found
            )
        return diagnostics

    def plan(self) -> Tuple[List[PlannedChange], Diagnostics]:
        """
        Computes the action for every declared and every recorded resource.

        :return: Planned changes and diagnostics. No changes are returned if validation fails.
        """
        diagnostics = self.validate()
        if diagnostics.has_error():
            return [], diagnostics

        changes: List[PlannedChange] = []
        declared = set()
        for rc in self.config.resources:
            declared.add(rc.address)
            _, schema = self.resources[rc.type_name]
            prior = self.state.get(rc.address)
            result = schema.plan(rc.values, prior)
            diagnostics.append(result.diagnostics)

            if prior is None:
                action = Action.CREATE
            elif result.requires_replace:
                action = Action.REPLACE
            elif result.planned == prior:
                action = Action.NOOP
            else:
                action = Action.UPDATE

            changes.append(PlannedChange(
                address=rc.address,
                type_name=rc.type_name,
                action=action,
                planned=result.planned,
                prior_state=prior,
                requires_replace=result.requires_replace,
            ))

        for address in self.state.addresses():
            if address not in declared:
                changes.append(PlannedChange(
                    address=address,
                    type_name=_type_of(address),
                    action=Action.DELETE,
                    prior_state=self.state.get(address),
                ))

        return changes, diagnostics

    def apply(self) -> ApplyReport:
        """
        Plans, then carries out each change in order.

        Replacement destroys the old image before creating the new one.
        Update is forwarded to the resource, which rejects it.
        """
        report = ApplyReport()
        changes, diagnostics = self.plan()
        report.diagnostics.append(diagnostics)
        if diagnostics.has_error():
            return report

        for change in changes:
            log.info("apply.change", address=change.address, action=change.action.value)
            if change.action is Action.NOOP:
                step = self._read(change)
            elif change.action is Action.CREATE:
                step = self._create(change.address, change.type_name, change.planned)
            elif change.action is Action.REPLACE:
                step = self._delete(change.address, change.type_name, change.prior_state)
                if not step.has_error():
                    _, schema = self.resources[change.type_name]
                    values = self.config.get(change.address).values
                    step.append(self._create(change.address, change.type_name, schema.plan(values).planned))
            elif change.action is Action.UPDATE:
                step = self._update(change)
            else:
                step = self._delete(change.address, change.type_name, change.prior_state)

            report.diagnostics.append(step)
            if step.has_error():
                break
            report.applied.append(change)

        return report

    def destroy(self) -> ApplyReport:
        """Deletes every recorded resource."""
        report = ApplyReport()
        for address in self.state.addresses():
            change = PlannedChange(
                address=address,
                type_name=_type_of(address),
                action=Action.DELETE,
                prior_state=self.state.get(address),
            )
            step = self._delete(address, change.type_name, change.prior_state)
            report.diagnostics.append(step)
            if step.has_error():
                break
            report.applied.append(change)
        return report

    def _resource(self, type_name: str, diagnostics: Diagnostics) -> Optional[Resource]:
        entry = self.resources.get(type_name)
        if entry is None:
            diagnostics.add_error("Invalid resource type", f'Unknown resource type "{type_name}".')
            return None
        return entry[0]

    def _create(self, address: str, type_name: str, planned: Dict[str, Any]) -> Diagnostics:
        response = CreateResponse()
        resource = self._resource(type_name, response.diagnostics)
        if resource is None:
            return response.diagnostics
        resource.create(CreateRequest(plan=planned), response)
        if not response.diagnostics.has_error() and response.state is not None:
            self.state.put(address, response.state)
            self.state.save()
        return response.diagnostics

    def _read(self, change: PlannedChange) -> Diagnostics:
        response = ReadResponse()
        resource = self._resource(change.type_name, response.diagnostics)
        if resource is None:
            return response.diagnostics
        resource.read(ReadRequest(state=change.prior_state), response)
        if not response.diagnostics.has_error() and response.state is not None:
            self.state.put(change.address, response.state)
            self.state.save()
        return response.diagnostics

    def _update(self, change: PlannedChange) -> Diagnostics:
        response = UpdateResponse()
        resource = self._resource(change.type_name, response.diagnostics)
        if resource is None:
            return response.diagnostics
        resource.update(UpdateRequest(plan=change.planned or {}, state=change.prior_state), response)
        if not response.diagnostics.has_error() and response.state is not None:
            self.state.put(change.address, response.state)
            self.state.save()
        return response.diagnostics

    def _delete(self, address: str, type_name: str, prior_state: Optional[Dict[str, Any]]) -> Diagnostics:
        response = DeleteResponse()
        resource = self._resource(type_name, response.diagnostics)
        if resource is None:
            return response.diagnostics
        resource.delete(DeleteRequest(state=prior_state), response)
        if not response.diagnostics.has_error():
            self.state.remove(address)
            self.state.save()
        return response.diagnostics
