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
Unit tests for the bootc_image resource.
"""
from bootc_provider.BUILDERS.disk_image_builder import BuildStepError
from bootc_provider.CONFIG.settings import ProviderSettings
from bootc_provider.FRAMEWORK.resource import (
    CreateRequest,
    CreateResponse,
    DeleteRequest,
    DeleteResponse,
    MetadataRequest,
    MetadataResponse,
    ReadRequest,
    ReadResponse,
    SchemaResponse,
    UpdateRequest,
    UpdateResponse,
)
from bootc_provider.FRAMEWORK.schema import RequiresReplaceModifier, UseStateForUnknownModifier
from bootc_provider.FRAMEWORK.values import UNKNOWN
from bootc_provider.RESOURCES.image_resource import ImageResource, new_image_resource


class FakeBuilder:
    built = []

    def __init__(self, settings, error=None):
        self.settings = settings
        self.error = error

    def build(self, model):
        FakeBuilder.built.append(model)
        if self.error:
            raise self.error
        return f"{model.output_path}/{model.output_filename}"


def _schema():
    response = SchemaResponse()
    ImageResource().schema(response)
    return response.schema


def _plan(**config):
    config.setdefault("source_image", "quay.io/fedora/fedora-bootc:41")
    config.setdefault("output_path", "/tmp/output")
    return _schema().plan(config).planned


class TestMetadata:
    """Tests for the resource type name."""

    def test_type_name(self):
        response = MetadataResponse()
        ImageResource().metadata(MetadataRequest(provider_type_name="bootc"), response)
        assert response.type_name == "bootc_image"

    def test_custom_provider_name(self):
        response = MetadataResponse()
        ImageResource().metadata(MetadataRequest(provider_type_name="custom"), response)
        assert response.type_name == "custom_image"

    def test_empty_provider_name(self):
        response = MetadataResponse()
        ImageResource().metadata(MetadataRequest(provider_type_name=""), response)
        assert response.type_name == "_image"


class TestSchema:
    """Tests for the resource schema."""

    def test_attributes(self):
        attrs = _schema().attributes
        assert len(attrs) == 13
        assert {n for n, a in attrs.items() if a.required} == {"source_image", "output_path"}
        assert {n for n, a in attrs.items() if a.computed and not a.optional} == {"image_path"}
        assert attrs["disk_size"].default == "1G"
        assert attrs["output_filename"].default == "disk.qcow2"
        assert attrs["disable_selinux"].default is False
        assert attrs["generic_image"].default is True
        assert attrs["kargs"].type_name == "list(string)"

    def test_plan_modifiers(self):
        attrs = _schema().attributes
        for name in ("source_image", "output_path"):
            assert isinstance(attrs[name].plan_modifiers[0], RequiresReplaceModifier)
        assert isinstance(attrs["image_path"].plan_modifiers[0], UseStateForUnknownModifier)

    def test_validators(self):
        attrs = _schema().attributes
        assert attrs["filesystem"].validators[0].values == ("xfs", "ext4", "btrfs")
        assert attrs["bootloader"].validators[0].values == ("grub", "systemd", "none")

    def test_plan_defaults(self):
        planned = _plan()
        assert planned["disk_size"] == "1G"
        assert planned["output_filename"] == "disk.qcow2"
        assert planned["generic_image"] is True
        assert planned["disable_selinux"] is False
        assert planned["image_path"] is UNKNOWN


class TestLifecycle:
    """Tests for create, read, update and delete."""

    def setup_method(self):
        FakeBuilder.built = []

    def test_create(self):
        resource = ImageResource(builder_factory=FakeBuilder)
        settings = ProviderSettings(qemu_img_binary="/opt/qemu-img")
        resource.configure(settings)

        response = CreateResponse()
        resource.create(CreateRequest(plan=_plan(filesystem="xfs")), response)

        assert not response.diagnostics.has_error()
        assert response.state["image_path"] == "/tmp/output/disk.qcow2"
        assert response.state["filesystem"] == "xfs"
        assert response.state["kargs"] is None
        assert FakeBuilder.built[0].source_image == "quay.io/fedora/fedora-bootc:41"

    def test_create_failure(self):
        def factory(settings):
            return FakeBuilder(settings, BuildStepError("bootc install failed", "bootc exited with error: code 1"))

        response = CreateResponse()
        ImageResource(builder_factory=factory).create(CreateRequest(plan=_plan()), response)

        assert response.state is None
        [diag] = response.diagnostics.errors()
        assert diag.summary == "bootc install failed"
        assert diag.detail == "bootc exited with error: code 1"

    def test_create_invalid_plan(self):
        response = CreateResponse()
        ImageResource(builder_factory=FakeBuilder).create(CreateRequest(plan={"output_path": "/tmp"}), response)
        assert response.diagnostics.errors()[0].summary == "Invalid plan"
        assert FakeBuilder.built == []

    def test_read_returns_state(self):
        state = {"source_image": "x", "output_path": "/tmp", "image_path": "/tmp/disk.qcow2"}
        response = ReadResponse()
        ImageResource().read(ReadRequest(state=state), response)
        assert response.state == state
        assert not response.diagnostics.has_error()

    def test_update_always_fails(self):
        response = UpdateResponse()
        ImageResource().update(UpdateRequest(plan=_plan(), state=_plan()), response)
        [diag] = response.diagnostics.errors()
        assert diag.summary == "Update not supported"
        assert diag.detail == "bootc_image is immutable. Changes require replacement."
        assert response.state is None

    def test_delete_removes_image(self, tmp_path):
        image = tmp_path / "disk.qcow2"
        image.write_text("qcow2")
        response = DeleteResponse()
        ImageResource().delete(DeleteRequest(state={"image_path": str(image)}), response)
        assert not image.exists()
        assert len(response.diagnostics) == 0

    def test_delete_missing_file(self, tmp_path):
        response = DeleteResponse()
        ImageResource().delete(DeleteRequest(state={"image_path": str(tmp_path / "gone.qcow2")}), response)
        assert len(response.diagnostics) == 0

    def test_delete_without_image_path(self):
        response = DeleteResponse()
        ImageResource().delete(DeleteRequest(state={"image_path": None}), response)
        assert len(response.diagnostics) == 0

    def test_factory(self):
        assert isinstance(new_image_resource(), ImageResource)
