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
Unit tests for the disk image build pipeline.
"""
import ctypes
import os

import pytest

from bootc_provider.BRIDGE.bootc_bridge import BootcBridge, BootcExitError
from bootc_provider.BUILDERS.disk_image_builder import BuildStepError, DiskImageBuilder
from bootc_provider.CONFIG.settings import ProviderSettings
from bootc_provider.FRAMEWORK.values import UNKNOWN
from bootc_provider.MODELS.image_resource import ImageResourceModel
from bootc_provider.RUNNERS.command_runner import CommandError, CommandRunner


class FakeRunner:
    """Records commands and creates the files truncate and qemu-img would."""

    def __init__(self, fail_on=None):
        self.commands = []
        self.fail_on = fail_on

    def run(self, command, cwd=None):
        self.commands.append(command)
        if command[0] == self.fail_on:
            raise CommandError(command, 1, f"{command[0]}: boom")
        with open(command[-1], "w") as f:
            f.write("")
        return ""


class FakeBridge:
    def __init__(self, rc=0):
        self.calls = []
        self.rc = rc

    def run(self, args):
        self.calls.append(list(args))
        if self.rc != 0:
            raise BootcExitError(self.rc)


def _model(tmp_path, **values):
    values.setdefault("source_image", "quay.io/fedora/fedora-bootc:41")
    values.setdefault("output_path", str(tmp_path / "out"))
    return ImageResourceModel.from_values(values)


def _builder(runner, bridge):
    return DiskImageBuilder(ProviderSettings(), bridge=bridge, runner=runner)


class TestDiskImageBuilder:
    """Tests for DiskImageBuilder.build."""

    def test_success(self, tmp_path):
        runner, bridge = FakeRunner(), FakeBridge()
        path = _builder(runner, bridge).build(_model(tmp_path))

        out = tmp_path / "out"
        assert path == str(out / "disk.qcow2")
        assert os.path.exists(path)
        assert not (out / "disk.raw").exists()
        assert runner.commands == [
            ["truncate", "-s", "1G", str(out / "disk.raw")],
            ["qemu-img", "convert", "-f", "raw", "-O", "qcow2", str(out / "disk.raw"), path],
        ]
        assert bridge.calls[0][:4] == ["bootc", "install", "to-disk", "--via-loopback"]
        assert bridge.calls[0][-1] == str(out / "disk.raw")

    def test_custom_filename_and_size(self, tmp_path):
        runner = FakeRunner()
        path = _builder(runner, FakeBridge()).build(
            _model(tmp_path, output_filename="fcos-41.qcow2", disk_size="20G")
        )
        assert path == str(tmp_path / "out" / "fcos-41.qcow2")
        assert runner.commands[0][2] == "20G"

    def test_creates_nested_output_directory(self, tmp_path):
        model = _model(tmp_path, output_path=str(tmp_path / "a" / "b"))
        _builder(FakeRunner(), FakeBridge()).build(model)
        assert (tmp_path / "a" / "b").is_dir()

    def test_output_directory_failure(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x")
        runner = FakeRunner()
        with pytest.raises(BuildStepError) as exc:
            _builder(runner, FakeBridge()).build(_model(tmp_path, output_path=str(blocker / "sub")))
        assert exc.value.summary == "Failed to create output directory"
        assert runner.commands == []

    def test_truncate_failure(self, tmp_path):
        bridge = FakeBridge()
        with pytest.raises(BuildStepError) as exc:
            _builder(FakeRunner(fail_on="truncate"), bridge).build(_model(tmp_path))
        assert exc.value.summary == "Failed to create raw disk image"
        assert "boom" in exc.value.detail
        assert bridge.calls == []

    def test_invalid_kargs_removes_raw(self, tmp_path):
        bridge = FakeBridge()
        with pytest.raises(BuildStepError) as exc:
            _builder(FakeRunner(), bridge).build(_model(tmp_path, kargs=["nosmt", UNKNOWN]))
        assert exc.value.summary == "Invalid kargs"
        assert not (tmp_path / "out" / "disk.raw").exists()
        assert bridge.calls == []

    def test_bootc_failure_removes_raw(self, tmp_path):
        runner = FakeRunner()
        with pytest.raises(BuildStepError) as exc:
            _builder(runner, FakeBridge(rc=1)).build(_model(tmp_path))
        assert exc.value.summary == "bootc install failed"
        assert exc.value.detail == "bootc exited with error: code 1"
        assert not (tmp_path / "out" / "disk.raw").exists()
        assert len(runner.commands) == 1

    def test_convert_failure_keeps_raw(self, tmp_path):
        with pytest.raises(BuildStepError) as exc:
            _builder(FakeRunner(fail_on="qemu-img"), FakeBridge()).build(_model(tmp_path))
        assert exc.value.summary == "qemu-img convert failed"
        assert "exit status 1" in exc.value.detail
        assert (tmp_path / "out" / "disk.raw").exists()
        assert not (tmp_path / "out" / "disk.qcow2").exists()

    def test_tool_locations_from_settings(self, tmp_path):
        settings = ProviderSettings(truncate_binary="/usr/bin/truncate", qemu_img_binary="/opt/qemu-img")
        runner = FakeRunner()
        DiskImageBuilder(settings, bridge=FakeBridge(), runner=runner).build(_model(tmp_path))
        assert runner.commands[0][0] == "/usr/bin/truncate"
        assert runner.commands[1][0] == "/opt/qemu-img"

    def test_unknown_kargs_list_removes_raw(self, tmp_path):
        bridge = FakeBridge()
        with pytest.raises(BuildStepError) as exc:
            _builder(FakeRunner(), bridge).build(_model(tmp_path, kargs=UNKNOWN))
        assert exc.value.summary == "Invalid kargs"
        assert not (tmp_path / "out" / "disk.raw").exists()
        assert bridge.calls == []

    def test_missing_bridge_symbol_removes_raw(self, tmp_path, monkeypatch):
        class LibraryWithoutSymbol:
            def __init__(self, path):
                self.path = path

        monkeypatch.setattr(ctypes, "CDLL", LibraryWithoutSymbol)
        builder = DiskImageBuilder(ProviderSettings(), bridge=BootcBridge("libother.so"), runner=FakeRunner())
        with pytest.raises(BuildStepError) as exc:
            builder.build(_model(tmp_path))
        assert exc.value.summary == "bootc install failed"
        assert "does not export bootc_run" in exc.value.detail
        assert not (tmp_path / "out" / "disk.raw").exists()

    def test_convert_with_undecodable_output(self, tmp_path):
        def tool(name, body):
            path = tmp_path / name
            path.write_text("#!/bin/sh\n" + body + "\n")
            path.chmod(0o755)
            return str(path)

        settings = ProviderSettings(
            truncate_binary=tool("truncate", ': > "$3"'),
            qemu_img_binary=tool("qemu-img", "printf '\\377\\376 bad'\nexit 1"),
        )
        builder = DiskImageBuilder(settings, bridge=FakeBridge(), runner=CommandRunner("test"))
        with pytest.raises(BuildStepError) as exc:
            builder.build(_model(tmp_path))
        assert exc.value.summary == "qemu-img convert failed"
        assert "exit status 1" in exc.value.detail
        assert "\ufffd" in exc.value.detail
        assert (tmp_path / "out" / "disk.raw").exists()
