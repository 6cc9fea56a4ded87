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
Unit tests for schemas, diagnostics and plan modifiers.
"""
import copy

from bootc_provider.FRAMEWORK.diagnostics import Diagnostic, Diagnostics, Severity
from bootc_provider.FRAMEWORK.schema import (
    BoolAttribute,
    ListAttribute,
    Schema,
    StringAttribute,
    requires_replace,
    use_state_for_unknown,
)
from bootc_provider.FRAMEWORK.values import UNKNOWN, is_null, is_unknown
from bootc_provider.VALIDATORS.string_one_of import string_one_of


def _schema():
    return Schema(
        description="test",
        attributes={
            "name": StringAttribute(required=True, plan_modifiers=[requires_replace()]),
            "size": StringAttribute(optional=True, computed=True, default="1G"),
            "flag": BoolAttribute(optional=True, computed=True, default=True),
            "tags": ListAttribute(optional=True),
            "kind": StringAttribute(optional=True, validators=[string_one_of("a", "b")]),
            "path": StringAttribute(computed=True, plan_modifiers=[use_state_for_unknown()]),
        },
    )


class TestValues:
    """Tests for the unknown marker."""

    def test_unknown_is_singleton(self):
        assert copy.copy(UNKNOWN) is UNKNOWN
        assert copy.deepcopy([UNKNOWN])[0] is UNKNOWN
        assert is_unknown(UNKNOWN)
        assert not is_unknown(None)
        assert is_null(None)
        assert not UNKNOWN
        assert repr(UNKNOWN) == "UNKNOWN"


class TestDiagnostics:
    """Tests for Diagnostics."""

    def test_collects_errors_and_warnings(self):
        diags = Diagnostics()
        diags.add_warning("careful")
        assert not diags.has_error()
        diags.add_error("broken", "details")
        diags.add_attribute_error("kind", "Invalid value", "bad")
        assert diags.has_error()
        assert len(diags) == 3
        assert len(diags.errors()) == 2
        assert len(diags.warnings()) == 1
        assert diags.to_list()[2]["attribute"] == "kind"

    def test_str(self):
        diag = Diagnostic(Severity.ERROR, "Invalid value", "bad", "kind")
        assert str(diag) == "error: kind: Invalid value: bad"
        assert str(Diagnostic(Severity.WARNING, "careful")) == "warning: careful"


class TestValidateConfig:
    """Tests for Schema.validate_config."""

    def test_valid_config(self):
        diags = Diagnostics()
        _schema().validate_config({"name": "x", "tags": ["a", UNKNOWN], "kind": "a"}, diags)
        assert len(diags) == 0

    def test_missing_required(self):
        diags = Diagnostics()
        _schema().validate_config({}, diags)
        [diag] = diags.errors()
        assert diag.summary == "Missing required argument"
        assert diag.attribute == "name"

    def test_unsupported_argument(self):
        diags = Diagnostics()
        _schema().validate_config({"name": "x", "colour": "red"}, diags)
        assert [d.summary for d in diags] == ["Unsupported argument"]

    def test_computed_only_cannot_be_set(self):
        diags = Diagnostics()
        _schema().validate_config({"name": "x", "path": "/tmp/x"}, diags)
        assert [d.summary for d in diags] == ["Invalid configuration"]

    def test_wrong_types(self):
        diags = Diagnostics()
        _schema().validate_config({"name": 3, "flag": "yes", "tags": "a"}, diags)
        assert sorted(d.attribute for d in diags) == ["flag", "name", "tags"]
        assert all(d.summary == "Incorrect attribute value type" for d in diags)

    def test_unknown_value_skips_type_check(self):
        diags = Diagnostics()
        _schema().validate_config({"name": UNKNOWN, "kind": UNKNOWN}, diags)
        assert len(diags) == 0

    def test_validator_runs(self):
        diags = Diagnostics()
        _schema().validate_config({"name": "x", "kind": "c"}, diags)
        [diag] = diags.errors()
        assert diag.summary == "Invalid value"
        assert diag.attribute == "kind"


class TestPlan:
    """Tests for Schema.plan."""

    def test_create_fills_defaults_and_unknowns(self):
        result = _schema().plan({"name": "x"})
        assert result.planned["size"] == "1G"
        assert result.planned["flag"] is True
        assert result.planned["tags"] is None
        assert is_unknown(result.planned["path"])
        assert result.requires_replace == []

    def test_explicit_false_is_kept(self):
        result = _schema().plan({"name": "x", "flag": False})
        assert result.planned["flag"] is False

    def test_requires_replace_on_change(self):
        prior = {"name": "x", "size": "1G", "flag": True, "path": "/out/x"}
        result = _schema().plan({"name": "y"}, prior)
        assert result.requires_replace == ["name"]

    def test_unchanged_keeps_state(self):
        prior = {"name": "x", "size": "1G", "flag": True, "tags": None, "kind": None, "path": "/out/x"}
        result = _schema().plan({"name": "x"}, prior)
        assert result.requires_replace == []
        assert result.planned == prior

    def test_use_state_for_unknown_without_state(self):
        result = _schema().plan({"name": "x"}, {"name": "x"})
        assert is_unknown(result.planned["path"])

    def test_to_dict(self):
        data = _schema().to_dict()
        assert list(data["attributes"]) == sorted(data["attributes"])
        assert data["attributes"]["kind"]["validators"] == ["value must be one of: a, b"]
        assert data["attributes"]["tags"]["type"] == "list(string)"
