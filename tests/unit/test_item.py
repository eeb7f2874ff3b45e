"""Item model: path extraction/composition, lazy values, labels, validation."""

from __future__ import annotations

import logging
from types import SimpleNamespace

import pytest
from hypothesis import given
from hypothesis import strategies as st

from lib_dynamic_config.domain.errors import ConfigurationError, PathResolutionError
from lib_dynamic_config.domain.item import Item, compose_path_value, extract_path_value
from lib_dynamic_config.domain.module import Module


class Formatter:
    def __init__(self, null_display: str = "(not set)") -> None:
        self.null_display = null_display


SEGMENT = st.text(min_size=1, max_size=6)
LEAF = st.one_of(st.none(), st.booleans(), st.integers(), st.text(max_size=5), st.lists(st.integers(), max_size=3))


@given(st.lists(SEGMENT, min_size=1, max_size=4), LEAF)
def test_extract_inverts_compose(parts, value) -> None:
    assert extract_path_value(compose_path_value(parts, value), parts) == value


def test_compose_builds_single_branch() -> None:
    assert compose_path_value(["a", "b", "c"], 1) == {"a": {"b": {"c": 1}}}


def test_empty_paths_are_rejected() -> None:
    with pytest.raises(PathResolutionError, match="Empty extraction path."):
        extract_path_value({}, [])
    with pytest.raises(PathResolutionError, match="Empty composition path."):
        compose_path_value([], 1)


def test_missing_key_is_reported() -> None:
    with pytest.raises(PathResolutionError, match='Key "missing" not present!'):
        extract_path_value({"params": {}}, ["params", "missing"])


def test_scalar_cannot_be_descended() -> None:
    with pytest.raises(PathResolutionError, match='Unable to extract path "b.c" from "int"'):
        extract_path_value({"a": 5}, ["a", "b", "c"])


def test_missing_property_is_reported() -> None:
    with pytest.raises(PathResolutionError, match='Property "SimpleNamespace::missing" not present!'):
        extract_path_value(SimpleNamespace(name="demo"), ["missing"])


def test_attributes_and_sequence_indexes_are_walked() -> None:
    source = SimpleNamespace(mail=SimpleNamespace(hosts=["smtp1", "smtp2"]), flag=None)
    assert extract_path_value(source, ["mail", "hosts", "1"]) == "smtp2"
    assert extract_path_value(source, ["flag"]) is None


def test_components_of_a_module_are_realised() -> None:
    app = Module(components={"formatter": {"class": Formatter, "null_display": "-"}})
    assert not app.has("formatter", instantiated=True)
    assert extract_path_value(app, ["components", "formatter", "null_display"]) == "-"
    assert app.has("formatter", instantiated=True)


def test_module_params_and_properties() -> None:
    app = Module(name="Demo", params={"page_size": 20})
    assert extract_path_value(app, ["params", "page_size"]) == 20
    assert extract_path_value(app, ["name"]) == "Demo"


def test_default_path_and_label() -> None:
    item = Item("adminEmail")
    assert item.get_path_parts() == ["params", "adminEmail"]
    assert item.label == "Admin Email"
    assert Item("page_size").label == "Page Size"
    assert Item(3).label == "Value"
    assert Item("x", label="Custom").label == "Custom"


def test_value_is_extracted_lazily_and_memoised() -> None:
    source = {"name": "Initial"}
    item = Item("site_name", path="name", source=source)
    assert not item.has_value
    assert item.value == "Initial"
    source["name"] = "Changed"
    assert item.value == "Initial"
    assert item.has_value


def test_extract_current_value_from_explicit_source() -> None:
    item = Item("site_name", path="name", source={"name": "default"})
    assert item.extract_current_value({"name": "other"}) == "other"


def test_extraction_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="lib_dynamic_config")
    Item("site_name", path="name", source={"name": "x"}).extract_current_value()
    record = next(r for r in caplog.records if r.getMessage() == "item_value_extracted")
    assert record.context["item"] == "site_name"
    assert record.context["path"] == "name"


def test_value_without_source_raises() -> None:
    with pytest.raises(PathResolutionError):
        Item("site_name").value


def test_explicit_value_skips_extraction() -> None:
    item = Item("page_size", value=None)
    assert item.has_value
    assert item.value is None
    assert item.compose_config() == {"params": {"page_size": None}}


def test_compose_config_uses_declared_path() -> None:
    item = Item("null_display", path="components.formatter.null_display", value="-")
    assert item.compose_config() == {"components": {"formatter": {"null_display": "-"}}}


def test_from_descriptor_sets_source_and_rejects_unknown_keys() -> None:
    item = Item.from_descriptor("site_name", {"path": "name", "rules": ["required"]}, {"name": "Demo"})
    assert item.value == "Demo"
    assert item.rules == ["required"]
    with pytest.raises(ConfigurationError, match="Unknown properties"):
        Item.from_descriptor("site_name", {"path": "name", "typo": 1})


def test_descriptor_source_overrides_manager_source() -> None:
    item = Item.from_descriptor("x", {"path": "v", "source": {"v": "own"}}, {"v": "manager"})
    assert item.value == "own"


def test_validate_collects_first_error_only() -> None:
    item = Item("site_name", value="", rules=["required", ["string", {"min": 3}]])
    assert item.validate() is False
    assert item.errors == ["Site Name cannot be blank."]


def test_validate_keeps_messages_with_literal_braces() -> None:
    item = Item("payload", value="x", rules=[lambda value: 'Expected JSON like {"a": 1}'])
    assert item.validate() is False
    assert item.errors == ['Expected JSON like {"a": 1}']


def test_validate_writes_filtered_value_back() -> None:
    item = Item("site_name", value="  Demo  ", rules=["trim", "required"])
    assert item.validate() is True
    assert item.value == "Demo"
    assert item.errors == []


def test_validate_resets_errors() -> None:
    item = Item("page_size", value="x", rules=["integer"])
    assert not item.validate()
    item.value = 10
    assert item.validate()
    assert item.errors == []


def test_rules_setter_rebuilds_validators() -> None:
    item = Item("page_size", value=5, rules=["integer"])
    assert [rule.kind for rule in item.validators] == ["safe", "integer"]
    item.rules = [["integer", {"min": 10}]]
    assert not item.validate()


def test_invalid_rules_surface_on_validate() -> None:
    item = Item("page_size", value=5, rules="integer")
    with pytest.raises(ConfigurationError):
        item.validate()


def test_input_options_and_description() -> None:
    item = Item("theme", description="Colour theme", input_options={"type": "select"})
    assert item.description == "Colour theme"
    assert item.input_options == {"type": "select"}


def test_repr_mentions_id_and_path() -> None:
    assert repr(Item("page_size")) == "Item(id='page_size', path='params.page_size')"
