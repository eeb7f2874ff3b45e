"""Rule descriptor normalisation and the built-in rule kinds."""

from __future__ import annotations

import pytest

from lib_dynamic_config.domain.errors import ConfigurationError, ValidationError
from lib_dynamic_config.domain.rules import Rule, build_rule, build_rules, is_empty, register_rule


def _apply(descriptor, value, label="Value"):
    return build_rule(descriptor).apply(value, label)


def test_build_rules_prepends_safe() -> None:
    rules = build_rules(["required", ["string", {"max": 10}]])
    assert [rule.kind for rule in rules] == ["safe", "required", "string"]


def test_build_rules_for_empty_declaration_is_only_safe() -> None:
    assert [rule.kind for rule in build_rules([])] == ["safe"]


@pytest.mark.parametrize("descriptors", ["required", {"rule": "required"}, 42])
def test_build_rules_rejects_non_list(descriptors) -> None:
    with pytest.raises(ConfigurationError):
        build_rules(descriptors)


@pytest.mark.parametrize("descriptor", [[], {"max": 3}, [None], 42])
def test_rule_without_type_is_rejected(descriptor) -> None:
    with pytest.raises(ConfigurationError, match="a rule must specify validator type"):
        build_rule(descriptor)


def test_unknown_rule_kind_is_rejected() -> None:
    with pytest.raises(ConfigurationError, match="Unknown validation rule 'nope'"):
        build_rule(["nope"])


def test_list_descriptor_merges_option_mappings() -> None:
    rule = build_rule(["string", {"min": 1}, {"max": 5}])
    assert rule.kind == "string"
    assert dict(rule.options) == {"min": 1, "max": 5}


def test_list_descriptor_with_non_mapping_options_is_rejected() -> None:
    with pytest.raises(ConfigurationError):
        build_rule(["string", 5])


def test_rule_instance_passes_through() -> None:
    rule = build_rule("email")
    assert build_rule(rule) is rule


def test_is_empty_treats_zero_and_false_as_values() -> None:
    assert is_empty(None) and is_empty("") and is_empty([]) and is_empty({})
    assert not is_empty(0)
    assert not is_empty(False)


def test_required_rejects_blank_strings() -> None:
    assert _apply("required", "   ", "Site Name") == ("   ", "Site Name cannot be blank.")
    assert _apply("required", None)[1] == "Value cannot be blank."
    assert _apply("required", 0)[1] is None


def test_empty_values_skip_ordinary_rules() -> None:
    assert _apply(["string", {"min": 3}], "") == ("", None)
    assert _apply("email", None) == (None, None)


def test_string_length_bounds() -> None:
    assert _apply(["string", {"max": 3}], "abcd", "Code")[1] == "Code should contain at most 3 characters."
    assert _apply(["string", {"min": 3}], "ab", "Code")[1] == "Code should contain at least 3 characters."
    assert _apply(["string", {"length": 2}], "abc", "Code")[1] == "Code should contain 2 characters."
    assert _apply("string", 12)[1] == "Value must be a string."
    assert _apply(["string", {"min": 1, "max": 3}], "abc")[1] is None


@pytest.mark.parametrize("value", [5, "5", "-3", 7.0])
def test_integer_accepts_integers_and_integer_strings(value) -> None:
    assert _apply("integer", value)[1] is None


@pytest.mark.parametrize("value", [True, 1.5, "1.5", "abc"])
def test_integer_rejects_other_values(value) -> None:
    assert _apply("integer", value, "Page Size")[1] == "Page Size must be an integer."


def test_integer_bounds() -> None:
    assert _apply(["integer", {"min": 1}], 0, "Page Size")[1] == "Page Size must be no less than 1."
    assert _apply(["integer", {"max": 100}], "101", "Page Size")[1] == "Page Size must be no greater than 100."


def test_number_accepts_floats_and_numeric_strings() -> None:
    assert _apply("number", 1.5)[1] is None
    assert _apply("number", "2.5e3")[1] is None
    assert _apply("number", "x")[1] == "Value must be a number."


def test_boolean_strict_and_loose() -> None:
    assert _apply("boolean", "1")[1] is None
    assert _apply(["boolean", {"strict": True}], "1")[1] == "Value must be either true or false."
    assert _apply(["boolean", {"strict": True}], False)[1] is None


def test_in_range_and_negation() -> None:
    assert _apply(["in", {"range": ["a", "b"]}], "a")[1] is None
    assert _apply(["in", {"range": ["a", "b"]}], "c", "Theme")[1] == "Theme is invalid."
    assert _apply(["in", {"range": ["a", "b"], "not": True}], "a")[1] == "Value is invalid."


def test_in_requires_range_option() -> None:
    with pytest.raises(ValidationError, match="'range' option is required"):
        _apply("in", "a")


def test_match_pattern() -> None:
    assert _apply({"rule": "match", "pattern": r"^\d{3}$"}, "123")[1] is None
    assert _apply({"rule": "match", "pattern": r"^\d{3}$"}, "12a")[1] == "Value is invalid."
    assert _apply({"rule": "match", "pattern": r"^\d+$", "not": True}, "12")[1] == "Value is invalid."


def test_email_and_url() -> None:
    assert _apply("email", "admin@mail.acme.io")[1] is None
    assert _apply("email", "admin@", "Admin Email")[1] == "Admin Email is not a valid email address."
    assert _apply("url", "https://example.com/path?q=1")[1] is None
    assert _apply("url", "ftp://example.com")[1] == "Value is not a valid URL."
    assert _apply(["url", {"valid_schemes": ["ftp"]}], "ftp://example.com")[1] is None


def test_compare_operators() -> None:
    assert _apply(["compare", {"compare_value": 10, "operator": ">="}], 10)[1] is None
    assert _apply(["compare", {"compare_value": 10, "operator": ">"}], 3)[1] == 'Value must be > "10".'
    assert _apply(["compare", {"compare_value": 10, "operator": "<"}], "text")[1] is not None


def test_compare_unknown_operator() -> None:
    with pytest.raises(ValidationError):
        _apply(["compare", {"compare_value": 1, "operator": "~"}], 1)


def test_message_option_overrides_error() -> None:
    rule = build_rule(["string", {"max": 2, "message": "{label} is too long (max {max})."}])
    assert rule.apply("abc", "Code")[1] == "Code is too long (max 2)."


def test_filters_transform_value() -> None:
    assert _apply("trim", "  x  ") == ("x", None)
    assert _apply(["default", {"value": 20}], None) == (20, None)
    assert _apply(["default", {"value": list}], "") == ([], None)
    assert _apply(["default", {"value": 20}], 5) == (5, None)
    assert _apply(["filter", {"filter": str.upper}], "abc") == ("ABC", None)


def test_callable_rule_reports_returned_message() -> None:
    def positive(value):
        return None if value > 0 else "{label} must be positive."

    assert _apply(positive, 1)[1] is None
    assert _apply(positive, -1, "Limit")[1] == "Limit must be positive."
    assert _apply({"rule": positive, "message": "nope"}, -1)[1] == "nope"


def test_register_rule_extends_registry() -> None:
    register_rule("even", lambda value, options: (value, None if value % 2 == 0 else "{label} must be even."))
    rule = build_rule("even")
    assert isinstance(rule, Rule)
    assert rule.apply(3, "Count")[1] == "Count must be even."


def test_skip_on_empty_override() -> None:
    rule = build_rule(["string", {"skip_on_empty": False}])
    assert rule.apply(None, "Name")[1] == "Name must be a string."


def test_number_bounds_and_booleans() -> None:
    assert _apply(["number", {"min": 0.5}], "0.25", "Ratio")[1] == "Ratio must be no less than 0.5."
    assert _apply(["number", {"max": 1}], 1.5, "Ratio")[1] == "Ratio must be no greater than 1."
    assert _apply("number", True)[1] == "Value must be a number."


def test_in_range_of_numbers_and_empty_range() -> None:
    assert _apply(["in", {"range": [1, 2, 3]}], 2)[1] is None
    assert _apply(["in", {"range": [1, 2, 3]}], 4)[1] == "Value is invalid."
    assert _apply(["in", {"range": []}], "a")[1] == "Value is invalid."


def test_in_range_with_unhashable_choices() -> None:
    assert _apply(["in", {"range": [[1], [2]]}], [2])[1] is None


def test_email_rejects_non_strings_and_url_requires_scheme() -> None:
    assert _apply("email", 42)[1] == "Value is not a valid email address."
    assert _apply("url", "example.com")[1] == "Value is not a valid URL."
    assert _apply(["url", {"valid_schemes": ["HTTPS"]}], "https://example.com")[1] is None


def test_literal_braces_in_messages_are_kept() -> None:
    assert _apply(lambda value: 'Expected JSON like {"a": 1}', "x")[1] == 'Expected JSON like {"a": 1}'
    assert _apply(["string", {"max": 1, "message": "{label} exceeds {max} ({unknown})"}], "ab")[1] == (
        "{label} exceeds {max} ({unknown})"
    )
