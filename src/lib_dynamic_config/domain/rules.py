"""Validation rules applied to config item values.

Purpose
-------
Items declare their validation as a list of lightweight descriptors
(``["required"]``, ``["string", {"max": 64}]``, ``{"rule": "in", "range":
[1, 2]}``). This module turns those descriptors into :class:`Rule` objects and
hosts the registry of built-in rule kinds.

Contents
--------
* :class:`Rule` – a validator or filter bound to its options.
* :func:`build_rule` / :func:`build_rules` – descriptor normalisation.
* :func:`register_rule` – extend the registry with custom kinds.
* :func:`is_empty` – the emptiness test shared by all rules.

System Role
-----------
Consumed by :class:`lib_dynamic_config.domain.item.Item`. Type and format
checks run through pydantic ``TypeAdapter`` validators whose error types map
onto the item messages. Rule failures are reported as messages, never
raised; only malformed descriptors raise :class:`ConfigurationError` and
unusable options raise :class:`ValidationError`.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Annotated, Any, Callable, Final, Literal

import pydantic
from pydantic import AnyUrl, EmailStr, Field, StrictBool, StrictStr, TypeAdapter

from .errors import ConfigurationError, ValidationError

Check = Callable[[Any, Mapping[str, Any]], "tuple[Any, str | None]"]

_EMAIL: Final[TypeAdapter[str]] = TypeAdapter(EmailStr)
_URL: Final[TypeAdapter[AnyUrl]] = TypeAdapter(AnyUrl)
_STRICT_BOOL: Final[TypeAdapter[bool]] = TypeAdapter(StrictBool)
_LOOSE_BOOL: Final[TypeAdapter[bool]] = TypeAdapter(bool)

_BOUND_MESSAGES: Final[dict[str, dict[str, str]]] = {
    "value": {
        "greater_than_equal": "{label} must be no less than {min}.",
        "less_than_equal": "{label} must be no greater than {max}.",
    },
    "length": {
        "string_too_short": "{label} should contain at least {min} characters.",
        "string_too_long": "{label} should contain at most {max} characters.",
    },
}

_OPERATORS: Final[dict[str, Callable[[Any, Any], bool]]] = {
    "==": lambda a, b: a == b,
    "!=": lambda a, b: a != b,
    ">": lambda a, b: a > b,
    ">=": lambda a, b: a >= b,
    "<": lambda a, b: a < b,
    "<=": lambda a, b: a <= b,
}


def is_empty(value: Any) -> bool:
    """Return ``True`` for ``None`` and empty strings/collections.

    Zero and ``False`` are values, not absence.

    >>> [is_empty(v) for v in (None, "", [], {}, 0, False, "x")]
    [True, True, True, True, False, False, False]
    """

    if value is None:
        return True
    if isinstance(value, (str, bytes, list, tuple, dict, set, frozenset)):
        return len(value) == 0
    return False


@dataclass(frozen=True)
class Rule:
    """A validator (or value filter) bound to its options.

    Attributes
    ----------
    kind:
        Registry name, or ``"callable"`` for inline functions.
    check:
        Function ``(value, options) -> (value, error)``; ``error`` is ``None``
        on success and may contain ``{label}`` plus option placeholders.
    options:
        Options given in the descriptor (``message`` overrides the error).
    skip_on_empty:
        Whether empty values bypass the check entirely.
    """

    kind: str
    check: Check
    options: Mapping[str, Any] = field(default_factory=dict)
    skip_on_empty: bool = True

    def apply(self, value: Any, label: str) -> tuple[Any, str | None]:
        """Run the rule against *value*, returning the (possibly filtered) value and an error."""

        if self.skip_on_empty and is_empty(value):
            return value, None
        new_value, error = self.check(value, self.options)
        if error is None:
            return new_value, None
        template = str(self.options.get("message", error))
        placeholders = {key: val for key, val in self.options.items() if key != "message"}
        return new_value, render_message(template, label=label, **placeholders)


def render_message(template: str, **fields: Any) -> str:
    """Fill ``{name}`` placeholders of *template*; text that is not a valid template comes back unchanged.

    >>> render_message("{label} must be positive.", label="Limit")
    'Limit must be positive.'
    >>> render_message('Expected JSON like {"a": 1}', label="Payload")
    'Expected JSON like {"a": 1}'
    """

    try:
        return template.format_map(fields)
    except (KeyError, IndexError, ValueError, AttributeError, TypeError):
        return template


_REGISTRY: dict[str, tuple[Check, bool]] = {}


def register_rule(kind: str, check: Check, *, skip_on_empty: bool = True) -> None:
    """Make *kind* available to item rule descriptors."""

    _REGISTRY[kind] = (check, skip_on_empty)


def build_rules(descriptors: Sequence[Any]) -> list[Rule]:
    """Return the rule list for *descriptors* with the implicit ``safe`` rule first."""

    if isinstance(descriptors, (str, Mapping)) or not isinstance(descriptors, Sequence):
        raise ConfigurationError("Item rules must be a list of rule descriptors.")
    return [build_rule("safe"), *(build_rule(descriptor) for descriptor in descriptors)]


def build_rule(descriptor: Any) -> Rule:
    """Normalise a single rule *descriptor* into a :class:`Rule`.

    Accepted forms: a :class:`Rule`, a kind name, a callable returning an error
    message or ``None``, a list ``[kind, {options}...]`` or a mapping with a
    ``rule`` key.

    Examples
    --------
    >>> build_rule(["string", {"max": 3}]).options
    {'max': 3}
    >>> build_rule({"rule": "required"}).kind
    'required'
    """

    if isinstance(descriptor, Rule):
        return descriptor
    if isinstance(descriptor, str):
        return _from_kind(descriptor, {})
    if callable(descriptor):
        return _from_callable(descriptor, {})
    if isinstance(descriptor, Mapping):
        options = dict(descriptor)
        kind = options.pop("rule", None)
        return _dispatch(kind, options)
    if isinstance(descriptor, Sequence) and descriptor:
        options = {}
        for extra in descriptor[1:]:
            if not isinstance(extra, Mapping):
                raise ConfigurationError(f"Invalid validation rule options: {extra!r}")
            options.update(extra)
        return _dispatch(descriptor[0], options)
    raise ConfigurationError("Invalid validation rule: a rule must specify validator type.")


def _dispatch(kind: Any, options: dict[str, Any]) -> Rule:
    if isinstance(kind, str):
        return _from_kind(kind, options)
    if callable(kind):
        return _from_callable(kind, options)
    raise ConfigurationError("Invalid validation rule: a rule must specify validator type.")


def _from_kind(kind: str, options: dict[str, Any]) -> Rule:
    try:
        check, skip_on_empty = _REGISTRY[kind]
    except KeyError as exc:
        raise ConfigurationError(f"Unknown validation rule '{kind}'.") from exc
    skip = bool(options.pop("skip_on_empty", skip_on_empty))
    return Rule(kind=kind, check=check, options=options, skip_on_empty=skip)


def _from_callable(func: Callable[..., Any], options: dict[str, Any]) -> Rule:
    def check(value: Any, opts: Mapping[str, Any]) -> tuple[Any, str | None]:
        return value, func(value)

    skip = bool(options.pop("skip_on_empty", False))
    return Rule(kind="callable", check=check, options=options, skip_on_empty=skip)


def _require(options: Mapping[str, Any], name: str, kind: str) -> Any:
    if name not in options:
        raise ValidationError(f"The '{name}' option is required for the '{kind}' rule.")
    return options[name]


def _validate(adapter: TypeAdapter[Any], value: Any) -> tuple[Any, str | None]:
    """Validate *value* with *adapter*; return the parsed value and the first pydantic error type."""

    try:
        return adapter.validate_python(value), None
    except pydantic.ValidationError as exc:
        return None, exc.errors()[0]["type"]


@lru_cache(maxsize=128)
def _bounded(kind: type, minimum: Any, maximum: Any) -> TypeAdapter[Any]:
    return TypeAdapter(Annotated[kind, Field(ge=minimum, le=maximum)])


@lru_cache(maxsize=128)
def _sized_text(min_length: int | None, max_length: int | None) -> TypeAdapter[str]:
    return TypeAdapter(Annotated[StrictStr, Field(min_length=min_length, max_length=max_length)])


@lru_cache(maxsize=128)
def _choices(allowed: tuple[Any, ...]) -> TypeAdapter[Any]:
    return TypeAdapter(Literal[allowed])


def _numeric(value: Any, options: Mapping[str, Any], kind: type, message: str) -> tuple[Any, str | None]:
    if isinstance(value, bool):
        return value, message
    _, error = _validate(_bounded(kind, options.get("min"), options.get("max")), value)
    if error is None:
        return value, None
    return value, _BOUND_MESSAGES["value"].get(error, message)


def _safe(value: Any, options: Mapping[str, Any]) -> tuple[Any, str | None]:
    return value, None


def _required(value: Any, options: Mapping[str, Any]) -> tuple[Any, str | None]:
    stripped = value.strip() if isinstance(value, str) else value
    return value, ("{label} cannot be blank." if is_empty(stripped) else None)


def _string(value: Any, options: Mapping[str, Any]) -> tuple[Any, str | None]:
    length = options.get("length")
    if length is not None:
        adapter = _sized_text(length, length)
    else:
        adapter = _sized_text(options.get("min"), options.get("max"))
    _, error = _validate(adapter, value)
    if error is None:
        return value, None
    if error == "string_type":
        return value, "{label} must be a string."
    if length is not None:
        return value, "{label} should contain {length} characters."
    return value, _BOUND_MESSAGES["length"].get(error, "{label} is invalid.")


def _integer(value: Any, options: Mapping[str, Any]) -> tuple[Any, str | None]:
    return _numeric(value, options, int, "{label} must be an integer.")


def _number(value: Any, options: Mapping[str, Any]) -> tuple[Any, str | None]:
    return _numeric(value, options, float, "{label} must be a number.")


def _boolean(value: Any, options: Mapping[str, Any]) -> tuple[Any, str | None]:
    adapter = _STRICT_BOOL if options.get("strict") else _LOOSE_BOOL
    _, error = _validate(adapter, value)
    return value, (None if error is None else "{label} must be either true or false.")


def _in(value: Any, options: Mapping[str, Any]) -> tuple[Any, str | None]:
    allowed = tuple(_require(options, "range", "in"))
    try:
        found = bool(allowed) and _validate(_choices(allowed), value)[1] is None
    except TypeError:
        # Unhashable choices cannot form a Literal.
        found = value in allowed
    if options.get("not"):
        found = not found
    return value, (None if found else "{label} is invalid.")


def _match(value: Any, options: Mapping[str, Any]) -> tuple[Any, str | None]:
    pattern = _require(options, "pattern", "match")
    matched = isinstance(value, str) and re.search(pattern, value) is not None
    if options.get("not") and isinstance(value, str):
        matched = not matched
    return value, (None if matched else "{label} is invalid.")


def _email(value: Any, options: Mapping[str, Any]) -> tuple[Any, str | None]:
    _, error = _validate(_EMAIL, value)
    return value, (None if error is None else "{label} is not a valid email address.")


def _url(value: Any, options: Mapping[str, Any]) -> tuple[Any, str | None]:
    schemes = {scheme.lower() for scheme in options.get("valid_schemes", ("http", "https"))}
    url, error = _validate(_URL, value)
    valid = error is None and url.scheme in schemes
    return value, (None if valid else "{label} is not a valid URL.")


def _compare(value: Any, options: Mapping[str, Any]) -> tuple[Any, str | None]:
    expected = _require(options, "compare_value", "compare")
    operator = options.get("operator", "==")
    try:
        compare = _OPERATORS[operator]
    except KeyError as exc:
        raise ValidationError(f"Unknown compare operator '{operator}'.") from exc
    try:
        valid = compare(value, expected)
    except TypeError:
        valid = False
    return value, (None if valid else "{label} must be " + operator + " \"{compare_value}\".")


def _default(value: Any, options: Mapping[str, Any]) -> tuple[Any, str | None]:
    if not is_empty(value):
        return value, None
    default = _require(options, "value", "default")
    return (default() if callable(default) else default), None


def _trim(value: Any, options: Mapping[str, Any]) -> tuple[Any, str | None]:
    return (value.strip() if isinstance(value, str) else value), None


def _filter(value: Any, options: Mapping[str, Any]) -> tuple[Any, str | None]:
    func = _require(options, "filter", "filter")
    if not callable(func):
        raise ValidationError("The 'filter' option of the 'filter' rule must be callable.")
    return func(value), None


register_rule("safe", _safe, skip_on_empty=False)
register_rule("required", _required, skip_on_empty=False)
register_rule("string", _string)
register_rule("integer", _integer)
register_rule("number", _number)
register_rule("boolean", _boolean)
register_rule("in", _in)
register_rule("match", _match)
register_rule("email", _email)
register_rule("url", _url)
register_rule("compare", _compare)
register_rule("default", _default, skip_on_empty=False)
register_rule("trim", _trim)
register_rule("filter", _filter)
