import math

from automation_engine.domain.workflow.value_objects.template import (
    MISSING,
    TemplateResolver,
    lookup_path,
    stringify,
    to_number,
)


def test_template_without_tokens_is_unchanged():
    text = "Thanks for the support!"
    assert TemplateResolver.resolve(text, {"fan": {"name": "Ana"}}) == text


def test_empty_template_returns_empty_string():
    assert TemplateResolver.resolve("", {"a": 1}) == ""


def test_template_resolve_nested_path():
    context = {"fan": {"email": "x@y.com", "name": "Ana"}}
    resolved = TemplateResolver.resolve("Hi {{fan.name}} <{{ fan.email }}>", context)
    assert resolved == "Hi Ana <x@y.com>"


def test_template_resolve_missing_segment_keeps_token():
    context = {"fan": {"name": "Ana"}}
    resolved = TemplateResolver.resolve("Send to {{fan.email}}", context)
    assert resolved == "Send to {{fan.email}}"


def test_template_resolve_null_value_keeps_token():
    resolved = TemplateResolver.resolve("{{fan.email}}", {"fan": {"email": None}})
    assert resolved == "{{fan.email}}"


def test_template_resolve_non_indexable_intermediate_keeps_token():
    resolved = TemplateResolver.resolve("{{count.value}}", {"count": 5})
    assert resolved == "{{count.value}}"


def test_template_numbers_use_default_string_form():
    context = {"amount": 5.0, "streams": 1000000, "ratio": 0.25}
    resolved = TemplateResolver.resolve("{{amount}} {{streams}} {{ratio}}", context)
    assert resolved == "5 1000000 0.25"


def test_template_booleans_render_lowercase():
    assert TemplateResolver.resolve("{{flag}}", {"flag": True}) == "true"


def test_template_list_index_segment():
    context = {"items": [{"title": "First"}, {"title": "Second"}]}
    assert TemplateResolver.resolve("{{items.1.title}}", context) == "Second"


def test_template_resolve_config_nested_dict_and_list():
    config = {
        "to": "{{fan.email}}",
        "nested": {"subject": "Hi {{fan.name}}"},
        "list": ["{{fan.name}}", 42],
    }
    context = {"fan": {"email": "x@y.com", "name": "Ana"}}
    resolved = TemplateResolver.resolve_config(config, context)
    assert resolved["to"] == "x@y.com"
    assert resolved["nested"]["subject"] == "Hi Ana"
    assert resolved["list"] == ["Ana", 42]


def test_lookup_path_returns_missing_marker():
    assert lookup_path({"a": {}}, "a.b") is MISSING
    assert lookup_path({"a": {"b": None}}, "a.b") is None


def test_stringify_dict_is_json():
    assert stringify({"a": 1}) == '{"a":1}'


def test_to_number_coercion():
    assert to_number("12") == 12
    assert to_number("  ") == 0
    assert to_number(True) == 1
    assert math.isnan(to_number("abc"))
    assert to_number(None) == 0
    assert math.isnan(to_number(MISSING))
