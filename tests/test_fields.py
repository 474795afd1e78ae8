"""Tests for rule descriptors and field/form elements."""

import json

import pytest

from formjudge.errors import DescriptorError
from formjudge.validation.fields import (
    FieldElement,
    Form,
    attribute_from_name,
    camelize,
    id_from_name,
    is_blank,
    name_segments,
    record_type_from_name,
)
from formjudge.validation.types import RuleDescriptor, parse_descriptors, serialize_descriptors


# =============================================================================
# Descriptor parsing
# =============================================================================


class TestParseDescriptors:
    def test_parses_list(self):
        raw = json.dumps([
            {"kind": "presence", "options": {}, "messages": {"blank": "can't be blank"}},
            {"kind": "length", "options": {"minimum": 3}, "messages": {}},
        ])
        descriptors = parse_descriptors(raw)
        assert [d.kind for d in descriptors] == ["presence", "length"]
        assert descriptors[0].messages == {"blank": "can't be blank"}
        assert descriptors[1].options == {"minimum": 3}

    def test_none_and_empty_mean_no_rules(self):
        assert parse_descriptors(None) == []
        assert parse_descriptors("  ") == []
        assert parse_descriptors("[]") == []

    def test_missing_options_and_messages_default_to_empty(self):
        (d,) = parse_descriptors('[{"kind": "presence"}]')
        assert d.options == {}
        assert d.messages == {}
        assert d.allow_blank is False

    def test_allow_blank_from_options(self):
        (d,) = parse_descriptors('[{"kind": "length", "options": {"allow_blank": true}}]')
        assert d.allow_blank is True

    def test_allow_blank_top_level(self):
        (d,) = parse_descriptors('[{"kind": "length", "allowBlank": true}]')
        assert d.allow_blank is True

    def test_malformed_json(self):
        with pytest.raises(DescriptorError):
            parse_descriptors('[{"kind": ')

    def test_not_a_list(self):
        with pytest.raises(DescriptorError):
            parse_descriptors('{"kind": "presence"}')

    def test_missing_kind(self):
        with pytest.raises(DescriptorError):
            parse_descriptors('[{"options": {}}]')

    def test_options_must_be_object(self):
        with pytest.raises(DescriptorError):
            parse_descriptors('[{"kind": "length", "options": [1]}]')

    def test_serialize_round_trip_keeps_allow_blank(self):
        descriptors = [RuleDescriptor(kind="format", options={"with": "a"}, allow_blank=True)]
        (d,) = parse_descriptors(serialize_descriptors(descriptors))
        assert d == RuleDescriptor(
            kind="format", options={"with": "a", "allow_blank": True}, allow_blank=True
        )


# =============================================================================
# Wire names
# =============================================================================


class TestWireNames:
    def test_segments(self):
        assert name_segments("user[emails_attributes][0][address]") == [
            "user", "emails_attributes", "0", "address",
        ]
        assert name_segments("email") == ["email"]

    def test_attribute(self):
        assert attribute_from_name("user[email]") == "email"
        assert attribute_from_name("email") == "email"

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("user[email]", "User"),
            ("blog_post[title]", "BlogPost"),
            ("user[email_attributes][address]", "EmailAttributes"),
            ("user[emails_attributes][0][address]", "EmailsAttributes"),
            ("email", None),
        ],
    )
    def test_record_type(self, name, expected):
        assert record_type_from_name(name) == expected

    def test_camelize(self):
        assert camelize("email_attributes") == "EmailAttributes"

    def test_id(self):
        assert id_from_name("user[password]") == "user_password"


class TestIsBlank:
    @pytest.mark.parametrize("value", [None, "", "   ", [], {}])
    def test_blank(self, value):
        assert is_blank(value)

    @pytest.mark.parametrize("value", ["a", " a ", 0, False, ["x"]])
    def test_not_blank(self, value):
        assert not is_blank(value)


# =============================================================================
# Field / Form
# =============================================================================


class TestFieldElement:
    def test_id_derived_from_name(self):
        assert FieldElement(name="user[email]").id == "user_email"

    def test_explicit_record_type_wins(self):
        f = FieldElement(name="user[email]", record_type="Account")
        assert f.resolved_record_type == "Account"

    def test_from_dict_accepts_decoded_rules(self):
        f = FieldElement.from_dict({
            "name": "user[name]",
            "value": 12,
            "validate": [{"kind": "presence"}],
            "originalValue": "old",
        })
        assert f.value == "12"
        assert f.original_value == "old"
        assert parse_descriptors(f.validate)[0].kind == "presence"

    @pytest.mark.parametrize(
        "raw,expected",
        [(True, "true"), (False, "false"), (None, ""), (3.5, "3.5"), ("x", "x")],
    )
    def test_from_dict_serializes_values_like_the_wire(self, raw, expected):
        assert FieldElement.from_dict({"name": "user[terms]", "value": raw}).value == expected

    def test_from_dict_serializes_original_value(self):
        f = FieldElement.from_dict({"name": "user[active]", "value": "x", "original_value": True})
        assert f.original_value == "true"

    def test_sibling_without_form(self):
        assert FieldElement(name="user[password]").sibling("user_password_confirmation") is None


class TestForm:
    def test_lookup(self):
        password = FieldElement(name="user[password]", value="s3cret")
        confirmation = FieldElement(name="user[password_confirmation]", value="s3cret")
        form = Form([password, confirmation], name="signup")

        assert len(form) == 2
        assert form.get("user_password_confirmation") is confirmation
        assert form.get_by_name("user[password]") is password
        assert password.sibling("user_password_confirmation") is confirmation
        assert form.get("missing") is None

    def test_validated_fields(self):
        form = Form([
            FieldElement(name="a", validate="[]"),
            FieldElement(name="b"),
        ])
        assert [f.name for f in form.validated_fields()] == ["a"]

    def test_from_dict(self):
        form = Form.from_dict({
            "name": "signup",
            "fields": [{"name": "user[email]", "value": "a@example.com"}],
        })
        assert form.name == "signup"
        assert form.fields[0].form is form
