import os
import unittest

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/0")

from formflow.models.form_field import FormField
from formflow.services.field_validation import (
    MSG_EMAIL,
    MSG_NAME,
    MSG_NUMBER,
    MSG_PHONE,
    MSG_REQUIRED,
    MSG_URL,
    TERMS_ACCEPTED,
    format_phone_number,
    validate_answers,
    validate_field,
)


def _field(field_type: str, *, required: bool = False, field_id: str = "f1") -> FormField:
    return FormField(id=field_id, form_id=None, type=field_type, label="Campo", is_required=required)


class PhoneFormatterTests(unittest.TestCase):
    def test_keystroke_reformat_reaches_mobile_mask(self):
        typed = "11999998888"
        value = ""
        for char in typed:
            value = format_phone_number(value + char)
        self.assertEqual(value, "(11) 99999-8888")

    def test_intermediate_masks(self):
        self.assertEqual(format_phone_number("1"), "1")
        self.assertEqual(format_phone_number("11"), "11")
        self.assertEqual(format_phone_number("119"), "(11) 9")
        self.assertEqual(format_phone_number("1133334444"), "(11) 3333-4444")

    def test_non_digits_and_extra_digits_are_dropped(self):
        self.assertEqual(format_phone_number("+55 (11) 99999-8888"), "(55) 11999-9988")
        self.assertEqual(format_phone_number("119999988887777"), "(11) 99999-8888")
        self.assertEqual(format_phone_number(None), "")


class FieldValidationTests(unittest.TestCase):
    def test_required_rules(self):
        self.assertEqual(validate_field(_field("text", required=True), ""), MSG_REQUIRED)
        self.assertEqual(validate_field(_field("text", required=True), "   "), MSG_REQUIRED)
        self.assertEqual(validate_field(_field("checkbox", required=True), []), MSG_REQUIRED)
        self.assertEqual(validate_field(_field("checkbox", required=True), [""]), MSG_REQUIRED)
        self.assertIsNone(validate_field(_field("checkbox", required=True), ["A"]))

    def test_terms_require_acceptance_marker(self):
        terms = _field("terms", required=True)
        self.assertEqual(validate_field(terms, "true"), MSG_REQUIRED)
        self.assertIsNone(validate_field(terms, TERMS_ACCEPTED))

    def test_optional_empty_values_skip_format_rules(self):
        for field_type in ("email", "url", "tel", "name", "number"):
            self.assertIsNone(validate_field(_field(field_type), ""), field_type)

    def test_format_rules(self):
        self.assertEqual(validate_field(_field("email"), "not-an-email"), MSG_EMAIL)
        self.assertEqual(validate_field(_field("email"), "a@@b.com"), MSG_EMAIL)
        self.assertIsNone(validate_field(_field("email"), "a@b.com"))

        self.assertEqual(validate_field(_field("url"), "example.com"), MSG_URL)
        self.assertIsNone(validate_field(_field("url"), "https://example.com/x"))

        self.assertEqual(validate_field(_field("tel"), "11999998888"), MSG_PHONE)
        self.assertIsNone(validate_field(_field("tel"), "(11) 99999-8888"))
        self.assertIsNone(validate_field(_field("tel"), "(11) 3333-4444"))

        self.assertEqual(validate_field(_field("name"), "Maria"), MSG_NAME)
        self.assertIsNone(validate_field(_field("name"), "Maria Silva"))

        self.assertEqual(validate_field(_field("number"), "12a"), MSG_NUMBER)
        self.assertEqual(validate_field(_field("number"), "nan"), MSG_NUMBER)
        self.assertIsNone(validate_field(_field("number"), "-3.5"))

    def test_choice_without_options_still_applies_required(self):
        select = FormField(id="s", form_id=None, type="select", label="Opção", is_required=True, options=[])
        self.assertEqual(validate_field(select, None), MSG_REQUIRED)

    def test_validate_answers_reports_every_invalid_field(self):
        fields = [
            _field("email", required=True, field_id="a"),
            _field("text", field_id="b"),
            _field("name", required=True, field_id="c"),
        ]
        errors = validate_answers(fields, {"a": "x", "c": "Ana"})
        self.assertEqual(errors, {"a": MSG_EMAIL, "c": MSG_NAME})

    def test_trailing_newline_is_not_a_valid_format(self):
        self.assertEqual(validate_field(_field("email", required=True), "a@b.com\n"), MSG_EMAIL)
        self.assertEqual(validate_field(_field("tel"), "(11) 99999-8888\n"), MSG_PHONE)

    def test_number_accepts_plain_decimal_notation_only(self):
        for value in ("42", "+7", "0.5", ".5", "5.", "1e3", " 12 "):
            self.assertIsNone(validate_field(_field("number"), value), value)
        for value in ("1_000", "0x10", "inf", "Infinity", "1e", "."):
            self.assertEqual(validate_field(_field("number"), value), MSG_NUMBER, value)

    def test_field_type_is_matched_case_insensitively(self):
        self.assertEqual(validate_field(_field("EMAIL"), "nope"), MSG_EMAIL)
        self.assertEqual(validate_field(_field(" Tel "), "11999998888"), MSG_PHONE)
