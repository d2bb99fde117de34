"""Tests for identifier protection and value quoting."""

from decimal import Decimal

import pytest

from querystone.query_builder import IdentifierQuoter, has_operator


@pytest.fixture
def quoter():
    return IdentifierQuoter("`")


class TestProtectIdentifiers:

    def test_dotted_name_quoted_per_segment(self, quoter):
        assert quoter.protect_identifiers("a.b") == "`a`.`b`"

    def test_function_call_kept_verbatim_with_alias(self, quoter):
        assert quoter.protect_identifiers("COUNT(*) AS c") == "COUNT(*) AS c"

    def test_alias_reattached(self, quoter):
        assert quoter.protect_identifiers("users u") == "`users` u"
        assert quoter.protect_identifiers("users  AS   u") == "`users` AS u"

    def test_wildcard_is_reserved(self, quoter):
        assert quoter.protect_identifiers("*") == "*"
        assert quoter.protect_identifiers("t.*") == "`t`.*"

    def test_quoting_is_idempotent(self, quoter):
        assert quoter.protect_identifiers("`id`") == "`id`"
        assert quoter.protect_identifiers("`a`.`b`") == "`a`.`b`"

    def test_embedded_delimiter_doubled(self, quoter):
        assert quoter.quote_identifier("we`ird") == "`we``ird`"

    def test_protection_can_be_disabled(self, quoter):
        assert quoter.protect_identifiers("name", protect=False) == "name"
        assert quoter.protect_identifiers("a.b", protect=False) == "a.b"

    def test_custom_reserved_identifiers(self):
        quoter = IdentifierQuoter("`", reserved_identifiers=["NOW"])
        assert quoter.protect_identifiers("NOW") == "NOW"

    def test_collections_protected_element_wise(self, quoter):
        assert quoter.protect_identifiers(["a", "b.c"]) == ["`a`", "`b`.`c`"]
        assert quoter.protect_identifiers({"x": "a"}) == {"x": "`a`"}


class TestQuote:

    @pytest.mark.parametrize(
        "value, expected",
        [
            (None, "NULL"),
            (True, "1"),
            (False, "0"),
            (5, "'5'"),
            (2.5, "'2.5'"),
            (Decimal("9.99"), "'9.99'"),
            ("ann", "'ann'"),
        ],
    )
    def test_literal_rendering(self, quoter, value, expected):
        assert quoter.quote(value) == expected

    def test_embedded_quotes_escaped(self, quoter):
        assert quoter.quote("O'Brien") == "'O\\'Brien'"
        assert quoter.quote('say "hi"') == "'say \\\"hi\\\"'"

    def test_control_characters_escaped(self, quoter):
        assert quoter.quote_str("a\\b") == "a\\\\b"
        assert quoter.quote_str("line\nbreak\r") == "line\\nbreak\\r"
        assert quoter.quote_str("nul\0") == "nul\\0"
        assert quoter.quote_str("eof\x1a") == "eof\\Z"

    def test_like_wildcards_escaped_once(self, quoter):
        assert quoter.quote_str("50%_off", like=True) == "50\\%\\_off"
        assert quoter.quote_str("50%_off") == "50%_off"

    def test_quote_list(self, quoter):
        assert quoter.quote_list([1, "a", None]) == ["'1'", "'a'", "NULL"]


class TestHasOperator:

    @pytest.mark.parametrize("condition", ["age >", "age >=", "a != ", "name IS NULL", "x=1"])
    def test_operator_detected(self, condition):
        assert has_operator(condition)

    def test_bare_column_has_no_operator(self):
        assert not has_operator("age")
        assert not has_operator("  `age`  ")
