"""Unit tests for loadorder.features.requests: the request-string grammar."""
from __future__ import annotations

import pytest

from loadorder.errors import FeatureParseError
from loadorder.features import FeatureRequest, parse_request


class TestParseRequest:
    def test_bare_name(self) -> None:
        assert parse_request("no-update") == FeatureRequest("no-update", (), "no-update")

    def test_name_characters(self) -> None:
        assert parse_request("my.feature_v2-beta").name == "my.feature_v2-beta"

    def test_arguments_are_split_and_trimmed(self) -> None:
        request = parse_request("define-feature( quiet ,  no-update )")
        assert request.name == "define-feature"
        assert request.arguments == ("quiet", "no-update")

    def test_original_text_is_kept(self) -> None:
        text = "  print(hello) "
        assert parse_request(text).text == text

    def test_empty_parentheses_mean_no_arguments(self) -> None:
        assert parse_request("print()").arguments == ()

    def test_space_before_parenthesis(self) -> None:
        assert parse_request("print (hi)").arguments == ("hi",)

    def test_nested_parentheses_stay_in_one_argument(self) -> None:
        assert parse_request("wrap(a(b, c), d)").arguments == ("a(b, c)", "d")

    def test_quoted_argument_keeps_commas_and_parens(self) -> None:
        request = parse_request('print("commas, and (parens)", x)')
        assert request.arguments == ("commas, and (parens)", "x")

    def test_escapes_inside_quotes(self) -> None:
        request = parse_request(r'print("say \"hi\" \\ bye")')
        assert request.arguments == ('say "hi" \\ bye',)

    def test_empty_trailing_argument_is_kept(self) -> None:
        assert parse_request("f(a,)").arguments == ("a", "")


class TestParseRequestErrors:
    @pytest.mark.parametrize(
        ("text", "reason"),
        [
            ("", "missing feature name"),
            ("(x)", "missing feature name"),
            ("name rest", "expected '('"),
            ("name(a", "missing closing"),
            ("name(a))", "unbalanced ')'"),
            ("name((a)", "unbalanced '('"),
            ('name("open)', "unterminated"),
        ],
    )
    def test_malformed(self, text: str, reason: str) -> None:
        with pytest.raises(FeatureParseError) as exc_info:
            parse_request(text)
        assert reason in exc_info.value.reason

    def test_non_string(self) -> None:
        with pytest.raises(FeatureParseError):
            parse_request(None)  # type: ignore[arg-type]
