"""Unit tests for step pattern compilation."""

from __future__ import annotations

import logging

import pytest

from gherkin_steps.patterns import (
    StepCompilationError,
    compile_step,
    detail_text,
    display_text,
    regex_text,
    split_step_parts,
    step_text_invariants,
)


class TestPureTextSteps:
    def test_plain_text_matches_only_itself(self) -> None:
        pattern = compile_step("I open the door", pure_text=True).pattern
        assert pattern.search("I open the door")
        assert pattern.search("I open the doorway") is None
        assert pattern.search("then I open the door") is None

    def test_regex_symbols_are_literal(self) -> None:
        pattern = compile_step("the total is 5.00 + tax?", pure_text=True).pattern
        assert pattern.search("the total is 5.00 + tax?")
        assert pattern.search("the total is 5x00 + tax?") is None
        assert pattern.search("the total is 5.00  tax") is None

    def test_parameters_survive_escaping(self) -> None:
        assert regex_text("I have {int} cukes", pure_text=True) == r"^I have -?\d+ cukes$"

    @pytest.mark.parametrize(
        ("step", "matching", "not_matching"),
        [
            ("I have {int} cukes", "I have -3 cukes", "I have three cukes"),
            ("it weighs {float} kg", "it weighs -1.5 kg", "it weighs a lot kg"),
            ("I am {word}", "I am happy", "I am very happy"),
            ("I click {string}", 'I click "OK"', "I click OK"),
            ("I click {string}", "I click 'OK'", 'I click "OK'),
            ("I type {stringInDoubleQuotes}", 'I type "abc"', 'I type ""'),
            ("I pick {color}", "I pick red", "I choose red"),
            ("I see {}", "I see anything at all", "You see it"),
        ],
    )
    def test_parameters(self, step: str, matching: str, not_matching: str) -> None:
        pattern = compile_step(step, pure_text=True).pattern
        assert pattern.search(matching)
        assert pattern.search(not_matching) is None

    def test_adjacent_custom_parameters(self) -> None:
        pattern = compile_step("I pick {color}{size}", pure_text=True).pattern
        assert pattern.search("I pick redXL")

    def test_escaped_brace_is_not_a_parameter(self) -> None:
        pattern = compile_step(r"I see \{name}", pure_text=True).pattern
        assert pattern.search(r"I see \{name}")
        assert pattern.search("I see Bob") is None

    def test_text_is_kept_as_written(self) -> None:
        assert compile_step(r"^a\b$", pure_text=True).text == r"^a\b$"

    def test_optional_text(self) -> None:
        pattern = compile_step("I have {int} cucumber(s)", pure_text=True).pattern
        assert pattern.search("I have 1 cucumber")
        assert pattern.search("I have 2 cucumbers")

    def test_alternative_text(self) -> None:
        pattern = compile_step("I open/close the door", pure_text=True).pattern
        assert pattern.search("I open the door")
        assert pattern.search("I close the door")
        assert pattern.search("I open/close the door") is None


class TestPatternTextSteps:
    def test_regex_is_kept(self) -> None:
        pattern = compile_step(r"^I have (\d+) cukes$").pattern
        assert pattern.search("I have 12 cukes")
        assert pattern.search("I have many cukes") is None

    def test_numeric_quantifier_is_not_a_parameter(self) -> None:
        pattern = compile_step(r"^code \d{3}$").pattern
        assert pattern.search("code 123")
        assert pattern.search("code 12") is None

    def test_interpolation(self) -> None:
        assert compile_step("I have #{count} items").pattern.search("I have 7 items")

    def test_custom_parameter(self) -> None:
        pattern = compile_step('a user named "{name}"').pattern
        assert pattern.search('a user named "Bob"')

    def test_escaped_slash(self) -> None:
        compiled = compile_step(r"^a\/b$")
        assert compiled.pattern.search("a/b")
        assert compiled.text == "a/b"

    def test_bare_slash_is_literal(self) -> None:
        assert compile_step("^1/2 done$").pattern.search("1/2 done")

    def test_invalid_regex_raises(self) -> None:
        with pytest.raises(StepCompilationError, match="cannot compile step") as exc_info:
            compile_step("I (open")
        assert isinstance(exc_info.value, ValueError)
        assert exc_info.value.step == "I (open"


class TestPartialPattern:
    @pytest.mark.parametrize("pure_text", [True, False])
    def test_every_leading_run_of_words_matches(self, pure_text: bool) -> None:
        text = "I open the front door"
        partial = compile_step(text, pure_text=pure_text).partial_pattern
        words = text.split(" ")
        for k in range(len(words) + 1):
            assert partial.match(" ".join(words[:k])), words[:k]

    def test_other_steps_do_not_match(self) -> None:
        partial = compile_step("I open the door", pure_text=True).partial_pattern
        assert partial.match("I close ") is None

    def test_parameters_match_typed_values(self) -> None:
        partial = compile_step("I have {int} cukes", pure_text=True).partial_pattern
        assert partial.match("I have 5 ")
        assert partial.match("I have five ") is None

    def test_falls_back_to_full_pattern(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.DEBUG, logger="gherkin_steps.patterns"):
            compiled = compile_step("^a +b$")
        assert compiled.partial_pattern is compiled.pattern
        assert "using full regex" in caplog.text


class TestSplitStepParts:
    @pytest.mark.parametrize(
        ("text", "parts"),
        [
            ("I open the door", ["I", "open", "the", "door"]),
            ("I have (a few) cukes", ["I", "have", "(a few)", "cukes"]),
            ("a (b (c d) e) f", ["a", "(b (c d) e)", "f"]),
            ("a \\( b", ["a", "\\(", "b"]),
            ("", [""]),
        ],
    )
    def test_split(self, text: str, parts: list[str]) -> None:
        assert split_step_parts(text) == parts


class TestInvariants:
    def test_single_group(self) -> None:
        assert step_text_invariants("I (open|close) the door") == [
            "I open the door",
            "I close the door",
        ]

    def test_groups_give_cross_product(self) -> None:
        assert step_text_invariants("I (open|close) the (door|window)") == [
            "I open the door",
            "I open the window",
            "I close the door",
            "I close the window",
        ]

    def test_non_capturing_group(self) -> None:
        assert step_text_invariants("(?:a|b) c") == ["a c", "b c"]

    def test_inner_group_first(self) -> None:
        assert step_text_invariants("I ((a|b)|c)") == ["I a", "I c", "I b", "I c"]

    def test_no_group(self) -> None:
        assert step_text_invariants("I (open) the door") == ["I (open) the door"]

    def test_each_invariant_matches_itself(self) -> None:
        for text in step_text_invariants("^I (open|close) the (door|window)$"):
            assert compile_step(text).pattern.search(display_text(text))


def test_display_text_drops_anchors_and_backslashes() -> None:
    assert display_text(r"^I have (\d+) cukes$") == "I have (d+) cukes"


@pytest.mark.parametrize(
    ("line", "detail"),
    [
        ("Given(/^I open$/, function () {", "Given(/^I open$/, function ()"),
        ("When('I wait', () => {", "When('I wait', ()"),
        ("@given('I have {int} cukes')", "@given('I have {int} cukes')"),
    ],
)
def test_detail_text_drops_function_body(line: str, detail: str) -> None:
    assert detail_text(line) == detail
