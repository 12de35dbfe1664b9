"""Unit tests for the final query renderer and its bracket helpers."""

from __future__ import annotations

import pytest

from patent_query.expr.ast_nodes import ProximityMode
from patent_query.expr.field_parts import FieldParts, PartsKind, ProximityTerm, classify_parts
from patent_query.expr.render import (
    group_if_compound,
    has_top_level,
    render_class_factor,
    render_field_parts,
    render_proximity_term,
    render_word_factor,
    split_top_level_product,
    strip_outer_brackets,
)

# ---------------------------------------------------------------------------
# Bracket helpers
# ---------------------------------------------------------------------------


class TestSplitTopLevelProduct:
    def test_simple(self) -> None:
        assert split_top_level_product("A*B*C") == ["A", "B", "C"]

    def test_nested_star_not_split(self) -> None:
        assert split_top_level_product("(A*B)*C") == ["(A*B)", "C"]

    def test_brace_nesting(self) -> None:
        assert split_top_level_product("{A*B,C,D},5n*E") == ["{A*B,C,D},5n", "E"]

    def test_blank(self) -> None:
        assert split_top_level_product("  ") == []

    def test_no_star(self) -> None:
        assert split_top_level_product("(A+B)") == ["(A+B)"]

    @pytest.mark.parametrize(
        "factors",
        [
            ["A", "B"],
            ["(A+B)", "{E,F,G},5n", "X"],
            ["((X))", "Y+Z"],
            ["(A*B)", "C"],
        ],
    )
    def test_recovers_joined_factors(self, factors: list[str]) -> None:
        assert split_top_level_product("*".join(factors)) == factors

    @pytest.mark.parametrize(
        "factors",
        [
            ["(A+B)", "{E,F,G},5n", "X"],
            ["((X))", "Y+Z"],
        ],
    )
    def test_recovers_stripped_factors(self, factors: list[str]) -> None:
        stripped = [strip_outer_brackets(f) for f in factors]
        assert split_top_level_product("*".join(stripped)) == stripped


class TestStripOuterBrackets:
    def test_single_pair(self) -> None:
        assert strip_outer_brackets("(A+B)") == "A+B"

    def test_nested_pairs(self) -> None:
        assert strip_outer_brackets("((A+B))") == "A+B"

    def test_braces(self) -> None:
        assert strip_outer_brackets("{A}") == "A"

    def test_separate_groups_kept(self) -> None:
        assert strip_outer_brackets("(A)+(B)") == "(A)+(B)"

    def test_brace_form_kept(self) -> None:
        assert strip_outer_brackets("{A,B,C},5n") == "{A,B,C},5n"

    def test_mismatched_pair_kept(self) -> None:
        assert strip_outer_brackets("(A}") == "(A}"

    def test_whitespace_trimmed(self) -> None:
        assert strip_outer_brackets("  ( A )  ") == "A"

    @pytest.mark.parametrize(
        "text", ["((A+B))", "(A)*(B)", "{(A)}", "A", "", "((A)+B)", "(((X*Y)))"]
    )
    def test_idempotent(self, text: str) -> None:
        once = strip_outer_brackets(text)
        assert strip_outer_brackets(once) == once


class TestGrouping:
    def test_has_top_level_ignores_nested(self) -> None:
        assert not has_top_level("(A+B)*C", "+")
        assert has_top_level("A+(B)", "+")

    def test_group_if_compound(self) -> None:
        assert group_if_compound("A+B") == "(A+B)"
        assert group_if_compound("A,10n,B") == "(A,10n,B)"
        assert group_if_compound("{A,B,C},5n") == "({A,B,C},5n)"
        assert group_if_compound("A*B") == "A*B"
        assert group_if_compound("A") == "A"


# ---------------------------------------------------------------------------
# Factor rendering
# ---------------------------------------------------------------------------


class TestFactors:
    def test_plain_word(self) -> None:
        assert render_word_factor("NB") == "NB/TX"

    def test_bracketed_disjunction(self) -> None:
        assert render_word_factor("((基地局+NB+eNB))") == "(基地局+NB+eNB)/TX"

    def test_brace_form(self) -> None:
        assert render_word_factor("{A,B,C},5n") == "({A,B,C},5n)/TX"

    def test_proximity_term(self) -> None:
        term = ProximityTerm("NB", ["UE"], ProximityMode.WORD_DISTANCE, 10)
        assert render_proximity_term(term) == "[NB,10n,UE/TX]"

    def test_proximity_term_alternatives(self) -> None:
        term = ProximityTerm("(A+B)", ["(C)", "D+E"], ProximityMode.SENTENCE_DISTANCE, 2)
        assert render_proximity_term(term) == "[(A+B),2c,C/TX+(D+E)/TX]"

    def test_class_factor(self) -> None:
        assert (
            render_class_factor("((H04W16/24+H04W36/00))")
            == "[(H04W16/24+H04W36/00)/CP+(H04W16/24+H04W36/00)/FI]"
        )


class TestRenderFieldParts:
    def test_empty(self) -> None:
        assert render_field_parts(FieldParts()) == ""

    def test_words_joined_with_star(self) -> None:
        assert render_field_parts(FieldParts(words=["NB", "UE"])) == "NB/TX*UE/TX"

    def test_words_then_classes(self) -> None:
        parts = FieldParts(words=["A"], classes=["(F1)", "(F2+F3)"])
        assert render_field_parts(parts) == (
            "A/TX*[(F1)/CP+(F1)/FI]*[(F2+F3)/CP+(F2+F3)/FI]"
        )

    def test_classes_only(self) -> None:
        assert render_field_parts(FieldParts(classes=["F1"])) == "[(F1)/CP+(F1)/FI]"

    def test_blank_factors_skipped(self) -> None:
        assert render_field_parts(FieldParts(words=["", "()"], classes=[" "])) == ""


class TestClassifyParts:
    def test_kinds(self) -> None:
        assert classify_parts(FieldParts()) is PartsKind.EMPTY
        assert classify_parts(FieldParts(words=["A"])) is PartsKind.WORD_ONLY
        assert classify_parts(FieldParts(classes=["(F)"])) is PartsKind.CLASS_ONLY
        assert classify_parts(FieldParts(words=["A"], classes=["(F)"])) is PartsKind.MIXED

    def test_proximity_term_counts_as_word(self) -> None:
        term = ProximityTerm("A", ["B"], ProximityMode.WORD_DISTANCE, 1)
        assert classify_parts(FieldParts(words=[term])) is PartsKind.WORD_ONLY

    def test_blank_strings_are_empty(self) -> None:
        assert classify_parts(FieldParts(words=["  "], classes=[""])) is PartsKind.EMPTY
