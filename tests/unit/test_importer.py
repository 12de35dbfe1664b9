"""Unit tests for importing downstream query strings."""

from __future__ import annotations

import pytest

from patent_query.exceptions import QueryImportError
from patent_query.expr.ast_nodes import (
    EntityRef,
    Logical,
    LogicalOp,
    Proximity,
    ProximityMode,
    SimultaneousProximity,
    WordToken,
)
from patent_query.expr.parser import parse_expression
from patent_query.expr.tokens import FieldName
from patent_query.expr.translate import render_query
from patent_query.importer import ClassificationSpan, import_query, parse_query_string
from patent_query.store.entities import ClassificationEntity, ExpressionEntity, WordEntity
from patent_query.store.repository import EntityRepository

# ---------------------------------------------------------------------------
# Grammar
# ---------------------------------------------------------------------------


class TestParseQueryString:
    def test_text_field_factor(self) -> None:
        assert parse_query_string("(基地局+NB)/TX") == [
            Logical(LogicalOp.OR, (WordToken("基地局"), WordToken("NB")))
        ]

    def test_top_level_product(self) -> None:
        factors = parse_query_string("NB/TX*UE/TX")
        assert factors == [WordToken("NB"), WordToken("UE")]

    def test_proximity_bracket(self) -> None:
        (factor,) = parse_query_string("[NB,10n,UE/TX+LTE/TX]")
        assert isinstance(factor, Proximity)
        assert factor.k == 10
        assert factor.left == WordToken("NB")
        assert factor.right == Logical(LogicalOp.OR, (WordToken("UE"), WordToken("LTE")))

    def test_simultaneous(self) -> None:
        (factor,) = parse_query_string("({A,B,C},5n)/TX")
        assert factor == SimultaneousProximity(
            5, (WordToken("A"), WordToken("B"), WordToken("C"))
        )

    def test_classification_pair_merges(self) -> None:
        (factor,) = parse_query_string(
            "[(H04W16/24+H04W36/00)/CP+(H04W16/24+H04W36/00)/FI]"
        )
        assert factor == ClassificationSpan(
            ("H04W16/24", "H04W36/00"),
            frozenset({FieldName.CLASSIFICATION_PRIMARY, FieldName.CLASSIFICATION_FURTHER}),
        )

    def test_full_width_input(self) -> None:
        assert parse_query_string("（Ａ＋Ｂ）／ＴＸ") == [
            Logical(LogicalOp.OR, (WordToken("Ａ"), WordToken("Ｂ")))
        ]

    def test_nested_proximity_left(self) -> None:
        (factor,) = parse_query_string("[(A,5n,B),3c,C/TX]")
        assert factor == Proximity(
            ProximityMode.SENTENCE_DISTANCE,
            3,
            Proximity(ProximityMode.WORD_DISTANCE, 5, WordToken("A"), WordToken("B")),
            WordToken("C"),
        )

    def test_proximity_as_right_alternative(self) -> None:
        (factor,) = parse_query_string("[A,1n,B/TX+(C,2n,D)/TX]")
        assert factor == Proximity(
            ProximityMode.WORD_DISTANCE,
            1,
            WordToken("A"),
            Logical(
                LogicalOp.OR,
                (
                    WordToken("B"),
                    Proximity(ProximityMode.WORD_DISTANCE, 2, WordToken("C"), WordToken("D")),
                ),
            ),
        )

    def test_product_operand(self) -> None:
        (factor,) = parse_query_string("[A*B,2n,C/TX]")
        assert factor.left == Logical(LogicalOp.AND, (WordToken("A"), WordToken("B")))

    def test_empty(self) -> None:
        assert parse_query_string("   ") == []

    def test_syntax_error(self) -> None:
        with pytest.raises(QueryImportError, match="Failed to import query"):
            parse_query_string("((A/TX")

    def test_words_and_codes_in_one_sum(self) -> None:
        with pytest.raises(QueryImportError, match="Cannot combine"):
            parse_query_string("(A)/TX+(H04W16/24)/CP")


# ---------------------------------------------------------------------------
# Entity creation
# ---------------------------------------------------------------------------


class TestImportQuery:
    def test_word_factor(self, repo: EntityRepository) -> None:
        result = import_query("(基地局+NB)/TX", repo)
        assert result.ok
        word, expression = result.entities
        assert isinstance(word, WordEntity)
        assert word.expression_key == "基地局+NB"
        assert word.variants[0] == "基地局"
        assert "ｎｂ" in word.variants
        assert isinstance(expression, ExpressionEntity)
        assert expression.label == "基地局+NB"
        assert expression.root == EntityRef(word.id)
        assert expression.can_use_for_proximity

    def test_without_variants(self, repo: EntityRepository) -> None:
        result = import_query("(基地局+NB)/TX", repo, expand_variants=False)
        word = result.entities[0]
        assert word.variants == ["基地局", "NB"]
        assert word.definition == "(基地局+NB)"
        assert render_query(EntityRef(result.entities[1].id), repo) == "(基地局+NB)/TX"

    def test_proximity_operands_become_words(self, repo: EntityRepository) -> None:
        result = import_query("[NB,10n,UE/TX]", repo, expand_variants=False)
        kinds = [type(e).__name__ for e in result.entities]
        assert kinds == ["WordEntity", "WordEntity", "ExpressionEntity"]
        expression = result.entities[-1]
        assert expression.label == "NB,10n,UE"
        assert expression.root.left == EntityRef(result.entities[0].id)
        assert render_query(EntityRef(expression.id), repo) == "[NB,10n,UE/TX]"

    def test_classification_factor(self, repo: EntityRepository) -> None:
        result = import_query("[(H04W16/24)/CP+(H04W16/24)/FI]", repo)
        (entity,) = result.entities
        assert isinstance(entity, ClassificationEntity)
        assert entity.codes == ("H04W16/24",)
        assert entity.label == "H04W16/24"

    def test_classification_reused(self, repo: EntityRepository) -> None:
        first = import_query("[(A01B1/00)/CP+(A01B1/00)/FI]", repo)
        second = import_query("[(A01B1/00)/CP+(A01B1/00)/FI]", repo)
        assert first.entities[0].id == second.entities[0].id
        assert len(repo.classifications()) == 1

    def test_word_reused_by_key(self, repo: EntityRepository) -> None:
        import_query("(A+B)/TX", repo)
        import_query("(A+B)/TX*C/TX", repo)
        assert len([w for w in repo.words() if w.expression_key == "A+B"]) == 1

    def test_factor_errors_collected(self) -> None:
        repo = EntityRepository(max_entities_per_kind=1)
        result = import_query("A/TX*B/TX", repo, expand_variants=False)
        assert not result.ok
        assert len(result.entities) == 2
        assert result.errors == [
            "factor 2: At most 1 word entities can be created; remove an existing one first"
        ]

    def test_product_factor_kept_as_expression(self, repo: EntityRepository) -> None:
        result = import_query("(A*B)/TX", repo)
        (expression,) = result.entities
        assert expression.root == Logical(LogicalOp.AND, (WordToken("A"), WordToken("B")))

    def test_invalid_query_raises(self, repo: EntityRepository) -> None:
        with pytest.raises(QueryImportError):
            import_query("[A,10n", repo)
        assert len(repo) == 0


# ---------------------------------------------------------------------------
# Reading rendered queries back
# ---------------------------------------------------------------------------


class TestRenderedQueriesImport:
    @pytest.mark.parametrize(
        "line",
        [
            "(A,5n,B),3c,C",
            "A,1n,B+C,2n,D",
            "(A,5n,B)+(C,3n,D)",
            "(A*B),2n,C",
            "{A,(B+x),C},5n*D",
            "NB*UE,10n,(LTE+5G)",
        ],
    )
    def test_rendered_output_imports(self, line: str, repo: EntityRepository) -> None:
        rendered = render_query(parse_expression(line))
        result = import_query(rendered, repo, expand_variants=False)
        assert result.ok
        assert result.entities

    def test_nested_proximity_rerenders_unchanged(self, repo: EntityRepository) -> None:
        rendered = render_query(parse_expression("(A,5n,B),3c,C"))
        assert rendered == "[(A,5n,B),3c,C/TX]"
        result = import_query(rendered, repo, expand_variants=False)
        expression = result.entities[-1]
        assert isinstance(expression, ExpressionEntity)
        assert expression.label == "(A,5n,B),3c,C"
        assert render_query(EntityRef(expression.id), repo) == rendered

    def test_proximity_alternative_imports_as_proximity(self, repo: EntityRepository) -> None:
        rendered = render_query(parse_expression("(A,5n,B)+(C,3n,D)"))
        assert rendered == "[A,5n,B/TX+(C,3n,D)/TX]"
        (factor,) = parse_query_string(rendered)
        assert factor.right.children[1] == Proximity(
            ProximityMode.WORD_DISTANCE, 3, WordToken("C"), WordToken("D")
        )
