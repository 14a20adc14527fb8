from __future__ import annotations

import pytest

from figtag.candidates.index import build_index
from figtag.candidates.models import MatchRequest, MatchStrategy
from figtag.candidates.resolver import resolve, resolve_name

FIGURE_LISTING = ["1690000000_Figura1.png", "logo.png"]


def test_exact_stage_matches_timestamped_candidate() -> None:
    result = resolve(MatchRequest(requested_name="Figura1.png"), build_index(FIGURE_LISTING))

    assert result.matched is True
    assert result.candidate is not None
    assert result.candidate.raw_name == "1690000000_Figura1.png"
    assert result.strategy_used == MatchStrategy.EXACT


def test_request_without_extension_is_not_exact() -> None:
    result = resolve_name("figura_1", build_index(FIGURE_LISTING))

    assert result.matched is True
    assert result.candidate is not None
    assert result.candidate.raw_name == "1690000000_Figura1.png"
    assert result.strategy_used in {MatchStrategy.NORMALIZED_SUBSTRING, MatchStrategy.WORD_OVERLAP}


def test_exact_stage_accepts_raw_name_with_timestamp() -> None:
    result = resolve_name("1690000000_figura1.png", build_index(FIGURE_LISTING))

    assert result.strategy_used == MatchStrategy.EXACT


def test_normalized_substring_when_candidate_contains_request() -> None:
    index = build_index(["171_grafico-vendas-2023.png"])

    result = resolve_name("Vendas 2023.png", index)

    assert result.matched is True
    assert result.strategy_used == MatchStrategy.NORMALIZED_SUBSTRING


def test_normalized_substring_folds_accents() -> None:
    index = build_index(["evolucao.png"])

    result = resolve_name("Evolução.jpg", index)

    assert result.matched is True
    assert result.strategy_used == MatchStrategy.NORMALIZED_SUBSTRING


def test_short_candidate_stem_does_not_absorb_request() -> None:
    index = build_index(["a.png"])

    result = resolve_name("banana chart.png", index)

    assert result.matched is False


def test_word_overlap_tolerates_reordered_segments() -> None:
    index = build_index(["171_sales_chart_q3.png", "logo.png"])

    result = resolve_name("q3-sales", index)

    assert result.matched is True
    assert result.candidate is not None
    assert result.candidate.raw_name == "171_sales_chart_q3.png"
    assert result.strategy_used == MatchStrategy.WORD_OVERLAP


def test_first_candidate_in_listing_order_wins_within_stage() -> None:
    index = build_index(["2_map.png", "1_map.png"])

    result = resolve_name("map.png", index)

    assert result.candidate is not None
    assert result.candidate.raw_name == "2_map.png"


def test_earlier_stage_beats_earlier_candidate() -> None:
    index = build_index(["map_of_region.png", "region.png"])

    result = resolve_name("region.png", index)

    assert result.candidate is not None
    assert result.candidate.raw_name == "region.png"
    assert result.strategy_used == MatchStrategy.EXACT


@pytest.mark.parametrize("listing", [[], ["logo.png", "banner.jpg"]])
def test_no_match_returns_unmatched(listing: list[str]) -> None:
    result = resolve_name("nonexistent.png", build_index(listing))

    assert result.matched is False
    assert result.candidate is None
    assert result.strategy_used is None


def test_blank_request_never_matches() -> None:
    assert resolve_name("   ", build_index(FIGURE_LISTING)).matched is False


def test_resolution_is_deterministic() -> None:
    index = build_index(["1_a_b.png", "2_b_a.png", "c.png"])

    first = resolve_name("b-a", index)
    second = resolve_name("b-a", index)

    assert first == second
