"""
Unit Tests: Token Selector

Test cases:
- Exclusion set and market cap floor
- Repeated addresses counted once
- Empty selection
- Two sequential picks never collide
"""

import random

from clash.agents import CodexStrategy, OpusStrategy
from clash.battle import eligible_candidates, rank_candidates, select_token


def test_eligible_candidates_drops_excluded_and_untracked(make_token):
    candidates = [
        make_token("a", market_cap=50_000),
        make_token("b", market_cap=10_000),
        make_token("c", market_cap=0),
        make_token("d", market_cap=20_000),
    ]

    eligible = eligible_candidates(candidates, exclude={"d"})

    assert [t.address for t in eligible] == ["a"]


def test_eligible_candidates_drops_repeated_addresses(make_token):
    candidates = [
        make_token("a", market_cap=50_000),
        make_token("b", market_cap=60_000),
        make_token("a", market_cap=70_000),
    ]

    eligible = eligible_candidates(candidates)

    assert [t.address for t in eligible] == ["a", "b"]
    assert eligible[0].market_cap_usd == 50_000


def test_rank_candidates_sorted_best_first(make_token, fixed_rng):
    candidates = [
        make_token("low", market_cap=20_000_000, volume=0, change=0, txns=0),
        make_token("high", market_cap=1_000_000, volume=2_000_000, change=60, txns=6000),
    ]

    ranked = rank_candidates(OpusStrategy(), candidates, fixed_rng(0.0))

    assert [s.token.address for s in ranked] == ["high", "low"]
    assert ranked[0].score > ranked[1].score


def test_select_token_returns_none_without_eligible(make_token):
    candidates = [make_token("a", market_cap=5_000)]
    assert select_token(OpusStrategy(), candidates, random.Random(0)) is None
    assert select_token(OpusStrategy(), [], random.Random(0)) is None


def test_select_token_respects_exclusion(make_token, fixed_rng):
    best = make_token("best", market_cap=1_000_000, volume=2_000_000, change=60, txns=6000)
    other = make_token("other", market_cap=20_000_000, volume=0, change=0, txns=0)

    picked = select_token(OpusStrategy(), [best, other], fixed_rng(0.0), exclude={"best"})

    assert picked.address == "other"


def test_sequential_picks_never_collide(make_token):
    for seed in range(50):
        rng = random.Random(seed)
        candidates = [
            make_token(
                f"t{i}",
                market_cap=rng.uniform(20_000, 8_000_000),
                volume=rng.uniform(0, 2_000_000),
                change=rng.uniform(-20, 200),
                txns=rng.randint(0, 8000),
            )
            for i in range(rng.randint(2, 8))
        ]

        first = select_token(OpusStrategy(), candidates, rng)
        second = select_token(CodexStrategy(), candidates, rng, exclude={first.address})

        assert second is not None
        assert second.address != first.address
