"""
Integration Test: Round Closer

Test cases:
- Not enough data while an agent has no calls
- Winner, balances and action from all-time averages
- Closure does not touch the active round
- Results history and stats
"""

import asyncio

from clash.battle import round_closer, round_service
from clash.storage import Call


async def _add_calls(db, round_id, agent, multipliers, entry=100_000.0):
    for i, m in enumerate(multipliers):
        db.add(Call(
            round_id=round_id,
            agent=agent,
            token_address=f"{agent}-{i}",
            token_symbol=f"T{i}",
            entry_mcap=entry,
            current_mcap=entry * m,
            ath_mcap=entry * max(m, 1.0),
        ))
    await db.commit()


def test_close_requires_both_agents(memory_db):
    async def run():
        async with memory_db() as db:
            active = await round_service.ensure_active_round(db)
            assert await round_closer.close_round(db) is None

            await _add_calls(db, active.id, "opus", [1.5])
            assert await round_closer.close_round(db) is None
            assert await round_closer.get_recent_results(db) == []

    asyncio.run(run())


def test_close_records_winner(memory_db):
    async def run():
        async with memory_db() as db:
            active = await round_service.ensure_active_round(db)
            await _add_calls(db, active.id, "opus", [1.2, 1.4])
            await _add_calls(db, active.id, "codex", [1.0, 1.2])

            aggregates = await round_closer.get_agent_aggregates(db)
            assert aggregates["opus"].avg_multiplier == 1.3
            assert aggregates["codex"].avg_multiplier == 1.1
            assert aggregates["opus"].best_multiplier == 1.4
            assert aggregates["codex"].total_calls == 2

            result = await round_closer.close_round(db)

            assert result.winner == "opus"
            assert result.action == "buyback_burn"
            assert float(result.opus_balance) == 1300.00
            assert float(result.codex_balance) == 1100.00

            # Closing never completes the active round
            still_active = await round_service.get_active_round(db)
            assert still_active.id == active.id

    asyncio.run(run())


def test_zero_entry_counts_as_one(memory_db):
    async def run():
        async with memory_db() as db:
            active = await round_service.ensure_active_round(db)
            await _add_calls(db, active.id, "opus", [2.0], entry=0.0)
            await _add_calls(db, active.id, "codex", [1.0])

            result = await round_closer.close_round(db)

            assert result.winner == "draw"
            assert result.action == "none"

    asyncio.run(run())


def test_results_history_and_stats(memory_db):
    async def run():
        async with memory_db() as db:
            active = await round_service.ensure_active_round(db)
            await _add_calls(db, active.id, "opus", [0.5])
            await _add_calls(db, active.id, "codex", [1.5])

            first = await round_closer.close_round(db)
            assert first.winner == "codex"
            assert first.action == "airdrop"

            await _add_calls(db, active.id, "opus", [4.0, 4.0])
            second = await round_closer.close_round(db)
            assert second.winner == "opus"

            history = await round_closer.get_recent_results(db, limit=20)
            assert [r.id for r in history] == [second.id, first.id]
            assert len(await round_closer.get_recent_results(db, limit=1)) == 1

            stats = await round_closer.get_round_stats(db)
            assert stats.total_rounds == 2
            assert stats.opus_wins == 1
            assert stats.codex_wins == 1
            assert stats.buybacks == 1
            assert stats.airdrops == 1

    asyncio.run(run())
