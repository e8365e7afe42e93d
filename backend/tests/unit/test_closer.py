"""
Unit Tests: Round winner determination

Test cases:
- Opus win triggers buyback
- Codex win triggers airdrop
- Equal balances are a draw
"""

from clash.battle import ACTIONS, determine_winner


def test_opus_wins_with_higher_average():
    outcome = determine_winner(1.3, 1.1)

    assert outcome.winner == "opus"
    assert outcome.action == "buyback_burn"
    assert outcome.opus_balance == 1300.00
    assert outcome.codex_balance == 1100.00


def test_codex_wins_with_higher_average():
    outcome = determine_winner(0.8, 2.25)

    assert outcome.winner == "codex"
    assert outcome.action == "airdrop"
    assert outcome.codex_balance == 2250.00


def test_equal_averages_draw():
    outcome = determine_winner(1.05, 1.05)

    assert outcome.winner == "draw"
    assert outcome.action == "none"
    assert outcome.opus_balance == outcome.codex_balance


def test_custom_starting_balance():
    outcome = determine_winner(2.0, 1.0, starting_balance=50.0)
    assert (outcome.opus_balance, outcome.codex_balance) == (100.0, 50.0)


def test_action_mapping():
    assert ACTIONS == {"opus": "buyback_burn", "codex": "airdrop", "draw": "none"}
