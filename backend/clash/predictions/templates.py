"""Question templates and canned stance reasoning for daily price predictions."""

from dataclasses import dataclass

ASSETS = ("BTC", "ETH", "SOL")

# Full names that may appear in question text instead of the ticker
ASSET_ALIASES = {
    "BITCOIN": "BTC",
    "ETHEREUM": "ETH",
    "SOLANA": "SOL",
}

ABOVE = "above"
BELOW = "below"
YES = "YES"
NO = "NO"

CATEGORY = "crypto"


@dataclass(frozen=True)
class PredictionTemplate:
    asset: str
    increment: int


TEMPLATES = (
    PredictionTemplate("BTC", 1000),
    PredictionTemplate("BTC", 500),
    PredictionTemplate("ETH", 100),
    PredictionTemplate("ETH", 50),
    PredictionTemplate("SOL", 10),
    PredictionTemplate("SOL", 5),
)


def format_question(asset: str, direction: str, target: float) -> str:
    if float(target).is_integer():
        amount = f"{int(target):,}"
    else:
        amount = f"{target:,.2f}"
    return f"Will {asset} close {direction} ${amount} today (23:59 UTC)?"


OPUS_REASONINGS = {
    YES: [
        "Volume metrics indicate strong buyer interest. Risk/reward favorable.",
        "Technical setup suggests continuation. Order flow looks healthy.",
        "Momentum indicators aligned. Smart money accumulating.",
        "Historical patterns support this outcome. Sentiment positive.",
        "On-chain data shows accumulation. Price action constructive.",
    ],
    NO: [
        "Distribution pattern emerging. Volume declining on pumps.",
        "Resistance levels too strong. Momentum fading.",
        "Risk factors outweigh potential upside. Caution advised.",
        "Market structure weakening. Better opportunities elsewhere.",
        "Sentiment overextended. Mean reversion likely.",
    ],
}

CODEX_REASONINGS = {
    YES: [
        "Degen energy strong on this one. FOMO factor high.",
        "Chart looks primed for send. Community active.",
        "Trend is your friend. Worth the risk.",
        "Social metrics spiking. Could run hard.",
        "Setup too good to ignore. Aping in spirit.",
    ],
    NO: [
        "Looks like a trap. Bulls getting exhausted.",
        "Too much hype, not enough substance.",
        "Rejection incoming. Pass on this one.",
        "Already pumped too hard. Late entry = rekt.",
        "Better plays out there. This one is mid.",
    ],
}
