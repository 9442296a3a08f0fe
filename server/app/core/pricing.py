"""Price tiers for jobs."""

from app.models.job import PriceTier

PRICE_TIERS: dict[str, int] = {
    PriceTier.BASIC.value: 50,
    PriceTier.STANDARD.value: 100,
    PriceTier.PREMIUM.value: 200,
}


def get_price_amount(tier: str | None) -> int:
    """Dollar amount for a tier name; unknown tiers price at 0."""
    if not tier:
        return 0
    return PRICE_TIERS.get(tier.lower(), 0)


def format_price(amount: int) -> str:
    return f"${amount}"


def get_price_display(tier: str) -> str:
    return f"{format_price(get_price_amount(tier))} ({tier})"
