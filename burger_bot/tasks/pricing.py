"""
Money helpers.

All amounts are integer centavos internally. Conversion to reais happens
only at the edges: customer-facing text and the order backend payload.
"""


def format_brl(cents: int) -> str:
    """Format centavos as Brazilian reais: 1850 -> 'R$ 18,50'."""
    sign = "-" if cents < 0 else ""
    reais, centavos = divmod(abs(cents), 100)
    return f"{sign}R$ {reais},{centavos:02d}"


def to_reais(cents: int) -> float:
    """Centavos to a 2-decimal float for JSON payloads."""
    return round(cents / 100, 2)
