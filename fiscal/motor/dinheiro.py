# fiscal/motor/dinheiro.py
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

D0 = Decimal("0")
CENTAVO = Decimal("0.01")
CEM = Decimal("100")

# Tolerância usada na conferência de totais declarados x recalculados
TOLERANCIA_TOTAIS = Decimal("0.01")


def to_decimal(valor: Any) -> Decimal:
    """
    Converte qualquer entrada numérica em Decimal.

    Regras:
      - None, string vazia, NaN/Infinity ou lixo viram 0.
      - float passa por str() para não carregar ruído binário.
    """
    if valor is None or valor == "":
        return D0
    if isinstance(valor, bool):
        return D0
    try:
        dec = valor if isinstance(valor, Decimal) else Decimal(str(valor))
    except (InvalidOperation, ValueError, TypeError):
        return D0
    if not dec.is_finite():
        return D0
    return dec


def quantizar(valor: Any) -> Decimal:
    """Arredonda para centavos (ROUND_HALF_UP, não bancário)."""
    return to_decimal(valor).quantize(CENTAVO, rounding=ROUND_HALF_UP)


def percentual(base: Decimal, aliquota: Decimal) -> Decimal:
    """base × aliquota / 100, sem arredondar."""
    return base * aliquota / CEM


def formatar(valor: Any) -> str:
    return f"{quantizar(valor):.2f}"
