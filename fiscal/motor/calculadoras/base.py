# fiscal/motor/calculadoras/base.py
from __future__ import annotations

from decimal import Decimal

from fiscal.motor.dinheiro import D0, to_decimal
from fiscal.motor.tipos import ClassificacaoFiscal, ItemNotaFiscal

_SEM_OVERRIDE = ClassificacaoFiscal()


def valor_bruto(item: ItemNotaFiscal) -> Decimal:
    return to_decimal(item.quantidade) * to_decimal(item.valor_unitario)


def valor_liquido(item: ItemNotaFiscal) -> Decimal:
    """quantidade × valor_unitario − desconto."""
    return valor_bruto(item) - to_decimal(item.valor_desconto)


def acessorios(item: ItemNotaFiscal) -> Decimal:
    """frete + seguro + outras despesas rateados no item."""
    return (
        to_decimal(item.valor_frete)
        + to_decimal(item.valor_seguro)
        + to_decimal(item.valor_outras_despesas)
    )


def base_calculo_item(item: ItemNotaFiscal) -> Decimal:
    """
    Base comum de ICMS/PIS/COFINS: valor bruto + acessórios − desconto.

    O desconto entra uma única vez (o valor_total do item já é líquido,
    por isso partimos do bruto). Nunca negativa.
    """
    base = valor_bruto(item) + acessorios(item) - to_decimal(item.valor_desconto)
    return base if base > D0 else D0


def override_de(item: ItemNotaFiscal) -> ClassificacaoFiscal:
    return item.classificacao_override or _SEM_OVERRIDE
