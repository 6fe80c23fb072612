# fiscal/motor/totais.py
from __future__ import annotations

from dataclasses import fields
from decimal import Decimal
from typing import Dict, Iterable

from fiscal.motor.calculadoras.base import valor_bruto
from fiscal.motor.dinheiro import D0, quantizar, to_decimal
from fiscal.motor.tipos import (
    ImpostosProduto,
    ImpostosServico,
    ItemNotaFiscal,
    TipoItem,
    TotaisNotaFiscal,
)


def recalcular_totais(itens: Iterable[ItemNotaFiscal]) -> TotaisNotaFiscal:
    """
    Soma os itens em totais da nota.

    Regras:
      - valor_produtos / valor_servicos somam o valor bruto (qtd × unitário).
      - Frete, seguro, outras e desconto vêm do rateio de cada item.
      - Impostos são somados sem arredondar e cada total é arredondado
        (ROUND_HALF_UP) só no final.
      - valor_total = produtos + serviços + frete + seguro + outras
        − descontos + ICMS-ST + IPI.
    """
    soma: Dict[str, Decimal] = {f.name: D0 for f in fields(TotaisNotaFiscal)}

    for item in itens:
        if item.tipo == TipoItem.PRODUTO:
            soma["valor_produtos"] += valor_bruto(item)
        else:
            soma["valor_servicos"] += valor_bruto(item)

        soma["valor_desconto"] += to_decimal(item.valor_desconto)
        soma["valor_frete"] += to_decimal(item.valor_frete)
        soma["valor_seguro"] += to_decimal(item.valor_seguro)
        soma["valor_outras_despesas"] += to_decimal(item.valor_outras_despesas)

        impostos = item.impostos
        if isinstance(impostos, ImpostosProduto):
            soma["base_calculo_icms"] += impostos.icms.base_calculo
            soma["valor_icms"] += impostos.icms.valor
            soma["valor_icms_st"] += impostos.icms.valor_st
            soma["valor_ipi"] += impostos.ipi.valor
            soma["valor_pis"] += impostos.pis.valor
            soma["valor_cofins"] += impostos.cofins.valor
        elif isinstance(impostos, ImpostosServico):
            soma["valor_iss"] += impostos.iss.valor
            if impostos.iss.retido:
                soma["valor_iss_retido"] += impostos.iss.valor
            soma["valor_pis"] += impostos.pis.valor
            soma["valor_cofins"] += impostos.cofins.valor

    soma["valor_total_tributos"] = (
        soma["valor_icms"]
        + soma["valor_icms_st"]
        + soma["valor_ipi"]
        + soma["valor_pis"]
        + soma["valor_cofins"]
        + soma["valor_iss"]
    )
    soma["valor_total"] = (
        soma["valor_produtos"]
        + soma["valor_servicos"]
        + soma["valor_frete"]
        + soma["valor_seguro"]
        + soma["valor_outras_despesas"]
        - soma["valor_desconto"]
        + soma["valor_icms_st"]
        + soma["valor_ipi"]
    )

    return TotaisNotaFiscal(**{nome: quantizar(valor) for nome, valor in soma.items()})
