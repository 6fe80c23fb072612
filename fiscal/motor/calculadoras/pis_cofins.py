# fiscal/motor/calculadoras/pis_cofins.py
from __future__ import annotations

from typing import Tuple

from fiscal.motor.calculadoras.base import base_calculo_item, override_de
from fiscal.motor.catalogo import aliquotas_pis_cofins
from fiscal.motor.dinheiro import D0, percentual
from fiscal.motor.tipos import ImpostoCOFINS, ImpostoPIS, ItemNotaFiscal, RegimeTributario


def calcular_pis_cofins(
    item: ItemNotaFiscal, regime: RegimeTributario
) -> Tuple[ImpostoPIS, ImpostoCOFINS]:
    """
    Mesma base para os dois; alíquotas vêm do catálogo por regime:
      - Simples Nacional: zerado (recolhido no DAS).
      - Lucro Presumido: 0,65% / 3,00% (cumulativo).
      - Lucro Real: 1,65% / 7,60% (não cumulativo).
    """
    aliquotas = aliquotas_pis_cofins(regime)
    override = override_de(item)
    cst_pis = override.cst_pis or aliquotas.cst
    cst_cofins = override.cst_cofins or aliquotas.cst

    if aliquotas.pis == D0 and aliquotas.cofins == D0:
        return ImpostoPIS(cst=cst_pis), ImpostoCOFINS(cst=cst_cofins)

    base = base_calculo_item(item)
    pis = ImpostoPIS(
        cst=cst_pis,
        base_calculo=base,
        aliquota=aliquotas.pis,
        valor=percentual(base, aliquotas.pis),
    )
    cofins = ImpostoCOFINS(
        cst=cst_cofins,
        base_calculo=base,
        aliquota=aliquotas.cofins,
        valor=percentual(base, aliquotas.cofins),
    )
    return pis, cofins
