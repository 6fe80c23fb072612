# fiscal/motor/calculadoras/ipi.py
from __future__ import annotations

from fiscal.motor.calculadoras.base import acessorios, override_de, valor_bruto
from fiscal.motor.catalogo import aliquota_ipi
from fiscal.motor.dinheiro import D0, percentual
from fiscal.motor.tipos import ImpostoIPI, ItemNotaFiscal

CST_IPI_PADRAO = "99"


def calcular_ipi(item: ItemNotaFiscal) -> ImpostoIPI:
    """
    IPI só para produtos. Base = valor bruto + frete + seguro + outras.

    Alíquota vem da tabela parcial por NCM; NCM fora da tabela sai com 0%.
    """
    cst = override_de(item).cst_ipi or CST_IPI_PADRAO
    aliquota = aliquota_ipi(item.ncm)
    if aliquota is None or aliquota == D0:
        return ImpostoIPI(cst=cst)

    base = valor_bruto(item) + acessorios(item)
    if base < D0:
        base = D0
    return ImpostoIPI(
        cst=cst,
        base_calculo=base,
        aliquota=aliquota,
        valor=percentual(base, aliquota),
    )
