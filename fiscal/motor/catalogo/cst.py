# fiscal/motor/catalogo/cst.py
"""
Códigos de situação tributária e alíquotas federais por regime.

Centraliza o mapeamento regime → código/alíquota: as calculadoras só
consultam daqui e multiplicam.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, FrozenSet

from fiscal.motor.tipos import RegimeTributario


# --------------------------------------------------------------------
# ICMS
# --------------------------------------------------------------------
CSOSN_SIMPLES_NACIONAL: FrozenSet[str] = frozenset(
    ["101", "102", "103", "201", "202", "203", "300", "400", "500", "900"]
)
CST_REGIME_NORMAL: FrozenSet[str] = frozenset(
    ["00", "10", "20", "30", "40", "41", "50", "51", "60", "70", "90"]
)

# Isenta / não tributada / suspensa / ST já retida: zera base, alíquota e valor
CST_ICMS_SEM_DESTAQUE: FrozenSet[str] = frozenset(["40", "41", "50", "60"])

# CSOSN que exigem cálculo efetivo (com crédito / ST / outros)
CSOSN_COM_CALCULO: FrozenSet[str] = frozenset(["101", "201", "202", "203", "900"])

CST_ICMS_PADRAO = "00"
CSOSN_PADRAO = "102"
ORIGEM_NACIONAL = "0"


# --------------------------------------------------------------------
# PIS / COFINS
# --------------------------------------------------------------------
@dataclass(frozen=True)
class AliquotasPisCofins:
    cst: str
    pis: Decimal
    cofins: Decimal


# Simples: recolhido no DAS, não destacado no documento
_PIS_COFINS_POR_REGIME: Dict[RegimeTributario, AliquotasPisCofins] = {
    RegimeTributario.SIMPLES_NACIONAL: AliquotasPisCofins(
        cst="99", pis=Decimal("0"), cofins=Decimal("0")
    ),
    # cumulativo
    RegimeTributario.LUCRO_PRESUMIDO: AliquotasPisCofins(
        cst="01", pis=Decimal("0.65"), cofins=Decimal("3.00")
    ),
    # não cumulativo
    RegimeTributario.LUCRO_REAL: AliquotasPisCofins(
        cst="01", pis=Decimal("1.65"), cofins=Decimal("7.60")
    ),
}


def aliquotas_pis_cofins(regime: RegimeTributario | str) -> AliquotasPisCofins:
    return _PIS_COFINS_POR_REGIME[RegimeTributario(regime)]


def codigo_valido_para_regime(codigo: str | None, regime: RegimeTributario | str) -> bool:
    """
    Simples Nacional aceita CSOSN; Presumido/Real aceitam CST.
    """
    if not codigo:
        return False
    if RegimeTributario(regime) == RegimeTributario.SIMPLES_NACIONAL:
        return codigo in CSOSN_SIMPLES_NACIONAL
    return codigo in CST_REGIME_NORMAL
