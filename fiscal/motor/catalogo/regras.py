# fiscal/motor/catalogo/regras.py
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import FrozenSet, Optional, Tuple

from fiscal.motor.tipos import RegimeTributario, TipoItem, TipoOperacao

ALIQUOTA_ISS_PADRAO = Decimal("5")
CODIGO_SERVICO_PADRAO = "00.00"

_TODOS_REGIMES: FrozenSet[RegimeTributario] = frozenset(RegimeTributario)


@dataclass(frozen=True)
class RegraFiscal:
    """
    Regra nomeada por (tipo de item, direção da operação).

    - cfops: CFOPs que identificam a regra; vazio para serviços.
    - aliquota_iss_padrao / codigo_servico_padrao: usados pela calculadora de ISS.
    """
    id: str
    nome: str
    tipo: TipoItem
    operacao: TipoOperacao
    cfops: FrozenSet[str] = frozenset()
    aliquota_iss_padrao: Optional[Decimal] = None
    codigo_servico_padrao: Optional[str] = None
    regimes: FrozenSet[RegimeTributario] = field(default=_TODOS_REGIMES)


REGRAS_FISCAIS: Tuple[RegraFiscal, ...] = (
    RegraFiscal(
        id="compra_estado",
        nome="Compra dentro do estado",
        tipo=TipoItem.PRODUTO,
        operacao=TipoOperacao.ENTRADA,
        cfops=frozenset(["1101", "1102", "1201", "1202"]),
    ),
    RegraFiscal(
        id="venda_estado",
        nome="Venda dentro do estado",
        tipo=TipoItem.PRODUTO,
        operacao=TipoOperacao.SAIDA,
        cfops=frozenset(["5101", "5102", "5103", "5104"]),
    ),
    RegraFiscal(
        id="servico_tomado",
        nome="Serviço tomado",
        tipo=TipoItem.SERVICO,
        operacao=TipoOperacao.ENTRADA,
        aliquota_iss_padrao=ALIQUOTA_ISS_PADRAO,
        codigo_servico_padrao="1401",
    ),
    RegraFiscal(
        id="servico_prestado",
        nome="Serviço prestado",
        tipo=TipoItem.SERVICO,
        operacao=TipoOperacao.SAIDA,
        aliquota_iss_padrao=ALIQUOTA_ISS_PADRAO,
        codigo_servico_padrao="1401",
    ),
)


def regra_para(
    tipo: TipoItem | str,
    operacao: TipoOperacao | str,
    regime: RegimeTributario | str,
    cfop: str | None = None,
) -> Optional[RegraFiscal]:
    """
    Fluxo:
      1) Filtra por tipo + operação + regime.
      2) Se o item tem CFOP, prefere a regra que lista esse CFOP.
      3) Senão, a primeira regra do filtro. None se nada casar.
    """
    tipo = TipoItem(tipo)
    operacao = TipoOperacao(operacao)
    regime = RegimeTributario(regime)

    candidatas = [
        r
        for r in REGRAS_FISCAIS
        if r.tipo == tipo and r.operacao == operacao and regime in r.regimes
    ]
    if cfop:
        for regra in candidatas:
            if cfop.strip() in regra.cfops:
                return regra
    return candidatas[0] if candidatas else None
