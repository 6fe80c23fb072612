# fiscal/motor/calculadoras/icms.py
from __future__ import annotations

from decimal import Decimal

from fiscal.motor.calculadoras.base import base_calculo_item, override_de
from fiscal.motor.catalogo import (
    CSOSN_COM_CALCULO,
    CSOSN_PADRAO,
    CSOSN_SIMPLES_NACIONAL,
    CST_ICMS_PADRAO,
    CST_ICMS_SEM_DESTAQUE,
    CST_REGIME_NORMAL,
    ORIGEM_NACIONAL,
    aliquota_icms_interestadual,
    aliquota_icms_interna,
    normalizar_uf,
)
from fiscal.motor.dinheiro import percentual
from fiscal.motor.tipos import (
    DadosFiscaisPessoa,
    ImpostoICMS,
    ItemNotaFiscal,
    RegimeTributario,
)


def operacao_interestadual(emitente: DadosFiscaisPessoa, destinatario: DadosFiscaisPessoa) -> bool:
    """
    UF do emitente diferente da UF do destinatário.

    Destinatário sem UF (consumidor não identificado) conta como interna.
    """
    uf_destino = normalizar_uf(destinatario.endereco.uf)
    if not uf_destino:
        return False
    return normalizar_uf(emitente.endereco.uf) != uf_destino


def aliquota_icms(emitente: DadosFiscaisPessoa, destinatario: DadosFiscaisPessoa) -> Decimal:
    if operacao_interestadual(emitente, destinatario):
        return aliquota_icms_interestadual(emitente.endereco.uf, destinatario.endereco.uf)
    return aliquota_icms_interna(emitente.endereco.uf)


def calcular_icms(
    item: ItemNotaFiscal,
    emitente: DadosFiscaisPessoa,
    destinatario: DadosFiscaisPessoa,
    regime: RegimeTributario,
) -> ImpostoICMS:
    """
    Regras:
      - Simples Nacional: CSOSN 102 com tudo zerado. Só calcula quando o
        usuário escolheu um CSOSN que exige destaque (101, 201, 202, 203, 900).
      - Regime normal: CST 00 por padrão; interestadual 7%/12%, interna pela
        alíquota da UF do emitente.
      - CST 40/41/50/60 zeram base, alíquota e valor.
      - Valor não é arredondado aqui (arredonda na soma dos totais).
    """
    override = override_de(item)
    origem = override.origem or ORIGEM_NACIONAL
    base = base_calculo_item(item)

    if RegimeTributario(regime) == RegimeTributario.SIMPLES_NACIONAL:
        csosn = override.csosn if override.csosn in CSOSN_SIMPLES_NACIONAL else CSOSN_PADRAO
        if csosn not in CSOSN_COM_CALCULO:
            return ImpostoICMS(origem=origem, csosn=csosn)
        aliquota = aliquota_icms(emitente, destinatario)
        return ImpostoICMS(
            origem=origem,
            csosn=csosn,
            base_calculo=base,
            aliquota=aliquota,
            valor=percentual(base, aliquota),
        )

    cst = override.cst_icms if override.cst_icms in CST_REGIME_NORMAL else CST_ICMS_PADRAO
    if cst in CST_ICMS_SEM_DESTAQUE:
        return ImpostoICMS(origem=origem, cst=cst)

    aliquota = aliquota_icms(emitente, destinatario)
    return ImpostoICMS(
        origem=origem,
        cst=cst,
        base_calculo=base,
        aliquota=aliquota,
        valor=percentual(base, aliquota),
    )
