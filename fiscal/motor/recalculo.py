# fiscal/motor/recalculo.py
"""
Recálculo de itens e da nota.

Funções puras: recebem a nota do chamador e devolvem cópias novas
(item, totais, nota). O que o usuário escolheu manualmente fica em
item.classificacao_override e passa intacto por qualquer recálculo.
"""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal
from typing import List, Optional, Tuple

from fiscal.motor.calculadoras import calcular_icms, calcular_ipi, calcular_iss, calcular_pis_cofins
from fiscal.motor.calculadoras.base import valor_liquido
from fiscal.motor.catalogo import RegraFiscal, regra_para
from fiscal.motor.ciclo_vida import NotaFiscalStateMachine
from fiscal.motor.dinheiro import D0, TOLERANCIA_TOTAIS, to_decimal
from fiscal.motor.exceptions import ArgumentoInvalidoError, RegimeTributarioObrigatorioError
from fiscal.motor.tipos import (
    Alteracao,
    Impostos,
    ImpostosProduto,
    ImpostosServico,
    ItemNotaFiscal,
    NotaFiscal,
    RegimeTributario,
    ResultadoRecalculo,
    StatusNota,
    TipoItem,
    TipoOperacao,
)
from fiscal.motor.totais import recalcular_totais

# Campos de imposto acompanhados no log de alterações
_VALORES_AUDITADOS = ("icms", "ipi", "pis", "cofins", "iss")


def exigir_regime(regime) -> RegimeTributario:
    """
    Regime é obrigatório em toda chamada; o motor nunca infere nem guarda.
    """
    if regime is None or regime == "":
        raise RegimeTributarioObrigatorioError()
    try:
        return RegimeTributario(regime)
    except ValueError:
        raise RegimeTributarioObrigatorioError(f"Regime tributário inválido: {regime!r}.")


def _tipo_item(item: ItemNotaFiscal) -> TipoItem:
    try:
        return TipoItem(item.tipo)
    except ValueError:
        raise ArgumentoInvalidoError(
            f"Tipo de item inválido no item {item.numero_item}: {item.tipo!r}."
        )


def _normalizar_item(item: ItemNotaFiscal) -> ItemNotaFiscal:
    """Campos numéricos ausentes/NaN viram zero; o validador aponta depois."""
    return replace(
        item,
        tipo=_tipo_item(item),
        quantidade=to_decimal(item.quantidade),
        valor_unitario=to_decimal(item.valor_unitario),
        valor_desconto=to_decimal(item.valor_desconto),
        valor_frete=to_decimal(item.valor_frete),
        valor_seguro=to_decimal(item.valor_seguro),
        valor_outras_despesas=to_decimal(item.valor_outras_despesas),
    )


def calcular_impostos(
    item: ItemNotaFiscal,
    nota: NotaFiscal,
    regime: RegimeTributario,
    regra: Optional[RegraFiscal],
) -> Impostos:
    """
    Despacho por tipo de item:
      - produto → ICMS + IPI + PIS + COFINS
      - serviço → ISS + PIS + COFINS
    """
    tipo = _tipo_item(item)
    pis, cofins = calcular_pis_cofins(item, regime)

    if tipo == TipoItem.PRODUTO:
        return ImpostosProduto(
            icms=calcular_icms(item, nota.emitente, nota.destinatario, regime),
            ipi=calcular_ipi(item),
            pis=pis,
            cofins=cofins,
        )
    if tipo == TipoItem.SERVICO:
        return ImpostosServico(
            iss=calcular_iss(item, nota.emitente, nota.destinatario, regra),
            pis=pis,
            cofins=cofins,
        )
    raise ArgumentoInvalidoError(f"Tipo de item sem calculadora: {tipo!r}.")


def _valor_imposto(impostos: Optional[Impostos], nome: str) -> Decimal:
    resultado = getattr(impostos, nome, None) if impostos is not None else None
    if resultado is None:
        return D0
    return to_decimal(resultado.valor)


def _alteracoes(anterior: ItemNotaFiscal, novo: ItemNotaFiscal) -> Tuple[Alteracao, ...]:
    """
    Só entra no log o que mudou mais de 1 centavo.
    """
    alteracoes: List[Alteracao] = []

    total_anterior = to_decimal(anterior.valor_total)
    if abs(total_anterior - novo.valor_total) > TOLERANCIA_TOTAIS:
        alteracoes.append(Alteracao("valor_total", total_anterior, novo.valor_total))

    for nome in _VALORES_AUDITADOS:
        antes = _valor_imposto(anterior.impostos, nome)
        depois = _valor_imposto(novo.impostos, nome)
        if abs(antes - depois) > TOLERANCIA_TOTAIS:
            alteracoes.append(Alteracao(f"impostos.{nome}.valor", antes, depois))

    return tuple(alteracoes)


def _recalcular_item_isolado(
    item: ItemNotaFiscal, nota: NotaFiscal, regime: RegimeTributario
) -> ItemNotaFiscal:
    novo = _normalizar_item(item)
    novo.valor_total = valor_liquido(novo)
    regra = regra_para(novo.tipo, TipoOperacao(nota.tipo_operacao), regime, novo.cfop)
    novo.impostos = calcular_impostos(novo, nota, regime, regra)
    return novo


def _substituir_item(
    itens: List[ItemNotaFiscal], original: ItemNotaFiscal, novo: ItemNotaFiscal
) -> List[ItemNotaFiscal]:
    """
    Troca o item na lista (por identidade, depois por numero_item).
    Item que ainda não está na nota entra no final.
    """
    for pos, atual in enumerate(itens):
        if atual is original:
            return itens[:pos] + [novo] + itens[pos + 1:]
    for pos, atual in enumerate(itens):
        if atual.numero_item == original.numero_item:
            return itens[:pos] + [novo] + itens[pos + 1:]
    return itens + [novo]


def recalcular_item(item: ItemNotaFiscal, nota: NotaFiscal, regime) -> ResultadoRecalculo:
    """
    Fluxo:
      1) valor_total = quantidade × valor_unitario − desconto.
      2) Regra do catálogo por (tipo, operação, regime, CFOP).
      3) Impostos pela calculadora do tipo do item.
      4) Totais da nota com o item substituído.
    Não altera `item` nem `nota`.
    """
    regime = exigir_regime(regime)
    NotaFiscalStateMachine.garantir_editavel(nota)
    novo = _recalcular_item_isolado(item, nota, regime)
    itens = _substituir_item(list(nota.itens), item, novo)

    return ResultadoRecalculo(
        item=novo,
        totais=recalcular_totais(itens),
        alteracoes=_alteracoes(item, novo),
    )


def recalcular_nota(nota: NotaFiscal, regime) -> NotaFiscal:
    """
    Recalcula todos os itens e os totais, devolvendo uma nova NotaFiscal.

    Regras:
      - Nota precisa estar em rascunho ou validada.
      - Nota validada volta para rascunho: números mudaram, precisa validar de novo.
      - Idempotente: recalcular duas vezes gera os mesmos totais.
    """
    regime = exigir_regime(regime)
    NotaFiscalStateMachine.garantir_editavel(nota)

    itens = [_recalcular_item_isolado(item, nota, regime) for item in nota.itens]
    nova = replace(
        nota,
        itens=itens,
        totais=recalcular_totais(itens),
        precisa_validacao_fiscal=True,
    )

    if StatusNota(nova.status) == StatusNota.VALIDADA:
        NotaFiscalStateMachine.para_rascunho(nova, motivo="recalculo")

    return nova
