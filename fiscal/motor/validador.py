# fiscal/motor/validador.py
"""
Validação estrutural da nota.

Só leitura: nunca altera a nota. Erros bloqueiam a finalização,
avisos apenas informam. Nada aqui levanta exceção por dado ruim.
"""

from __future__ import annotations

from dataclasses import fields
from typing import List

from fiscal.motor.catalogo import (
    cfop_valido,
    classificacao_valida,
    codigo_valido_para_regime,
    somente_digitos,
)
from fiscal.motor.dinheiro import D0, TOLERANCIA_TOTAIS, to_decimal
from fiscal.motor.tipos import (
    AvisoValidacao,
    DadosFiscaisPessoa,
    ErroValidacao,
    ImpostosProduto,
    ImpostosServico,
    ItemNotaFiscal,
    NotaFiscal,
    RegimeTributario,
    ResultadoValidacao,
    TipoItem,
    TipoOperacao,
)
from fiscal.motor.totais import recalcular_totais

# ---------------------------------------------------------------------------
# Códigos de erro (bloqueiam)
# ---------------------------------------------------------------------------
ERR_NUMERO_OBRIGATORIO = "FISCAL_7001"
ERR_SERIE_OBRIGATORIA = "FISCAL_7002"
ERR_DATA_EMISSAO_OBRIGATORIA = "FISCAL_7003"
ERR_EMITENTE_DOCUMENTO = "FISCAL_7004"
ERR_DESTINATARIO_DOCUMENTO = "FISCAL_7005"
ERR_NATUREZA_OPERACAO = "FISCAL_7006"
ERR_SEM_ITENS = "FISCAL_7007"
ERR_NCM_OBRIGATORIO = "FISCAL_7008"
ERR_NCM_INVALIDO = "FISCAL_7009"
ERR_CFOP_OBRIGATORIO = "FISCAL_7010"
ERR_CFOP_INVALIDO = "FISCAL_7011"
ERR_CODIGO_SERVICO = "FISCAL_7012"
ERR_QUANTIDADE = "FISCAL_7013"
ERR_VALOR_UNITARIO = "FISCAL_7014"
ERR_EMITENTE_RAZAO_SOCIAL = "FISCAL_7015"
ERR_DESTINATARIO_RAZAO_SOCIAL = "FISCAL_7016"
ERR_ICMS_SEM_CLASSIFICACAO = "FISCAL_7017"
ERR_CLASSIFICACAO_REGIME = "FISCAL_7018"
ERR_ALIQUOTA_ISS = "FISCAL_7019"

# ---------------------------------------------------------------------------
# Códigos de aviso (não bloqueiam)
# ---------------------------------------------------------------------------
AVISO_TOTAIS_DIVERGENTES = "FISCAL_8001"
AVISO_INSCRICAO_ESTADUAL = "FISCAL_8002"


def documento_valido(cpf_cnpj: str | None) -> bool:
    """CPF (11) ou CNPJ (14) depois de remover pontuação."""
    return len(somente_digitos(cpf_cnpj)) in (11, 14)


def inscricao_estadual_plausivel(ie: str | None) -> bool:
    """Checagem só de formato: 8 a 14 dígitos."""
    return 8 <= len(somente_digitos(ie)) <= 14


def _validar_cabecalho(nota: NotaFiscal, erros: List[ErroValidacao]) -> None:
    if not (nota.numero or "").strip():
        erros.append(ErroValidacao("numero", "Número da nota é obrigatório.", ERR_NUMERO_OBRIGATORIO))
    if not (nota.serie or "").strip():
        erros.append(ErroValidacao("serie", "Série da nota é obrigatória.", ERR_SERIE_OBRIGATORIA))
    if not nota.data_emissao:
        erros.append(
            ErroValidacao("data_emissao", "Data de emissão é obrigatória.", ERR_DATA_EMISSAO_OBRIGATORIA)
        )
    if not (nota.natureza_operacao or "").strip():
        erros.append(
            ErroValidacao(
                "natureza_operacao", "Natureza da operação é obrigatória.", ERR_NATUREZA_OPERACAO
            )
        )


def _validar_parte(
    nome: str,
    parte: DadosFiscaisPessoa,
    cod_documento: str,
    cod_razao_social: str,
    erros: List[ErroValidacao],
    avisos: List[AvisoValidacao],
) -> None:
    if not documento_valido(parte.cpf_cnpj):
        erros.append(
            ErroValidacao(f"{nome}.cpf_cnpj", f"CPF/CNPJ do {nome} inválido.", cod_documento)
        )
    if not (parte.razao_social or "").strip():
        erros.append(
            ErroValidacao(
                f"{nome}.razao_social", f"Razão social do {nome} é obrigatória.", cod_razao_social
            )
        )

    ie = (parte.inscricao_estadual or "").strip()
    if ie and ie.upper() != "ISENTO" and not inscricao_estadual_plausivel(ie):
        avisos.append(
            AvisoValidacao(
                f"{nome}.inscricao_estadual",
                f"Inscrição estadual do {nome} pode estar inválida.",
                AVISO_INSCRICAO_ESTADUAL,
            )
        )


def _validar_item(
    indice: int,
    item: ItemNotaFiscal,
    nota: NotaFiscal,
    erros: List[ErroValidacao],
) -> None:
    campo = f"itens[{indice}]"
    prefixo = f"Item {indice + 1} ({item.descricao})"

    try:
        tipo = TipoItem(item.tipo)
    except ValueError:
        tipo = None

    if tipo == TipoItem.PRODUTO:
        if not (item.ncm or "").strip():
            erros.append(
                ErroValidacao(f"{campo}.ncm", f"{prefixo}: NCM é obrigatório para produtos.", ERR_NCM_OBRIGATORIO)
            )
        elif not classificacao_valida(item.ncm, TipoItem.PRODUTO):
            erros.append(
                ErroValidacao(f"{campo}.ncm", f"{prefixo}: NCM deve ter 8 dígitos.", ERR_NCM_INVALIDO)
            )

        if not (item.cfop or "").strip():
            erros.append(
                ErroValidacao(f"{campo}.cfop", f"{prefixo}: CFOP é obrigatório para produtos.", ERR_CFOP_OBRIGATORIO)
            )
        elif not cfop_valido(item.cfop, nota.tipo_operacao):
            erros.append(
                ErroValidacao(
                    f"{campo}.cfop",
                    f"{prefixo}: CFOP {item.cfop} inválido para {TipoOperacao(nota.tipo_operacao).value}.",
                    ERR_CFOP_INVALIDO,
                )
            )

        if isinstance(item.impostos, ImpostosProduto):
            if not item.impostos.icms.cst and not item.impostos.icms.csosn:
                erros.append(
                    ErroValidacao(
                        f"{campo}.impostos.icms", f"{prefixo}: CST ou CSOSN é obrigatório.", ERR_ICMS_SEM_CLASSIFICACAO
                    )
                )
    else:
        if not classificacao_valida(item.codigo_servico, TipoItem.SERVICO):
            erros.append(
                ErroValidacao(
                    f"{campo}.codigo_servico", f"{prefixo}: Código do serviço é obrigatório.", ERR_CODIGO_SERVICO
                )
            )
        if isinstance(item.impostos, ImpostosServico) and to_decimal(item.impostos.iss.aliquota) == D0:
            erros.append(
                ErroValidacao(
                    f"{campo}.impostos.iss.aliquota", f"{prefixo}: Alíquota de ISS é obrigatória.", ERR_ALIQUOTA_ISS
                )
            )

    override = item.classificacao_override
    if override is not None and nota.regime_tributario:
        regime = RegimeTributario(nota.regime_tributario)
        codigo = override.csosn if regime == RegimeTributario.SIMPLES_NACIONAL else override.cst_icms
        if codigo and not codigo_valido_para_regime(codigo, regime):
            erros.append(
                ErroValidacao(
                    f"{campo}.classificacao_override",
                    f"{prefixo}: código {codigo} não é válido para o regime {regime.value}.",
                    ERR_CLASSIFICACAO_REGIME,
                )
            )

    if to_decimal(item.quantidade) <= D0:
        erros.append(
            ErroValidacao(f"{campo}.quantidade", f"{prefixo}: Quantidade deve ser maior que zero.", ERR_QUANTIDADE)
        )
    if to_decimal(item.valor_unitario) <= D0:
        erros.append(
            ErroValidacao(
                f"{campo}.valor_unitario", f"{prefixo}: Valor unitário deve ser maior que zero.", ERR_VALOR_UNITARIO
            )
        )


def _conferir_totais(nota: NotaFiscal, avisos: List[AvisoValidacao]) -> None:
    """
    Totais podem ter sido digitados antes da conciliação: divergência
    acima de 1 centavo vira aviso, campo a campo.
    """
    calculados = recalcular_totais(nota.itens)
    for f in fields(calculados):
        informado = to_decimal(getattr(nota.totais, f.name))
        calculado = getattr(calculados, f.name)
        if abs(calculado - informado) > TOLERANCIA_TOTAIS:
            avisos.append(
                AvisoValidacao(
                    f"totais.{f.name}",
                    f"Total calculado ({calculado:.2f}) diverge do total informado ({informado:.2f}).",
                    AVISO_TOTAIS_DIVERGENTES,
                )
            )


def validar_nota(nota: NotaFiscal) -> ResultadoValidacao:
    erros: List[ErroValidacao] = []
    avisos: List[AvisoValidacao] = []

    _validar_cabecalho(nota, erros)
    _validar_parte("emitente", nota.emitente, ERR_EMITENTE_DOCUMENTO, ERR_EMITENTE_RAZAO_SOCIAL, erros, avisos)
    _validar_parte(
        "destinatario", nota.destinatario, ERR_DESTINATARIO_DOCUMENTO, ERR_DESTINATARIO_RAZAO_SOCIAL, erros, avisos
    )

    if not nota.itens:
        erros.append(ErroValidacao("itens", "A nota deve ter pelo menos um item.", ERR_SEM_ITENS))
    else:
        for indice, item in enumerate(nota.itens):
            _validar_item(indice, item, nota, erros)
        _conferir_totais(nota, avisos)

    return ResultadoValidacao(valido=not erros, erros=tuple(erros), avisos=tuple(avisos))
