# fiscal/motor/projecao.py
"""
Classificação (NF-e / NFS-e / mista), separação de nota mista e
projeção da nota no formato entregue à autoridade.

A projeção é um dict só com tipos JSON (valores monetários como
string "0.00"); o XML sai dela em fiscal.motor.xml_autoridade.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from decimal import Decimal
from typing import Any, Dict, List, Optional

from fiscal.motor.chave_acesso import MODELO_NFE
from fiscal.motor.dinheiro import formatar, to_decimal
from fiscal.motor.exceptions import ArgumentoInvalidoError, NotaSemItensError
from fiscal.motor.tipos import (
    DadosFiscaisPessoa,
    ImpostoCOFINS,
    ImpostoICMS,
    ImpostoIPI,
    ImpostoISS,
    ImpostoPIS,
    ImpostosProduto,
    ImpostosServico,
    ItemNotaFiscal,
    NotaFiscal,
    StatusNota,
    TipoItem,
    TipoNota,
    TipoOperacao,
    TotaisNotaFiscal,
)
from fiscal.motor.totais import recalcular_totais

# NFS-e não tem modelo SEFAZ; marcamos o documento de serviço assim
MODELO_NFSE = "SE"

AUTORIDADE_SEFAZ = "sefaz"
AUTORIDADE_MUNICIPIO = "municipio"


# ---------------------------------------------------------------------------
# Classificação / separação
# ---------------------------------------------------------------------------


def classificar_nota(nota: NotaFiscal) -> TipoNota:
    """
    Produto e serviço → mista; só produto → nfe; só serviço → nfse.
    Sem itens ainda: nfe.
    """
    tipos = {item.tipo for item in nota.itens}
    tem_produto = TipoItem.PRODUTO in tipos
    tem_servico = TipoItem.SERVICO in tipos

    if tem_produto and tem_servico:
        return TipoNota.MISTA
    if tem_servico:
        return TipoNota.NFSE
    return TipoNota.NFE


@dataclass(frozen=True)
class NotasSeparadas:
    produtos: Optional[NotaFiscal] = None
    servicos: Optional[NotaFiscal] = None


def _sub_nota(nota: NotaFiscal, itens: List[ItemNotaFiscal], tipo: TipoNota, modelo: str) -> NotaFiscal:
    # nItem recomeça em 1 em cada documento
    renumerados = [replace(item, numero_item=pos) for pos, item in enumerate(itens, start=1)]
    return replace(
        nota,
        tipo=tipo,
        modelo=modelo,
        itens=renumerados,
        totais=recalcular_totais(renumerados),
        chave_acesso=nota.chave_acesso if tipo == TipoNota.NFE else None,
    )


def separar_nota(nota: NotaFiscal) -> NotasSeparadas:
    """
    Divide a nota em um documento só de produtos (SEFAZ) e um só de
    serviços (prefeitura). Cada lado tem os totais refeitos a partir
    dos seus próprios itens. Nota homogênea volta com um lado só.
    """
    if not nota.itens:
        raise NotaSemItensError("Não é possível separar uma nota sem itens.")

    produtos = [i for i in nota.itens if i.tipo == TipoItem.PRODUTO]
    servicos = [i for i in nota.itens if i.tipo == TipoItem.SERVICO]
    if len(produtos) + len(servicos) != len(nota.itens):
        raise ArgumentoInvalidoError("Nota contém itens sem tipo válido (produto/servico).")

    modelo_produtos = nota.modelo if nota.modelo and nota.modelo != MODELO_NFSE else MODELO_NFE
    return NotasSeparadas(
        produtos=_sub_nota(nota, produtos, TipoNota.NFE, modelo_produtos) if produtos else None,
        servicos=_sub_nota(nota, servicos, TipoNota.NFSE, MODELO_NFSE) if servicos else None,
    )


# ---------------------------------------------------------------------------
# Projeção
# ---------------------------------------------------------------------------


def _dinheiro(valor: Any) -> str:
    return formatar(valor)


def _decimal4(valor: Any) -> str:
    return f"{to_decimal(valor).quantize(Decimal('0.0001')):.4f}"


def parte_para_dict(parte: DadosFiscaisPessoa) -> Dict[str, Any]:
    return {
        "cpf_cnpj": parte.cpf_cnpj,
        "razao_social": parte.razao_social,
        "inscricao_estadual": parte.inscricao_estadual,
        "inscricao_municipal": parte.inscricao_municipal,
        "endereco": {
            "logradouro": parte.endereco.logradouro,
            "numero": parte.endereco.numero,
            "bairro": parte.endereco.bairro,
            "municipio": parte.endereco.municipio,
            "codigo_municipio": parte.endereco.codigo_municipio,
            "uf": parte.endereco.uf,
            "cep": parte.endereco.cep,
        },
    }


def _tributo(resultado, **extra) -> Dict[str, Any]:
    dados = {
        "base_calculo": _dinheiro(resultado.base_calculo),
        "aliquota": _decimal4(resultado.aliquota),
        "valor": _dinheiro(resultado.valor),
    }
    dados.update(extra)
    return dados


def _icms(icms: ImpostoICMS) -> Dict[str, Any]:
    return _tributo(
        icms,
        origem=icms.origem,
        cst=icms.cst,
        csosn=icms.csosn,
        valor_st=_dinheiro(icms.valor_st),
    )


def _ipi(ipi: ImpostoIPI) -> Dict[str, Any]:
    return _tributo(ipi, cst=ipi.cst)


def _pis_cofins(pis: ImpostoPIS, cofins: ImpostoCOFINS) -> Dict[str, Any]:
    return {
        "pis": _tributo(pis, cst=pis.cst),
        "cofins": _tributo(cofins, cst=cofins.cst),
    }


def _iss(iss: ImpostoISS) -> Dict[str, Any]:
    return _tributo(
        iss,
        retido=iss.retido,
        codigo_servico=iss.codigo_servico,
        codigo_municipio=iss.codigo_municipio,
    )


def item_para_dict(item: ItemNotaFiscal) -> Dict[str, Any]:
    dados: Dict[str, Any] = {
        "numero_item": item.numero_item,
        "tipo": TipoItem(item.tipo).value,
        "codigo": item.codigo,
        "descricao": item.descricao,
        "unidade": item.unidade,
        "quantidade": _decimal4(item.quantidade),
        "valor_unitario": _decimal4(item.valor_unitario),
        "valor_desconto": _dinheiro(item.valor_desconto),
        "valor_frete": _dinheiro(item.valor_frete),
        "valor_seguro": _dinheiro(item.valor_seguro),
        "valor_outras_despesas": _dinheiro(item.valor_outras_despesas),
        "valor_total": _dinheiro(item.valor_total),
        # escolha manual do usuário: precisa voltar igual no próximo recálculo
        "classificacao_override": (
            asdict(item.classificacao_override) if item.classificacao_override else None
        ),
    }

    if item.tipo == TipoItem.PRODUTO:
        dados["ncm"] = item.ncm
        dados["cfop"] = item.cfop
    else:
        dados["codigo_servico"] = item.codigo_servico

    impostos = item.impostos
    if isinstance(impostos, ImpostosProduto):
        dados["impostos"] = {
            "icms": _icms(impostos.icms),
            "ipi": _ipi(impostos.ipi),
            **_pis_cofins(impostos.pis, impostos.cofins),
        }
    elif isinstance(impostos, ImpostosServico):
        dados["impostos"] = {
            "iss": _iss(impostos.iss),
            **_pis_cofins(impostos.pis, impostos.cofins),
        }
    else:
        dados["impostos"] = None
    return dados


def totais_para_dict(totais: TotaisNotaFiscal) -> Dict[str, str]:
    return {nome: _dinheiro(valor) for nome, valor in vars(totais).items()}


def projetar_nota(nota: NotaFiscal) -> Dict[str, Any]:
    """
    Cabeçalho + partes + itens com impostos + totais.

    Nota mista precisa ser separada antes (separar_nota): cada
    autoridade recebe um documento próprio.
    """
    tipo = classificar_nota(nota)
    if tipo == TipoNota.MISTA:
        raise ArgumentoInvalidoError("Nota mista deve ser separada antes da projeção.")

    if tipo == TipoNota.NFSE:
        autoridade = AUTORIDADE_MUNICIPIO
        partes = {"prestador": parte_para_dict(nota.emitente), "tomador": parte_para_dict(nota.destinatario)}
    else:
        autoridade = AUTORIDADE_SEFAZ
        partes = {"emitente": parte_para_dict(nota.emitente), "destinatario": parte_para_dict(nota.destinatario)}

    return {
        "autoridade": autoridade,
        "tipo": tipo.value,
        "cabecalho": {
            "id": nota.id,
            "numero": nota.numero,
            "serie": nota.serie,
            "modelo": nota.modelo,
            "chave_acesso": nota.chave_acesso,
            "data_emissao": nota.data_emissao.isoformat() if nota.data_emissao else None,
            "natureza_operacao": nota.natureza_operacao,
            "tipo_operacao": TipoOperacao(nota.tipo_operacao).value,
            "status": StatusNota(nota.status).value,
        },
        **partes,
        "itens": [item_para_dict(item) for item in nota.itens],
        "totais": totais_para_dict(nota.totais),
    }
