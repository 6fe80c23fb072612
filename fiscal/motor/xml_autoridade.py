# fiscal/motor/xml_autoridade.py
"""
XML mínimo a partir da projeção (projetar_nota).

Sem namespace, sem assinatura e sem a ordem completa do leiaute: isso é
trabalho do gerador de XML do parceiro fiscal. Aqui só organizamos os
campos nos blocos que cada autoridade espera.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Any, Dict, Optional

from fiscal.motor.projecao import AUTORIDADE_MUNICIPIO
from fiscal.motor.tipos import TipoOperacao

VERSAO_LEIAUTE_NFE = "4.00"


def _texto(pai: ET.Element, tag: str, valor: Any) -> Optional[ET.Element]:
    """Cria <tag>valor</tag>; valor vazio/None não gera elemento."""
    if valor is None or valor == "":
        return None
    el = ET.SubElement(pai, tag)
    el.text = str(valor)
    return el


def _documento(pai: ET.Element, cpf_cnpj: str) -> None:
    digitos = "".join(c for c in (cpf_cnpj or "") if c.isdigit())
    _texto(pai, "CPF" if len(digitos) == 11 else "CNPJ", digitos)


# ---------------------------------------------------------------------------
# NF-e / NFC-e
# ---------------------------------------------------------------------------


def _parte_nfe(pai: ET.Element, tag: str, tag_endereco: str, parte: Dict[str, Any]) -> None:
    el = ET.SubElement(pai, tag)
    _documento(el, parte["cpf_cnpj"])
    _texto(el, "xNome", parte["razao_social"])
    ender = ET.SubElement(el, tag_endereco)
    _texto(ender, "xLgr", parte["endereco"]["logradouro"])
    _texto(ender, "nro", parte["endereco"]["numero"])
    _texto(ender, "xBairro", parte["endereco"]["bairro"])
    _texto(ender, "cMun", parte["endereco"]["codigo_municipio"])
    _texto(ender, "xMun", parte["endereco"]["municipio"])
    _texto(ender, "UF", parte["endereco"]["uf"])
    _texto(ender, "CEP", parte["endereco"]["cep"])
    _texto(el, "IE", parte["inscricao_estadual"])


def _imposto_nfe(det: ET.Element, impostos: Dict[str, Any]) -> None:
    imposto = ET.SubElement(det, "imposto")

    icms = impostos["icms"]
    el = ET.SubElement(imposto, "ICMS")
    _texto(el, "orig", icms["origem"])
    if icms["csosn"]:
        _texto(el, "CSOSN", icms["csosn"])
    else:
        _texto(el, "CST", icms["cst"])
    _texto(el, "vBC", icms["base_calculo"])
    _texto(el, "pICMS", icms["aliquota"])
    _texto(el, "vICMS", icms["valor"])

    ipi = impostos["ipi"]
    el = ET.SubElement(imposto, "IPI")
    _texto(el, "CST", ipi["cst"])
    _texto(el, "vBC", ipi["base_calculo"])
    _texto(el, "pIPI", ipi["aliquota"])
    _texto(el, "vIPI", ipi["valor"])

    for nome, tag in (("pis", "PIS"), ("cofins", "COFINS")):
        trib = impostos[nome]
        el = ET.SubElement(imposto, tag)
        _texto(el, "CST", trib["cst"])
        _texto(el, "vBC", trib["base_calculo"])
        _texto(el, f"p{tag}", trib["aliquota"])
        _texto(el, f"v{tag}", trib["valor"])


def _nfe(projecao: Dict[str, Any]) -> ET.Element:
    cab = projecao["cabecalho"]
    raiz = ET.Element("NFe")
    inf = ET.SubElement(raiz, "infNFe", {"versao": VERSAO_LEIAUTE_NFE})
    if cab["chave_acesso"]:
        inf.set("Id", f"NFe{cab['chave_acesso']}")

    ide = ET.SubElement(inf, "ide")
    _texto(ide, "natOp", cab["natureza_operacao"])
    _texto(ide, "mod", cab["modelo"])
    _texto(ide, "serie", cab["serie"])
    _texto(ide, "nNF", cab["numero"])
    _texto(ide, "dhEmi", cab["data_emissao"])
    _texto(ide, "tpNF", "0" if cab["tipo_operacao"] == TipoOperacao.ENTRADA.value else "1")

    _parte_nfe(inf, "emit", "enderEmit", projecao["emitente"])
    _parte_nfe(inf, "dest", "enderDest", projecao["destinatario"])

    for item in projecao["itens"]:
        det = ET.SubElement(inf, "det", {"nItem": str(item["numero_item"])})
        prod = ET.SubElement(det, "prod")
        _texto(prod, "cProd", item["codigo"])
        _texto(prod, "xProd", item["descricao"])
        _texto(prod, "NCM", item.get("ncm"))
        _texto(prod, "CFOP", item.get("cfop"))
        _texto(prod, "uCom", item["unidade"])
        _texto(prod, "qCom", item["quantidade"])
        _texto(prod, "vUnCom", item["valor_unitario"])
        _texto(prod, "vProd", item["valor_total"])
        _texto(prod, "vDesc", item["valor_desconto"])
        if item["impostos"]:
            _imposto_nfe(det, item["impostos"])

    totais = projecao["totais"]
    tot = ET.SubElement(ET.SubElement(inf, "total"), "ICMSTot")
    for tag, campo in (
        ("vBC", "base_calculo_icms"),
        ("vICMS", "valor_icms"),
        ("vST", "valor_icms_st"),
        ("vProd", "valor_produtos"),
        ("vFrete", "valor_frete"),
        ("vSeg", "valor_seguro"),
        ("vDesc", "valor_desconto"),
        ("vIPI", "valor_ipi"),
        ("vPIS", "valor_pis"),
        ("vCOFINS", "valor_cofins"),
        ("vOutro", "valor_outras_despesas"),
        ("vNF", "valor_total"),
        ("vTotTrib", "valor_total_tributos"),
    ):
        _texto(tot, tag, totais[campo])
    return raiz


# ---------------------------------------------------------------------------
# NFS-e (RPS, leiaute ABRASF simplificado)
# ---------------------------------------------------------------------------


def _nfse(projecao: Dict[str, Any]) -> ET.Element:
    cab = projecao["cabecalho"]
    prestador = projecao["prestador"]
    tomador = projecao["tomador"]

    raiz = ET.Element("EnviarLoteRpsEnvio")
    lote = ET.SubElement(raiz, "LoteRps")
    _texto(lote, "NumeroLote", cab["numero"])
    _texto(lote, "QuantidadeRps", len(projecao["itens"]))
    lista = ET.SubElement(lote, "ListaRps")

    for item in projecao["itens"]:
        inf = ET.SubElement(ET.SubElement(lista, "Rps"), "InfRps")
        ident = ET.SubElement(inf, "IdentificacaoRps")
        _texto(ident, "Numero", f"{cab['numero']}-{item['numero_item']}")
        _texto(ident, "Serie", cab["serie"])
        _texto(inf, "DataEmissao", cab["data_emissao"])

        servico = ET.SubElement(inf, "Servico")
        valores = ET.SubElement(servico, "Valores")
        _texto(valores, "ValorServicos", item["valor_total"])
        _texto(valores, "DescontoIncondicionado", item["valor_desconto"])
        impostos = item["impostos"]
        if impostos:
            iss = impostos["iss"]
            _texto(valores, "IssRetido", "1" if iss["retido"] else "2")
            _texto(valores, "BaseCalculo", iss["base_calculo"])
            _texto(valores, "Aliquota", iss["aliquota"])
            _texto(valores, "ValorIss", iss["valor"])
            _texto(valores, "ValorPis", impostos["pis"]["valor"])
            _texto(valores, "ValorCofins", impostos["cofins"]["valor"])
        _texto(servico, "ItemListaServico", item.get("codigo_servico"))
        _texto(servico, "Discriminacao", item["descricao"])
        _texto(servico, "CodigoMunicipio", prestador["endereco"]["codigo_municipio"])

        prest = ET.SubElement(inf, "Prestador")
        _documento(prest, prestador["cpf_cnpj"])
        _texto(prest, "InscricaoMunicipal", prestador["inscricao_municipal"])

        tom = ET.SubElement(inf, "Tomador")
        _documento(tom, tomador["cpf_cnpj"])
        _texto(tom, "RazaoSocial", tomador["razao_social"])
        _texto(tom, "CodigoMunicipio", tomador["endereco"]["codigo_municipio"])
        _texto(tom, "Uf", tomador["endereco"]["uf"])

    return raiz


def projecao_para_xml(projecao: Dict[str, Any]) -> str:
    if projecao["autoridade"] == AUTORIDADE_MUNICIPIO:
        raiz = _nfse(projecao)
    else:
        raiz = _nfe(projecao)
    return ET.tostring(raiz, encoding="unicode")
