# fiscal/motor/chave_acesso.py
"""
Chave de acesso (44 dígitos), numeração sequencial e QR Code da NFC-e.

Layout da chave (43 + DV):
  cUF(2) AAMM(4) CNPJ(14) mod(2) serie(3) nNF(9) tpEmis(1) cNF(8) DV(1)
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime
from typing import Optional

from fiscal.motor.catalogo import codigo_ibge_uf, somente_digitos
from fiscal.motor.colaboradores import DocumentoStoreProtocol
from fiscal.motor.dinheiro import formatar
from fiscal.motor.exceptions import ArgumentoInvalidoError
from fiscal.motor.tipos import NotaFiscal

logger = logging.getLogger("motor.fiscal")

MODELO_NFE = "55"
MODELO_NFCE = "65"

TIPO_EMISSAO_NORMAL = "1"
TIPO_EMISSAO_CONTINGENCIA_OFFLINE = "9"

# Pesos do módulo 11, aplicados da esquerda para a direita em ciclo
PESOS_DV = (4, 3, 2, 9, 8, 7, 6, 5)

NUMERO_INICIAL = "000000001"
NUMERO_MAXIMO = 999_999_999

URLS_CONSULTA_NFCE = {
    "producao": "http://www.nfce.fazenda.gov.br/consulta",
    "homologacao": "http://homologacao.nfce.fazenda.gov.br/consulta",
}


def calcular_digito_verificador(chave43: str) -> str:
    """
    Módulo 11: resto 0 ou 1 → DV 0, senão DV = 11 − resto.
    """
    if len(chave43) != 43 or not chave43.isdigit():
        raise ArgumentoInvalidoError("Chave sem DV deve ter exatamente 43 dígitos.")

    soma = sum(int(digito) * PESOS_DV[pos % len(PESOS_DV)] for pos, digito in enumerate(chave43))
    resto = soma % 11
    return "0" if resto < 2 else str(11 - resto)


def chave_acesso_valida(chave: str | None) -> bool:
    if not chave or len(chave) != 44 or not chave.isdigit():
        return False
    return calcular_digito_verificador(chave[:43]) == chave[43]


def gerar_codigo_numerico() -> str:
    return str(secrets.randbelow(10**8)).zfill(8)


def _campo(valor, tamanho: int, nome: str) -> str:
    digitos = somente_digitos(str(valor) if valor is not None else "")
    if not digitos:
        raise ArgumentoInvalidoError(f"{nome} é obrigatório para a chave de acesso.")
    if len(digitos) > tamanho:
        raise ArgumentoInvalidoError(f"{nome} excede {tamanho} dígitos.")
    return digitos.zfill(tamanho)


def gerar_chave_acesso(
    *,
    uf: str,
    data_emissao: datetime,
    cnpj_emitente: str,
    serie,
    numero,
    tipo_emissao: str = TIPO_EMISSAO_NORMAL,
    codigo_numerico: Optional[str] = None,
    modelo: str = MODELO_NFCE,
) -> str:
    """
    Monta os 43 dígitos e anexa o DV.

    codigo_numerico (cNF) é sorteado quando não informado; fixe-o para
    obter uma chave reproduzível.
    """
    codigo_uf = codigo_ibge_uf(uf)
    if codigo_uf is None:
        raise ArgumentoInvalidoError(f"UF desconhecida para a chave de acesso: {uf!r}.")
    if data_emissao is None:
        raise ArgumentoInvalidoError("Data de emissão é obrigatória para a chave de acesso.")
    if tipo_emissao not in (TIPO_EMISSAO_NORMAL, TIPO_EMISSAO_CONTINGENCIA_OFFLINE):
        raise ArgumentoInvalidoError(f"Tipo de emissão inválido: {tipo_emissao!r}.")

    cnf = codigo_numerico if codigo_numerico is not None else gerar_codigo_numerico()

    chave43 = "".join(
        [
            codigo_uf,
            data_emissao.strftime("%y%m"),
            _campo(cnpj_emitente, 14, "CNPJ do emitente"),
            _campo(modelo, 2, "Modelo"),
            _campo(serie, 3, "Série"),
            _campo(numero, 9, "Número"),
            tipo_emissao,
            _campo(cnf, 8, "Código numérico"),
        ]
    )
    return chave43 + calcular_digito_verificador(chave43)


def gerar_chave_acesso_nota(
    nota: NotaFiscal,
    *,
    tipo_emissao: str = TIPO_EMISSAO_NORMAL,
    codigo_numerico: Optional[str] = None,
) -> str:
    return gerar_chave_acesso(
        uf=nota.emitente.endereco.uf,
        data_emissao=nota.data_emissao,
        cnpj_emitente=nota.emitente.cpf_cnpj,
        serie=nota.serie,
        numero=nota.numero,
        tipo_emissao=tipo_emissao,
        codigo_numerico=codigo_numerico,
        modelo=nota.modelo or MODELO_NFCE,
    )


def proximo_numero(store: DocumentoStoreProtocol, tenant_id: str, serie: str) -> str:
    """
    Próximo número da série, com 9 dígitos.

    Regras:
      - Série sem documento → "000000001".
      - Falha na consulta ao store → "000000001" com log de erro. O store é
        a fonte da verdade e colisão é barrada na autorização.
    """
    try:
        ultimo = store.ultimo_numero_da_serie(tenant_id, serie)
        digitos = somente_digitos(str(ultimo)) if ultimo is not None else ""
        atual = int(digitos) if digitos else 0
    except Exception:
        logger.exception(
            "motor_proximo_numero_fallback",
            extra={
                "event": "motor_proximo_numero_fallback",
                "tenant_id": tenant_id,
                "serie": serie,
            },
        )
        return NUMERO_INICIAL

    if atual >= NUMERO_MAXIMO:
        raise ArgumentoInvalidoError(f"Série {serie} esgotada (último número {atual}).")
    return str(atual + 1).zfill(9)


def gerar_url_consulta(chave: str, ambiente: str = "homologacao", url_base: Optional[str] = None) -> str:
    """URL de consulta pública usada no QR Code da NFC-e."""
    base = url_base or URLS_CONSULTA_NFCE.get(ambiente, URLS_CONSULTA_NFCE["homologacao"])
    return f"{base}?p={chave}"


def gerar_qrcode_contingencia(chave: str, data_emissao: datetime, valor_total) -> str:
    """
    Conteúdo do QR Code em contingência offline:
    chave|AAAAMMDDTHHMMSS|valor com vírgula|CONTINGENCIA
    """
    valor = formatar(valor_total).replace(".", ",")
    return f"{chave}|{data_emissao.strftime('%Y%m%dT%H%M%S')}|{valor}|CONTINGENCIA"
