# fiscal/motor/catalogo/uf.py
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, FrozenSet, Optional


@dataclass(frozen=True)
class UFConfig:
    """
    Metadados fiscais por UF usados pelo motor:

      - codigo_ibge: 2 dígitos, primeiro bloco da chave de acesso.
      - aliquota_icms_interna: alíquota padrão nas operações internas.
      - regiao: N, NE, CO, SE, S.
    """
    uf: str
    codigo_ibge: str
    aliquota_icms_interna: Decimal
    regiao: str


ALIQUOTA_ICMS_PADRAO = Decimal("18")


def _uf(uf: str, codigo_ibge: str, aliquota: str, regiao: str) -> UFConfig:
    return UFConfig(
        uf=uf,
        codigo_ibge=codigo_ibge,
        aliquota_icms_interna=Decimal(aliquota),
        regiao=regiao,
    )


# Registry interno, 1:1 por UF
_UF_CONFIGS: Dict[str, UFConfig] = {
    c.uf: c
    for c in (
        _uf("AC", "12", "17", "N"),
        _uf("AL", "27", "18", "NE"),
        _uf("AP", "16", "18", "N"),
        _uf("AM", "13", "18", "N"),
        _uf("BA", "29", "18", "NE"),
        _uf("CE", "23", "18", "NE"),
        _uf("DF", "53", "18", "CO"),
        _uf("ES", "32", "17", "SE"),
        _uf("GO", "52", "17", "CO"),
        _uf("MA", "21", "18", "NE"),
        _uf("MT", "51", "17", "CO"),
        _uf("MS", "50", "17", "CO"),
        _uf("MG", "31", "18", "SE"),
        _uf("PA", "15", "17", "N"),
        _uf("PB", "25", "18", "NE"),
        _uf("PR", "41", "18", "S"),
        _uf("PE", "26", "18", "NE"),
        _uf("PI", "22", "18", "NE"),
        _uf("RJ", "33", "20", "SE"),
        _uf("RN", "24", "18", "NE"),
        _uf("RS", "43", "18", "S"),
        _uf("RO", "11", "17.5", "N"),
        _uf("RR", "14", "17", "N"),
        _uf("SC", "42", "17", "S"),
        _uf("SP", "35", "18", "SE"),
        _uf("SE", "28", "18", "NE"),
        _uf("TO", "17", "18", "N"),
    )
}

# Interestadual 7%: origem Sul/Sudeste (exceto ES) → destino N/NE/CO + ES
UFS_ORIGEM_7: FrozenSet[str] = frozenset(["MG", "PR", "RJ", "RS", "SC", "SP"])
UFS_DESTINO_7: FrozenSet[str] = frozenset(
    c.uf for c in _UF_CONFIGS.values() if c.uf not in UFS_ORIGEM_7
)

ALIQUOTA_INTERESTADUAL_7 = Decimal("7")
ALIQUOTA_INTERESTADUAL_12 = Decimal("12")


def normalizar_uf(uf: str | None) -> str:
    return (uf or "").strip().upper()


def get_uf_config(uf: str | None) -> Optional[UFConfig]:
    """
    Retorna a configuração da UF ou None quando a UF não existe.

    Diferente do fallback para SP usado em outros pontos: aqui quem chama
    decide o default (alíquota 18%, erro na chave, etc).
    """
    return _UF_CONFIGS.get(normalizar_uf(uf))


def aliquota_icms_interna(uf: str | None) -> Decimal:
    config = get_uf_config(uf)
    if config is None:
        return ALIQUOTA_ICMS_PADRAO
    return config.aliquota_icms_interna


def aliquota_icms_interestadual(uf_origem: str | None, uf_destino: str | None) -> Decimal:
    """
    Modelo de duas faixas (7% / 12%).

    A faixa de 4% para mercadoria com conteúdo de importação não entra aqui:
    depende de dado de origem que o item ainda não carrega.
    """
    if normalizar_uf(uf_origem) in UFS_ORIGEM_7 and normalizar_uf(uf_destino) in UFS_DESTINO_7:
        return ALIQUOTA_INTERESTADUAL_7
    return ALIQUOTA_INTERESTADUAL_12


def codigo_ibge_uf(uf: str | None) -> Optional[str]:
    config = get_uf_config(uf)
    return config.codigo_ibge if config else None
