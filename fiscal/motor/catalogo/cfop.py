# fiscal/motor/catalogo/cfop.py
from __future__ import annotations

from typing import FrozenSet, Iterable

from fiscal.motor.tipos import TipoOperacao


def _faixa(inicio: int, fim: int) -> Iterable[str]:
    return (str(c) for c in range(inicio, fim + 1))


# --------------------------------------------------------------------
# CFOPs de entrada (1xxx dentro do estado, 2xxx interestadual)
# --------------------------------------------------------------------
CFOP_ENTRADA: FrozenSet[str] = frozenset(
    [
        "1101", "1102", "1201", "1202", "1301", "1302",
        *_faixa(1401, 1411), "1414", "1415",
        *_faixa(1501, 1523),
        *_faixa(1551, 1560),
        *_faixa(1601, 1608),
        *_faixa(1651, 1658),
        *_faixa(1901, 1925), "1949",
        "2101", "2102", "2201", "2202",
        *_faixa(2551, 2556),
        *_faixa(2901, 2925), "2949",
    ]
)

# --------------------------------------------------------------------
# CFOPs de saída (5xxx dentro do estado, 6xxx interestadual)
# --------------------------------------------------------------------
CFOP_SAIDA: FrozenSet[str] = frozenset(
    [
        *_faixa(5101, 5125),
        *_faixa(5301, 5325),
        *_faixa(5401, 5420),
        *_faixa(5501, 5520),
        *_faixa(5551, 5560),
        *_faixa(5601, 5620),
        *_faixa(5901, 5925), "5949",
        *_faixa(6101, 6125),
        *_faixa(6901, 6925), "6949",
    ]
)


def cfop_valido(cfop: str | None, operacao: TipoOperacao | str) -> bool:
    """
    CFOP pertence à lista da direção informada (entrada/saída).
    """
    if not cfop:
        return False
    if TipoOperacao(operacao) == TipoOperacao.ENTRADA:
        return cfop.strip() in CFOP_ENTRADA
    return cfop.strip() in CFOP_SAIDA
