# fiscal/motor/catalogo/ncm.py
from __future__ import annotations

import re
from decimal import Decimal
from typing import Dict, Optional

from fiscal.motor.tipos import TipoItem

_NAO_DIGITO = re.compile(r"\D")

# Tabela TIPI parcial: prefixo de NCM → alíquota IPI.
# Só o capítulo 22 (bebidas) está mapeado; o restante da TIPI ainda
# precisa ser carregado, então qualquer outro NCM sai com 0%.
ALIQUOTAS_IPI_POR_PREFIXO: Dict[str, Decimal] = {
    "22": Decimal("10"),
}


def somente_digitos(valor: str | None) -> str:
    return _NAO_DIGITO.sub("", valor or "")


def ncm_valido(ncm: str | None) -> bool:
    """NCM tem exatamente 8 dígitos."""
    if not ncm:
        return False
    return len(somente_digitos(ncm)) == 8


def classificacao_valida(codigo: str | None, tipo_item: TipoItem | str) -> bool:
    """
    Produto: NCM de 8 dígitos. Serviço: código não vazio.
    """
    if TipoItem(tipo_item) == TipoItem.PRODUTO:
        return ncm_valido(codigo)
    return bool((codigo or "").strip())


def aliquota_ipi(ncm: str | None) -> Optional[Decimal]:
    """
    Prefixo mais longo que casar vence. None quando nenhum casa.
    """
    digitos = somente_digitos(ncm)
    if not digitos:
        return None
    for prefixo in sorted(ALIQUOTAS_IPI_POR_PREFIXO, key=len, reverse=True):
        if digitos.startswith(prefixo):
            return ALIQUOTAS_IPI_POR_PREFIXO[prefixo]
    return None
