# fiscal/motor/catalogo/__init__.py
"""
Catálogo de regras fiscais: tabelas estáticas + funções de consulta.

Nenhuma função daqui levanta exceção por código desconhecido: a ausência
volta como False/None e quem chama aplica o default seguro.
"""
from __future__ import annotations

from .cfop import CFOP_ENTRADA, CFOP_SAIDA, cfop_valido
from .cst import (
    CSOSN_COM_CALCULO,
    CSOSN_PADRAO,
    CSOSN_SIMPLES_NACIONAL,
    CST_ICMS_PADRAO,
    CST_ICMS_SEM_DESTAQUE,
    CST_REGIME_NORMAL,
    ORIGEM_NACIONAL,
    aliquotas_pis_cofins,
    codigo_valido_para_regime,
)
from .ncm import aliquota_ipi, classificacao_valida, ncm_valido, somente_digitos
from .regras import ALIQUOTA_ISS_PADRAO, CODIGO_SERVICO_PADRAO, REGRAS_FISCAIS, RegraFiscal, regra_para
from .uf import (
    ALIQUOTA_ICMS_PADRAO,
    aliquota_icms_interestadual,
    aliquota_icms_interna,
    codigo_ibge_uf,
    get_uf_config,
    normalizar_uf,
)

__all__ = [
    "CFOP_ENTRADA",
    "CFOP_SAIDA",
    "cfop_valido",
    "CSOSN_COM_CALCULO",
    "CSOSN_PADRAO",
    "CSOSN_SIMPLES_NACIONAL",
    "CST_ICMS_PADRAO",
    "CST_ICMS_SEM_DESTAQUE",
    "CST_REGIME_NORMAL",
    "ORIGEM_NACIONAL",
    "aliquotas_pis_cofins",
    "codigo_valido_para_regime",
    "aliquota_ipi",
    "classificacao_valida",
    "ncm_valido",
    "somente_digitos",
    "ALIQUOTA_ISS_PADRAO",
    "CODIGO_SERVICO_PADRAO",
    "REGRAS_FISCAIS",
    "RegraFiscal",
    "regra_para",
    "ALIQUOTA_ICMS_PADRAO",
    "aliquota_icms_interestadual",
    "aliquota_icms_interna",
    "codigo_ibge_uf",
    "get_uf_config",
    "normalizar_uf",
]
