# fiscal/motor/calculadoras/iss.py
from __future__ import annotations

from fiscal.motor.calculadoras.base import valor_liquido
from fiscal.motor.catalogo import ALIQUOTA_ISS_PADRAO, CODIGO_SERVICO_PADRAO, RegraFiscal
from fiscal.motor.dinheiro import D0, percentual
from fiscal.motor.tipos import DadosFiscaisPessoa, ImpostoISS, ItemNotaFiscal


def iss_retido(emitente: DadosFiscaisPessoa, tomador: DadosFiscaisPessoa) -> bool:
    """
    Retenção quando prestador e tomador estão em municípios diferentes.

    Aproximação: a retenção legal depende do item da lista de serviços
    (LC 116/2003, art. 3º e 6º), que ainda não consultamos.
    """
    return (
        (emitente.endereco.codigo_municipio or "").strip()
        != (tomador.endereco.codigo_municipio or "").strip()
    )


def calcular_iss(
    item: ItemNotaFiscal,
    emitente: DadosFiscaisPessoa,
    tomador: DadosFiscaisPessoa,
    regra: RegraFiscal | None = None,
) -> ImpostoISS:
    """
    ISS só para serviços. Base = valor bruto − desconto.
    Alíquota padrão 5% enquanto não há tabela municipal por código de serviço.
    """
    base = valor_liquido(item)
    if base < D0:
        base = D0

    aliquota = ALIQUOTA_ISS_PADRAO
    codigo_servico = item.codigo_servico or CODIGO_SERVICO_PADRAO
    if regra is not None:
        aliquota = regra.aliquota_iss_padrao or ALIQUOTA_ISS_PADRAO
        codigo_servico = item.codigo_servico or regra.codigo_servico_padrao or CODIGO_SERVICO_PADRAO

    return ImpostoISS(
        base_calculo=base,
        aliquota=aliquota,
        valor=percentual(base, aliquota),
        retido=iss_retido(emitente, tomador),
        codigo_servico=codigo_servico,
        codigo_municipio=emitente.endereco.codigo_municipio,
    )
