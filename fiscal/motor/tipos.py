# fiscal/motor/tipos.py
"""
Modelo de dados do motor fiscal.

Tudo aqui é valor puro (dataclasses + Decimal), sem Django. O chamador
monta a NotaFiscal, o motor devolve cópias recalculadas/validadas e nunca
guarda referência entre chamadas.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Tuple, Union

from fiscal.motor.dinheiro import D0


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class TipoNota(str, Enum):
    NFE = "nfe"
    NFSE = "nfse"
    MISTA = "mista"


class TipoItem(str, Enum):
    PRODUTO = "produto"
    SERVICO = "servico"


class TipoOperacao(str, Enum):
    ENTRADA = "entrada"
    SAIDA = "saida"


class RegimeTributario(str, Enum):
    SIMPLES_NACIONAL = "simples_nacional"
    LUCRO_PRESUMIDO = "lucro_presumido"
    LUCRO_REAL = "lucro_real"


class StatusNota(str, Enum):
    RASCUNHO = "rascunho"
    VALIDADA = "validada"
    ASSINADA = "assinada"
    ENVIADA = "enviada"
    AUTORIZADA = "autorizada"
    CANCELADA = "cancelada"
    DENEGADA = "denegada"


# ---------------------------------------------------------------------------
# Partes (emitente / destinatário)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Endereco:
    logradouro: str = ""
    numero: str = ""
    bairro: str = ""
    municipio: str = ""
    codigo_municipio: str = ""  # IBGE, 7 dígitos
    uf: str = ""
    cep: str = ""


@dataclass(frozen=True)
class DadosFiscaisPessoa:
    """
    Emitente ou destinatário/tomador.

    Imutável: uma vez anexado à nota, o motor só lê.
    """
    cpf_cnpj: str
    razao_social: str = ""
    inscricao_estadual: Optional[str] = None
    inscricao_municipal: Optional[str] = None
    endereco: Endereco = field(default_factory=Endereco)


# ---------------------------------------------------------------------------
# Resultados por imposto
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ImpostoICMS:
    """
    cst (regime normal) e csosn (Simples Nacional) são exclusivos:
    a calculadora preenche um ou outro, nunca os dois.
    """
    origem: str = "0"
    cst: Optional[str] = None
    csosn: Optional[str] = None
    base_calculo: Decimal = D0
    aliquota: Decimal = D0
    valor: Decimal = D0
    valor_st: Decimal = D0


@dataclass(frozen=True)
class ImpostoIPI:
    cst: str = "99"
    base_calculo: Decimal = D0
    aliquota: Decimal = D0
    valor: Decimal = D0


@dataclass(frozen=True)
class ImpostoPIS:
    cst: str = "01"
    base_calculo: Decimal = D0
    aliquota: Decimal = D0
    valor: Decimal = D0


@dataclass(frozen=True)
class ImpostoCOFINS:
    cst: str = "01"
    base_calculo: Decimal = D0
    aliquota: Decimal = D0
    valor: Decimal = D0


@dataclass(frozen=True)
class ImpostoISS:
    base_calculo: Decimal = D0
    aliquota: Decimal = D0
    valor: Decimal = D0
    retido: bool = False
    codigo_servico: str = ""
    codigo_municipio: str = ""


@dataclass(frozen=True)
class ImpostosProduto:
    icms: ImpostoICMS
    ipi: ImpostoIPI
    pis: ImpostoPIS
    cofins: ImpostoCOFINS


@dataclass(frozen=True)
class ImpostosServico:
    iss: ImpostoISS
    pis: ImpostoPIS
    cofins: ImpostoCOFINS


# Variante fechada: o despacho por tipo de item é exaustivo
Impostos = Union[ImpostosProduto, ImpostosServico]


@dataclass(frozen=True)
class ClassificacaoFiscal:
    """
    Códigos escolhidos manualmente pelo usuário para o item.

    Ficam separados do resultado calculado: sobrevivem a qualquer
    recálculo e só são trocados por quem editou o item.
    """
    cst_icms: Optional[str] = None
    csosn: Optional[str] = None
    origem: Optional[str] = None
    cst_ipi: Optional[str] = None
    cst_pis: Optional[str] = None
    cst_cofins: Optional[str] = None


# ---------------------------------------------------------------------------
# Itens / totais / nota
# ---------------------------------------------------------------------------


@dataclass
class ItemNotaFiscal:
    numero_item: int
    tipo: TipoItem
    codigo: str
    descricao: str
    quantidade: Decimal
    valor_unitario: Decimal
    unidade: str = "UN"
    ncm: Optional[str] = None
    codigo_servico: Optional[str] = None
    cfop: Optional[str] = None
    valor_desconto: Decimal = D0
    valor_frete: Decimal = D0
    valor_seguro: Decimal = D0
    valor_outras_despesas: Decimal = D0
    valor_total: Decimal = D0
    impostos: Optional[Impostos] = None
    classificacao_override: Optional[ClassificacaoFiscal] = None


@dataclass
class TotaisNotaFiscal:
    valor_produtos: Decimal = D0
    valor_servicos: Decimal = D0
    valor_desconto: Decimal = D0
    valor_frete: Decimal = D0
    valor_seguro: Decimal = D0
    valor_outras_despesas: Decimal = D0
    base_calculo_icms: Decimal = D0
    valor_icms: Decimal = D0
    valor_icms_st: Decimal = D0
    valor_ipi: Decimal = D0
    valor_pis: Decimal = D0
    valor_cofins: Decimal = D0
    valor_iss: Decimal = D0
    valor_iss_retido: Decimal = D0
    valor_total_tributos: Decimal = D0
    valor_total: Decimal = D0


@dataclass
class NotaFiscal:
    """
    Raiz do agregado. Pertence ao chamador.

    regime_tributario é só informativo: todas as operações do motor
    recebem o regime explicitamente.
    """
    tipo_operacao: TipoOperacao
    emitente: DadosFiscaisPessoa
    destinatario: DadosFiscaisPessoa
    itens: List[ItemNotaFiscal] = field(default_factory=list)
    tipo: TipoNota = TipoNota.NFE
    numero: str = ""
    serie: str = ""
    modelo: str = "55"
    data_emissao: Optional[datetime] = None
    natureza_operacao: str = ""
    totais: TotaisNotaFiscal = field(default_factory=TotaisNotaFiscal)
    status: StatusNota = StatusNota.RASCUNHO
    regime_tributario: Optional[RegimeTributario] = None
    chave_acesso: Optional[str] = None
    id: Optional[str] = None
    precisa_validacao_fiscal: bool = True


# ---------------------------------------------------------------------------
# Resultados (imutáveis)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ErroValidacao:
    campo: str
    mensagem: str
    codigo: Optional[str] = None


@dataclass(frozen=True)
class AvisoValidacao:
    campo: str
    mensagem: str
    codigo: Optional[str] = None


@dataclass(frozen=True)
class ResultadoValidacao:
    valido: bool
    erros: Tuple[ErroValidacao, ...] = ()
    avisos: Tuple[AvisoValidacao, ...] = ()


@dataclass(frozen=True)
class Alteracao:
    campo: str
    valor_anterior: object
    valor_novo: object


@dataclass(frozen=True)
class ResultadoRecalculo:
    item: ItemNotaFiscal
    totais: TotaisNotaFiscal
    alteracoes: Tuple[Alteracao, ...] = ()
