# fiscal/serializers.py
from __future__ import annotations

from typing import Any, Dict

from django.conf import settings
from rest_framework import serializers

from fiscal.motor.dinheiro import D0
from fiscal.motor.projecao import classificar_nota, item_para_dict, parte_para_dict, totais_para_dict
from fiscal.motor.tipos import (
    ClassificacaoFiscal,
    DadosFiscaisPessoa,
    Endereco,
    ItemNotaFiscal,
    NotaFiscal,
    RegimeTributario,
    StatusNota,
    TipoItem,
    TipoOperacao,
    TotaisNotaFiscal,
)


def _choices(enum_cls):
    return [(e.value, e.value) for e in enum_cls]


def _valor(**kwargs):
    # NaN/Infinity são rejeitados aqui; ausente vira zero
    return serializers.DecimalField(
        max_digits=20, decimal_places=10, required=False, default=D0, **kwargs
    )


# ---------------------------------------------------------------------------
# Entrada: nota fiscal
# ---------------------------------------------------------------------------


class EnderecoSerializer(serializers.Serializer):
    logradouro = serializers.CharField(required=False, allow_blank=True, default="")
    numero = serializers.CharField(required=False, allow_blank=True, default="")
    bairro = serializers.CharField(required=False, allow_blank=True, default="")
    municipio = serializers.CharField(required=False, allow_blank=True, default="")
    codigo_municipio = serializers.CharField(required=False, allow_blank=True, default="")
    uf = serializers.CharField(required=False, allow_blank=True, max_length=2, default="")
    cep = serializers.CharField(required=False, allow_blank=True, default="")


class PessoaSerializer(serializers.Serializer):
    cpf_cnpj = serializers.CharField(allow_blank=True)
    razao_social = serializers.CharField(required=False, allow_blank=True, default="")
    inscricao_estadual = serializers.CharField(required=False, allow_blank=True, allow_null=True, default=None)
    inscricao_municipal = serializers.CharField(required=False, allow_blank=True, allow_null=True, default=None)
    endereco = EnderecoSerializer(required=False)


class ClassificacaoFiscalSerializer(serializers.Serializer):
    cst_icms = serializers.CharField(required=False, allow_null=True, default=None)
    csosn = serializers.CharField(required=False, allow_null=True, default=None)
    origem = serializers.CharField(required=False, allow_null=True, default=None)
    cst_ipi = serializers.CharField(required=False, allow_null=True, default=None)
    cst_pis = serializers.CharField(required=False, allow_null=True, default=None)
    cst_cofins = serializers.CharField(required=False, allow_null=True, default=None)


class ItemNotaFiscalSerializer(serializers.Serializer):
    numero_item = serializers.IntegerField(required=False, min_value=1)
    tipo = serializers.ChoiceField(choices=_choices(TipoItem))
    codigo = serializers.CharField(required=False, allow_blank=True, default="")
    descricao = serializers.CharField(required=False, allow_blank=True, default="")
    unidade = serializers.CharField(required=False, allow_blank=True, default="UN")
    ncm = serializers.CharField(required=False, allow_blank=True, allow_null=True, default=None)
    codigo_servico = serializers.CharField(required=False, allow_blank=True, allow_null=True, default=None)
    cfop = serializers.CharField(required=False, allow_blank=True, allow_null=True, default=None)
    quantidade = _valor()
    valor_unitario = _valor()
    valor_desconto = _valor()
    valor_frete = _valor()
    valor_seguro = _valor()
    valor_outras_despesas = _valor()
    valor_total = _valor()
    classificacao_override = ClassificacaoFiscalSerializer(required=False, allow_null=True, default=None)


class TotaisNotaFiscalSerializer(serializers.Serializer):
    valor_produtos = _valor()
    valor_servicos = _valor()
    valor_desconto = _valor()
    valor_frete = _valor()
    valor_seguro = _valor()
    valor_outras_despesas = _valor()
    base_calculo_icms = _valor()
    valor_icms = _valor()
    valor_icms_st = _valor()
    valor_ipi = _valor()
    valor_pis = _valor()
    valor_cofins = _valor()
    valor_iss = _valor()
    valor_iss_retido = _valor()
    valor_total_tributos = _valor()
    valor_total = _valor()


class NotaFiscalSerializer(serializers.Serializer):
    id = serializers.CharField(required=False, allow_null=True, allow_blank=True, default=None)
    tipo_operacao = serializers.ChoiceField(choices=_choices(TipoOperacao))
    numero = serializers.CharField(required=False, allow_blank=True, default="")
    serie = serializers.CharField(required=False, allow_blank=True, default="")
    modelo = serializers.CharField(required=False, allow_blank=True, default="55")
    data_emissao = serializers.DateTimeField(required=False, allow_null=True, default=None)
    natureza_operacao = serializers.CharField(required=False, allow_blank=True, default="")
    emitente = PessoaSerializer()
    destinatario = PessoaSerializer()
    itens = ItemNotaFiscalSerializer(many=True, required=False, default=list)
    totais = TotaisNotaFiscalSerializer(required=False)
    status = serializers.ChoiceField(choices=_choices(StatusNota), required=False, default=StatusNota.RASCUNHO.value)
    regime_tributario = serializers.ChoiceField(
        choices=_choices(RegimeTributario), required=False, allow_null=True, default=None
    )
    chave_acesso = serializers.CharField(required=False, allow_null=True, allow_blank=True, default=None)
    precisa_validacao_fiscal = serializers.BooleanField(required=False, default=True)


# ---------------------------------------------------------------------------
# Entrada: endpoints
# ---------------------------------------------------------------------------


class RecalcularNotaInputSerializer(serializers.Serializer):
    nota = NotaFiscalSerializer()
    regime = serializers.ChoiceField(choices=_choices(RegimeTributario))


class RecalcularItemInputSerializer(RecalcularNotaInputSerializer):
    indice = serializers.IntegerField(min_value=0)


class NotaComRegimeOpcionalInputSerializer(serializers.Serializer):
    """
    Validação / classificação / projeção. Com regime, a nota é recalculada
    antes (totais informados são mantidos para conferência).
    """
    nota = NotaFiscalSerializer()
    regime = serializers.ChoiceField(choices=_choices(RegimeTributario), required=False, allow_null=True, default=None)


class ChaveAcessoInputSerializer(serializers.Serializer):
    uf = serializers.CharField(max_length=2)
    cnpj_emitente = serializers.CharField()
    serie = serializers.RegexField(r"^\d{1,3}$", required=False)
    data_emissao = serializers.DateTimeField()
    valor_total = serializers.DecimalField(max_digits=20, decimal_places=2, required=False, default=D0)
    contingencia = serializers.BooleanField(required=False, default=False)
    codigo_numerico = serializers.RegexField(r"^\d{8}$", required=False, allow_null=True, default=None)

    def validate(self, attrs):
        if not attrs.get("serie"):
            attrs["serie"] = str(getattr(settings, "MOTOR_FISCAL_SERIE_NFCE", "1"))
        return attrs


class ChaveAcessoOutputSerializer(serializers.Serializer):
    numero = serializers.CharField()
    serie = serializers.CharField()
    chave_acesso = serializers.CharField()
    tipo_emissao = serializers.CharField()
    url_consulta = serializers.CharField()
    qrcode_contingencia = serializers.CharField(allow_null=True)


class ClassificacaoOutputSerializer(serializers.Serializer):
    tipo = serializers.CharField()
    itens_produto = serializers.IntegerField()
    itens_servico = serializers.IntegerField()


# ---------------------------------------------------------------------------
# Conversão payload <-> domínio
# ---------------------------------------------------------------------------


def _pessoa(data: Dict[str, Any]) -> DadosFiscaisPessoa:
    return DadosFiscaisPessoa(
        cpf_cnpj=data.get("cpf_cnpj", ""),
        razao_social=data.get("razao_social", ""),
        inscricao_estadual=data.get("inscricao_estadual"),
        inscricao_municipal=data.get("inscricao_municipal"),
        endereco=Endereco(**(data.get("endereco") or {})),
    )


def _item(pos: int, data: Dict[str, Any]) -> ItemNotaFiscal:
    override = data.get("classificacao_override")
    return ItemNotaFiscal(
        numero_item=data.get("numero_item") or pos,
        tipo=TipoItem(data["tipo"]),
        codigo=data.get("codigo", ""),
        descricao=data.get("descricao", ""),
        unidade=data.get("unidade", "UN"),
        ncm=data.get("ncm"),
        codigo_servico=data.get("codigo_servico"),
        cfop=data.get("cfop"),
        quantidade=data.get("quantidade", D0),
        valor_unitario=data.get("valor_unitario", D0),
        valor_desconto=data.get("valor_desconto", D0),
        valor_frete=data.get("valor_frete", D0),
        valor_seguro=data.get("valor_seguro", D0),
        valor_outras_despesas=data.get("valor_outras_despesas", D0),
        valor_total=data.get("valor_total", D0),
        classificacao_override=ClassificacaoFiscal(**override) if override else None,
    )


def nota_from_validated_data(data: Dict[str, Any]) -> NotaFiscal:
    regime = data.get("regime_tributario")
    return NotaFiscal(
        id=data.get("id") or None,
        tipo_operacao=TipoOperacao(data["tipo_operacao"]),
        numero=data.get("numero", ""),
        serie=data.get("serie", ""),
        modelo=data.get("modelo") or "55",
        data_emissao=data.get("data_emissao"),
        natureza_operacao=data.get("natureza_operacao", ""),
        emitente=_pessoa(data["emitente"]),
        destinatario=_pessoa(data["destinatario"]),
        itens=[_item(pos, item) for pos, item in enumerate(data.get("itens") or [], start=1)],
        totais=TotaisNotaFiscal(**(data.get("totais") or {})),
        status=StatusNota(data.get("status") or StatusNota.RASCUNHO.value),
        regime_tributario=RegimeTributario(regime) if regime else None,
        chave_acesso=data.get("chave_acesso") or None,
        precisa_validacao_fiscal=data.get("precisa_validacao_fiscal", True),
    )


def nota_para_dict(nota: NotaFiscal) -> Dict[str, Any]:
    """
    Saída no mesmo formato aceito por NotaFiscalSerializer: o chamador
    reenvia a nota a cada edição.
    """
    return {
        "id": nota.id,
        "tipo": classificar_nota(nota).value,
        "tipo_operacao": TipoOperacao(nota.tipo_operacao).value,
        "numero": nota.numero,
        "serie": nota.serie,
        "modelo": nota.modelo,
        "data_emissao": nota.data_emissao.isoformat() if nota.data_emissao else None,
        "natureza_operacao": nota.natureza_operacao,
        "emitente": parte_para_dict(nota.emitente),
        "destinatario": parte_para_dict(nota.destinatario),
        "status": StatusNota(nota.status).value,
        "regime_tributario": RegimeTributario(nota.regime_tributario).value if nota.regime_tributario else None,
        "chave_acesso": nota.chave_acesso,
        "precisa_validacao_fiscal": nota.precisa_validacao_fiscal,
        "itens": [item_para_dict(item) for item in nota.itens],
        "totais": totais_para_dict(nota.totais),
    }
