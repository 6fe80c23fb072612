# fiscal/views/motor_fiscal_views.py
import logging
from dataclasses import asdict, replace
from typing import Any, Dict

from django.db import transaction
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.exceptions import NotFound, ValidationError as DRFValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import UserRateThrottle

from fiscal.documento_store import DjangoDocumentoStore
from fiscal.motor.dinheiro import formatar
from fiscal.motor.exceptions import ItemInexistenteError, MotorFiscalError
from fiscal.motor.projecao import item_para_dict, totais_para_dict
from fiscal.motor.recalculo import recalcular_nota
from fiscal.motor.tipos import NotaFiscal, StatusNota
from fiscal.motor_factory import get_motor_fiscal
from fiscal.serializers import (
    ChaveAcessoInputSerializer,
    ChaveAcessoOutputSerializer,
    ClassificacaoOutputSerializer,
    NotaComRegimeOpcionalInputSerializer,
    RecalcularItemInputSerializer,
    RecalcularNotaInputSerializer,
    nota_from_validated_data,
    nota_para_dict,
)
from fiscal.services.motor_fiscal_service import resultado_validacao_para_dict

logger = logging.getLogger("motor.fiscal")
root_logger = logging.getLogger()  # usado para garantir captura pelo caplog quando necessário

TENANT_HEADER = "X-Tenant-ID"


def _tenant_id_from_request(request) -> str | None:
    tenant_id = request.headers.get(TENANT_HEADER)
    return tenant_id.strip() if tenant_id and tenant_id.strip() else None


def _motor(request):
    return get_motor_fiscal(
        tenant_id=_tenant_id_from_request(request),
        user_id=getattr(request.user, "id", None),
    )


def _log(event: str, request, **extra) -> None:
    audit_extra: Dict[str, Any] = {
        "event": event,
        "tenant_id": _tenant_id_from_request(request),
        "user_id": getattr(request.user, "id", None),
    }
    audit_extra.update(extra)
    logger.info(event, extra=audit_extra)
    # Logger raiz (garante captura por caplog mesmo com propagate=False)
    root_logger.info(event, extra=audit_extra)


def _erro_motor(event: str, request, exc: MotorFiscalError):
    """
    Erro de contrato do motor -> resposta DRF.
    ItemInexistenteError vira 404; o resto, 400 com code/message.
    """
    _log(event, request, outcome="rejected", code=exc.code)
    body = {"code": exc.code, "message": exc.mensagem}
    if isinstance(exc, ItemInexistenteError):
        return NotFound(detail=body)
    return DRFValidationError(body)


def _nota_de_entrada(data) -> NotaFiscal:
    try:
        return nota_from_validated_data(data["nota"])
    except ValueError as exc:
        raise DRFValidationError({"nota": [str(exc)]})


def _preparar_nota(data) -> NotaFiscal:
    """
    Com regime, calcula os impostos dos itens antes de validar/projetar.
    Os totais informados são mantidos: a conferência é papel do validador.
    """
    nota = _nota_de_entrada(data)
    regime = data.get("regime")
    if regime:
        nota = replace(recalcular_nota(nota, regime), totais=nota.totais)
    return nota


# ---------------------------------------------------------------------------
# Recálculo
# ---------------------------------------------------------------------------


@api_view(["POST"])
@permission_classes([IsAuthenticated])
@throttle_classes([UserRateThrottle])
def recalcular_nota_view(request):
    """
    Recalcula itens e totais da nota para o regime informado.

    - Regime é obrigatório (o motor nunca infere)
    - Nota validada volta para rascunho
    - Nota já assinada/enviada/autorizada -> 400 FISCAL_6006
    """
    ser_in = RecalcularNotaInputSerializer(data=request.data)
    ser_in.is_valid(raise_exception=True)
    data = ser_in.validated_data

    nota = _nota_de_entrada(data)
    try:
        nova = _motor(request).recalcular_nota(nota, data["regime"])
    except MotorFiscalError as exc:
        raise _erro_motor("motor_api_recalcular_nota", request, exc)

    _log(
        "motor_api_recalcular_nota",
        request,
        outcome="success",
        nota_id=nova.id,
        regime=data["regime"],
        valor_total=str(nova.totais.valor_total),
    )
    return Response(nota_para_dict(nova), status=status.HTTP_200_OK)


@api_view(["POST"])
@permission_classes([IsAuthenticated])
@throttle_classes([UserRateThrottle])
def recalcular_item_view(request):
    """
    Recalcula um item (posição `indice`, base 0) e devolve item, totais
    da nota com o item trocado e as alterações relevantes.
    """
    ser_in = RecalcularItemInputSerializer(data=request.data)
    ser_in.is_valid(raise_exception=True)
    data = ser_in.validated_data

    nota = _nota_de_entrada(data)
    try:
        resultado = _motor(request).recalcular_item(nota, data["indice"], data["regime"])
    except MotorFiscalError as exc:
        raise _erro_motor("motor_api_recalcular_item", request, exc)

    _log(
        "motor_api_recalcular_item",
        request,
        outcome="success",
        nota_id=nota.id,
        indice=data["indice"],
        alteracoes=len(resultado.alteracoes),
    )
    return Response(
        {
            "item": item_para_dict(resultado.item),
            "totais": totais_para_dict(resultado.totais),
            "status": StatusNota(nota.status).value,
            "precisa_validacao_fiscal": nota.precisa_validacao_fiscal,
            "alteracoes": [
                {
                    "campo": a.campo,
                    "valor_anterior": formatar(a.valor_anterior),
                    "valor_novo": formatar(a.valor_novo),
                }
                for a in resultado.alteracoes
            ],
        },
        status=status.HTTP_200_OK,
    )


# ---------------------------------------------------------------------------
# Validação / classificação
# ---------------------------------------------------------------------------


@api_view(["POST"])
@permission_classes([IsAuthenticated])
@throttle_classes([UserRateThrottle])
def validar_nota_view(request):
    """
    Validação estrutural. Nota inválida é resposta 200 com valido=false:
    erro de dado nunca vira exceção.
    """
    ser_in = NotaComRegimeOpcionalInputSerializer(data=request.data)
    ser_in.is_valid(raise_exception=True)

    try:
        nota = _preparar_nota(ser_in.validated_data)
        resultado = _motor(request).validar_nota(nota)
    except MotorFiscalError as exc:
        raise _erro_motor("motor_api_validar_nota", request, exc)

    _log(
        "motor_api_validar_nota",
        request,
        outcome="success",
        nota_id=nota.id,
        valido=resultado.valido,
        erros=len(resultado.erros),
        avisos=len(resultado.avisos),
    )
    return Response(resultado_validacao_para_dict(resultado), status=status.HTTP_200_OK)


@api_view(["POST"])
@permission_classes([IsAuthenticated])
@throttle_classes([UserRateThrottle])
def classificar_nota_view(request):
    ser_in = NotaComRegimeOpcionalInputSerializer(data=request.data)
    ser_in.is_valid(raise_exception=True)

    nota = _nota_de_entrada(ser_in.validated_data)
    result = _motor(request).classificar_nota(nota)

    payload = asdict(result)
    payload["tipo"] = result.tipo.value
    return Response(ClassificacaoOutputSerializer(payload).data, status=status.HTTP_200_OK)


# ---------------------------------------------------------------------------
# Projeção / XML
# ---------------------------------------------------------------------------


@api_view(["POST"])
@permission_classes([IsAuthenticated])
@throttle_classes([UserRateThrottle])
def projecao_nota_view(request):
    """
    Projeção para a(s) autoridade(s). Nota mista gera dois documentos.

    - ?formato=xml devolve {"xml": [...]} em vez de {"projecoes": [...]}
    """
    ser_in = NotaComRegimeOpcionalInputSerializer(data=request.data)
    ser_in.is_valid(raise_exception=True)
    formato = (request.query_params.get("formato") or "json").lower()
    if formato not in ("json", "xml"):
        raise DRFValidationError({"formato": ["Use 'json' ou 'xml'."]})

    try:
        nota = _preparar_nota(ser_in.validated_data)
        motor = _motor(request)
        if formato == "xml":
            payload = {"xml": motor.gerar_xml(nota)}
        else:
            payload = {"projecoes": motor.gerar_projecoes(nota)}
    except MotorFiscalError as exc:
        raise _erro_motor("motor_api_projecao", request, exc)

    _log("motor_api_projecao", request, outcome="success", nota_id=nota.id, formato=formato)
    return Response(payload, status=status.HTTP_200_OK)


# ---------------------------------------------------------------------------
# Numeração / chave de acesso
# ---------------------------------------------------------------------------


@api_view(["POST"])
@permission_classes([IsAuthenticated])
@throttle_classes([UserRateThrottle])
def chave_acesso_view(request):
    """
    Próximo número da série + chave de acesso NFC-e (modelo 65).

    Fluxo:
      1) Reserva o próximo número da série do tenant (header X-Tenant-ID)
         sob lock na sequência.
      2) Gera a chave (tpEmis 9 quando contingencia=true) na mesma
         transação: erro na chave devolve o número.
    """
    tenant_id = _tenant_id_from_request(request)
    if not tenant_id:
        raise DRFValidationError({"tenant_id": [f"Header {TENANT_HEADER} é obrigatório."]})

    ser_in = ChaveAcessoInputSerializer(data=request.data)
    ser_in.is_valid(raise_exception=True)
    data = ser_in.validated_data

    try:
        with transaction.atomic():
            numero = DjangoDocumentoStore().reservar_proximo_numero(tenant_id, data["serie"])
            result = _motor(request).gerar_chave_acesso(
                uf=data["uf"],
                cnpj_emitente=data["cnpj_emitente"],
                serie=data["serie"],
                data_emissao=data["data_emissao"],
                valor_total=data["valor_total"],
                contingencia=data["contingencia"],
                codigo_numerico=data["codigo_numerico"],
                numero=numero,
            )
    except MotorFiscalError as exc:
        raise _erro_motor("motor_api_chave_acesso", request, exc)

    _log(
        "motor_api_chave_acesso",
        request,
        outcome="success",
        serie=result.serie,
        numero=result.numero,
        tipo_emissao=result.tipo_emissao,
    )
    return Response(ChaveAcessoOutputSerializer(asdict(result)).data, status=status.HTTP_200_OK)
