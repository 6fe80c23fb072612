# fiscal/motor_factory.py
"""
Factory da fachada do motor fiscal.

Ponto único que liga MotorFiscalService aos colaboradores com banco
(DjangoLogFiscal, DjangoDocumentoStore) e às settings MOTOR_FISCAL_*.
Views e services pedem o motor aqui, nunca instanciam na mão.
"""

from __future__ import annotations

from django.conf import settings

from fiscal.documento_store import DjangoDocumentoStore
from fiscal.log_fiscal import DjangoLogFiscal
from fiscal.motor.colaboradores import LogFiscalNulo
from fiscal.services.motor_fiscal_service import MotorFiscalService


def _normalize_ambiente(ambiente: str | None) -> str:
    """
    Aceita variações comuns e devolve "homologacao" ou "producao".
    """
    if not ambiente:
        return "homologacao"

    amb = ambiente.strip().lower()
    if amb in {"prod", "producao", "produção"}:
        return "producao"
    # fallback conservador
    return "homologacao"


def get_motor_fiscal(*, tenant_id: str | None = None, user_id: int | None = None) -> MotorFiscalService:
    ambiente = _normalize_ambiente(getattr(settings, "MOTOR_FISCAL_AMBIENTE", None))
    urls = getattr(settings, "MOTOR_FISCAL_URL_CONSULTA_NFCE", {}) or {}

    if getattr(settings, "MOTOR_FISCAL_LOG_HABILITADO", True):
        log_fiscal = DjangoLogFiscal(tenant_id=tenant_id, user_id=user_id)
    else:
        log_fiscal = LogFiscalNulo()

    return MotorFiscalService(
        log_fiscal=log_fiscal,
        documento_store=DjangoDocumentoStore(),
        tenant_id=tenant_id,
        user_id=user_id,
        ambiente=ambiente,
        url_consulta=urls.get(ambiente),
    )
