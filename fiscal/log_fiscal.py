# fiscal/log_fiscal.py
"""
Log fiscal gravado no banco (NotaFiscalLog).

Implementa LogFiscalProtocol. Erros de banco sobem normalmente: quem
decide engolir é a fachada (MotorFiscalService), que trata o log como
best-effort.
"""

from __future__ import annotations

from fiscal.models import NotaFiscalLog


class DjangoLogFiscal:
    def __init__(self, *, tenant_id: str | None = None, user_id: int | None = None):
        self.tenant_id = tenant_id
        self.user_id = user_id

    def registrar_log(self, nota_id, tipo_alteracao, valor_anterior, valor_novo) -> None:
        NotaFiscalLog.objects.create(
            tenant_id=self.tenant_id,
            user_id=self.user_id,
            nota_id=str(nota_id),
            tipo_alteracao=tipo_alteracao,
            valor_anterior=valor_anterior,
            valor_novo=valor_novo,
        )
