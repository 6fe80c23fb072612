# fiscal/models/nota_fiscal_log_models.py
import uuid

from django.core.serializers.json import DjangoJSONEncoder
from django.db import models
from django.utils import timezone


class TipoAlteracaoLog(models.TextChoices):
    RECALCULO = "recalculo", "Recálculo"
    VALIDACAO = "validacao", "Validação"
    GERACAO_XML = "geracao_xml", "Geração de XML"


class NotaFiscalLog(models.Model):
    """
    Trilha de auditoria do motor fiscal.

    Uma linha por operação da fachada (recálculo, validação, geração de
    XML) com o antes/depois em JSON. A nota em si não é persistida aqui,
    por isso nota_id é só o identificador informado pelo chamador.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # Contexto multi-tenant / operacional
    tenant_id = models.CharField(
        max_length=64,
        blank=True,
        null=True,
        help_text="Identificação do tenant (ex: schema_name ou CNPJ raiz).",
    )
    user_id = models.IntegerField(blank=True, null=True)

    nota_id = models.CharField(max_length=64)
    tipo_alteracao = models.CharField(max_length=20, choices=TipoAlteracaoLog.choices)

    valor_anterior = models.JSONField(blank=True, null=True, encoder=DjangoJSONEncoder)
    valor_novo = models.JSONField(blank=True, null=True, encoder=DjangoJSONEncoder)

    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "nota_fiscal_log"
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["nota_id"]),
            models.Index(fields=["tipo_alteracao"]),
            models.Index(fields=["tenant_id"]),
        ]

    def __str__(self):
        return f"[{self.tipo_alteracao}] nota={self.nota_id} tenant={self.tenant_id}"
