# fiscal/models/documento_sequencia_models.py
import uuid

from django.db import models


class DocumentoFiscalSequencia(models.Model):
    """
    Controla a numeração fiscal (série e último número) por tenant e por
    modelo de documento (NF-e 55, NFC-e 65).

    Exemplo:
      - Tenant A, modelo 65, série 1 -> numeração NFC-e
      - Tenant A, modelo 55, série 2 -> numeração NF-e
      - Tenant B, modelo 65, série 1 -> outra sequência
    """

    MODELO_NFE = "55"
    MODELO_NFCE = "65"
    MODELO_CHOICES = (
        (MODELO_NFE, "NF-e (55)"),
        (MODELO_NFCE, "NFC-e (65)"),
    )

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
    )

    tenant_id = models.CharField(
        max_length=64,
        help_text="Tenant dono desta sequência.",
    )

    modelo = models.CharField(
        max_length=2,
        choices=MODELO_CHOICES,
        default=MODELO_NFCE,
        help_text="Modelo de documento fiscal (55=NF-e, 65=NFC-e).",
    )

    serie = models.PositiveIntegerField(
        default=1,
        help_text="Série fiscal para este modelo de documento neste tenant.",
    )

    numero_atual = models.PositiveIntegerField(
        default=0,
        help_text="Último número utilizado. Próximo será numero_atual + 1.",
    )

    ativo = models.BooleanField(
        default=True,
        help_text="Se desativado, essa sequência não será mais usada.",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "documento_fiscal_sequencia"
        verbose_name = "Sequência de Documento Fiscal"
        verbose_name_plural = "Sequências de Documentos Fiscais"
        ordering = ["tenant_id", "modelo", "serie"]
        constraints = [
            # Não pode ter duas sequências iguais para o mesmo tenant/modelo/série
            models.UniqueConstraint(
                fields=["tenant_id", "modelo", "serie"],
                name="uniq_sequencia_tenant_modelo_serie",
            ),
        ]
        indexes = [
            models.Index(fields=["tenant_id"], name="idx_sequencia_tenant"),
            models.Index(fields=["ativo"], name="idx_sequencia_ativo"),
        ]

    def __str__(self):
        return f"{self.tenant_id} - Mod {self.modelo} - Série {self.serie}"

    @property
    def proximo_numero(self) -> int:
        """Retorna em memória qual será o próximo número a emitir."""
        return self.numero_atual + 1
