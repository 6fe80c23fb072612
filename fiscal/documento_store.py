# fiscal/documento_store.py

from __future__ import annotations

import logging
from typing import Optional

from django.db import IntegrityError, transaction

from fiscal.models import DocumentoFiscalSequencia
from fiscal.motor.chave_acesso import NUMERO_MAXIMO
from fiscal.motor.exceptions import ArgumentoInvalidoError

logger = logging.getLogger("motor.fiscal")


class DjangoDocumentoStore:
    """
    Numeração por (tenant, modelo, série) em DocumentoFiscalSequencia.
    Implementa DocumentoStoreProtocol.
    """

    def __init__(self, *, modelo: str = DocumentoFiscalSequencia.MODELO_NFCE):
        self.modelo = modelo

    def ultimo_numero_da_serie(self, tenant_id: str, serie: str) -> Optional[str]:
        seq = (
            DocumentoFiscalSequencia.objects.filter(
                tenant_id=tenant_id,
                modelo=self.modelo,
                serie=int(serie),
                ativo=True,
            )
            .only("numero_atual")
            .first()
        )
        if seq is None or not seq.numero_atual:
            return None
        return str(seq.numero_atual)

    def _travar_sequencia(self, tenant_id: str, serie: int) -> DocumentoFiscalSequencia:
        filtro = {"tenant_id": tenant_id, "modelo": self.modelo, "serie": serie}
        seq = DocumentoFiscalSequencia.objects.select_for_update().filter(**filtro).first()
        if seq is not None:
            return seq

        # savepoint: se outra requisição criou a sequência primeiro, o
        # IntegrityError não quebra a transação externa e relemos sob lock
        try:
            with transaction.atomic():
                DocumentoFiscalSequencia.objects.create(**filtro)
        except IntegrityError:
            logger.info(
                "motor_sequencia_criada_em_paralelo",
                extra={"event": "motor_sequencia_criada_em_paralelo", **filtro},
            )
        return DocumentoFiscalSequencia.objects.select_for_update().get(**filtro)

    def reservar_proximo_numero(self, tenant_id: str, serie: str) -> str:
        """
        Reserva o próximo número da série (9 dígitos).

        Regras:
          - Lock pessimista na linha da sequência (select_for_update).
          - Quem chama deve gerar a chave dentro da mesma transação: se a
            geração falhar, o rollback devolve o número.
          - Sequência desativada ou esgotada -> ArgumentoInvalidoError.
        """
        with transaction.atomic():
            seq = self._travar_sequencia(tenant_id, int(serie))
            if not seq.ativo:
                raise ArgumentoInvalidoError(f"Série {seq.serie} desativada para o modelo {self.modelo}.")
            if seq.numero_atual >= NUMERO_MAXIMO:
                raise ArgumentoInvalidoError(f"Série {seq.serie} esgotada (último número {seq.numero_atual}).")

            seq.numero_atual += 1
            seq.save(update_fields=["numero_atual", "updated_at"])

        logger.info(
            "motor_numero_reservado",
            extra={
                "event": "motor_numero_reservado",
                "tenant_id": tenant_id,
                "modelo": self.modelo,
                "serie": seq.serie,
                "numero_atual": seq.numero_atual,
            },
        )
        return str(seq.numero_atual).zfill(9)
