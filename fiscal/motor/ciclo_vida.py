# fiscal/motor/ciclo_vida.py

from __future__ import annotations

import logging
from typing import FrozenSet, Iterable

from fiscal.motor.exceptions import NotaNaoEditavelError, TransicaoStatusInvalidaError
from fiscal.motor.tipos import NotaFiscal, StatusNota

logger = logging.getLogger("motor.fiscal")


# Matriz de transições permitidas.
# O motor só conduz rascunho → validada (e a volta para rascunho quando a
# nota é editada de novo); daí em diante quem move é o gateway de transmissão.
TRANSICOES_VALIDAS: dict[StatusNota, FrozenSet[StatusNota]] = {
    StatusNota.RASCUNHO: frozenset({StatusNota.VALIDADA}),
    # validada pode voltar para edição ou seguir para assinatura
    StatusNota.VALIDADA: frozenset({StatusNota.RASCUNHO, StatusNota.ASSINADA}),
    StatusNota.ASSINADA: frozenset({StatusNota.ENVIADA}),
    StatusNota.ENVIADA: frozenset({StatusNota.AUTORIZADA, StatusNota.DENEGADA}),
    StatusNota.AUTORIZADA: frozenset({StatusNota.CANCELADA}),
    # terminais
    StatusNota.CANCELADA: frozenset(),
    StatusNota.DENEGADA: frozenset(),
}

# Só nesses status itens/totais ainda podem ser recalculados
STATUS_EDITAVEIS: FrozenSet[StatusNota] = frozenset({StatusNota.RASCUNHO, StatusNota.VALIDADA})


class NotaFiscalStateMachine:
    """
    ÚNICO ponto autorizado a trocar o status da NotaFiscal.
    """

    @classmethod
    def mudar_status(
        cls,
        nota: NotaFiscal,
        novo_status: StatusNota | str,
        *,
        motivo: str | None = None,
        extra_context: dict | None = None,
    ) -> None:
        """
        - Valida se a transição é permitida (baseado no status atual).
        - É idempotente (se já estiver no status solicitado, não faz nada).
        - Altera a nota recebida.
        """
        status_atual = StatusNota(nota.status)
        novo_status = StatusNota(novo_status)

        if status_atual == novo_status:
            logger.debug(
                "Transição de status idempotente ignorada.",
                extra={
                    "event": "nota_status_idempotente",
                    "nota_id": nota.id,
                    "status_atual": status_atual.value,
                    "status_novo": novo_status.value,
                },
            )
            return

        permitidos: Iterable[StatusNota] = TRANSICOES_VALIDAS.get(status_atual, frozenset())
        if novo_status not in permitidos:
            raise TransicaoStatusInvalidaError(
                f"Transição de {status_atual.value} para {novo_status.value} não é permitida "
                f"para a nota {nota.id}.",
                status_atual=status_atual,
                status_novo=novo_status,
            )

        nota.status = novo_status

        context = {
            "event": "nota_status_transicao",
            "nota_id": nota.id,
            "status_anterior": status_atual.value,
            "status_novo": novo_status.value,
            "motivo": motivo,
        }
        if extra_context:
            context.update(extra_context)

        logger.info("nota_status_transicao", extra=context)

    @classmethod
    def garantir_editavel(cls, nota: NotaFiscal) -> None:
        status = StatusNota(nota.status)
        if status not in STATUS_EDITAVEIS:
            raise NotaNaoEditavelError(
                f"Nota em status {status.value} não pode ser recalculada.",
                status=status,
            )

    # Atalhos para leitura nos services:

    @classmethod
    def para_rascunho(cls, nota: NotaFiscal, **kwargs) -> None:
        cls.mudar_status(nota, StatusNota.RASCUNHO, **kwargs)

    @classmethod
    def para_validada(cls, nota: NotaFiscal, **kwargs) -> None:
        cls.mudar_status(nota, StatusNota.VALIDADA, **kwargs)

    @classmethod
    def para_assinada(cls, nota: NotaFiscal, **kwargs) -> None:
        cls.mudar_status(nota, StatusNota.ASSINADA, **kwargs)

    @classmethod
    def para_enviada(cls, nota: NotaFiscal, **kwargs) -> None:
        cls.mudar_status(nota, StatusNota.ENVIADA, **kwargs)

    @classmethod
    def para_autorizada(cls, nota: NotaFiscal, **kwargs) -> None:
        cls.mudar_status(nota, StatusNota.AUTORIZADA, **kwargs)

    @classmethod
    def para_cancelada(cls, nota: NotaFiscal, **kwargs) -> None:
        cls.mudar_status(nota, StatusNota.CANCELADA, **kwargs)

    @classmethod
    def para_denegada(cls, nota: NotaFiscal, **kwargs) -> None:
        cls.mudar_status(nota, StatusNota.DENEGADA, **kwargs)
