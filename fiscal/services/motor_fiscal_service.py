# fiscal/services/motor_fiscal_service.py

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from fiscal.motor.chave_acesso import (
    TIPO_EMISSAO_CONTINGENCIA_OFFLINE,
    TIPO_EMISSAO_NORMAL,
    gerar_chave_acesso,
    gerar_qrcode_contingencia,
    gerar_url_consulta,
    proximo_numero,
)
from fiscal.motor.ciclo_vida import NotaFiscalStateMachine
from fiscal.motor.colaboradores import (
    DocumentoStoreEmMemoria,
    DocumentoStoreProtocol,
    LogFiscalNulo,
    LogFiscalProtocol,
)
from fiscal.motor.exceptions import ItemInexistenteError
from fiscal.motor.projecao import (
    NotasSeparadas,
    classificar_nota,
    item_para_dict,
    projetar_nota,
    separar_nota,
    totais_para_dict,
)
from fiscal.motor.recalculo import exigir_regime, recalcular_item, recalcular_nota
from fiscal.motor.tipos import (
    NotaFiscal,
    ResultadoRecalculo,
    ResultadoValidacao,
    StatusNota,
    TipoItem,
    TipoNota,
)
from fiscal.motor.validador import validar_nota
from fiscal.motor.xml_autoridade import projecao_para_xml

logger = logging.getLogger("motor.fiscal")

# Tipos de alteração gravados na trilha de auditoria
LOG_RECALCULO = "recalculo"
LOG_VALIDACAO = "validacao"
LOG_GERACAO_XML = "geracao_xml"


# ---------------------------------------------------------------------------
# DTOs de saída
# ---------------------------------------------------------------------------


@dataclass
class ClassificacaoNotaResult:
    tipo: TipoNota
    itens_produto: int
    itens_servico: int


@dataclass
class ChaveAcessoResult:
    """
    Numeração + chave de uma NFC-e.

    qrcode_contingencia só vem preenchido em emissão offline (tpEmis 9).
    """

    numero: str
    serie: str
    chave_acesso: str
    tipo_emissao: str
    url_consulta: str
    qrcode_contingencia: Optional[str] = None


def resultado_validacao_para_dict(resultado: ResultadoValidacao) -> Dict[str, Any]:
    return {
        "valido": resultado.valido,
        "erros": [asdict(e) for e in resultado.erros],
        "avisos": [asdict(a) for a in resultado.avisos],
    }


# ---------------------------------------------------------------------------
# Fachada
# ---------------------------------------------------------------------------


class MotorFiscalService:
    """
    Ponto único de entrada do motor fiscal para views/hooks.

    Regras:
      - Cálculo e validação são puros (fiscal.motor); esta classe só orquestra.
      - Recálculo de item, recálculo da nota, validação e geração de XML
        gravam uma entrada no log fiscal (best-effort: falha no log não
        desfaz o cálculo e não sobe para o chamador).
      - Nota sem id também gera entrada de log (nota_id vazio).
    """

    def __init__(
        self,
        *,
        log_fiscal: LogFiscalProtocol | None = None,
        documento_store: DocumentoStoreProtocol | None = None,
        tenant_id: str | None = None,
        user_id: int | None = None,
        ambiente: str = "homologacao",
        url_consulta: str | None = None,
    ):
        self.log_fiscal: LogFiscalProtocol = log_fiscal or LogFiscalNulo()
        self.documento_store: DocumentoStoreProtocol = documento_store or DocumentoStoreEmMemoria()
        self.tenant_id = tenant_id
        self.user_id = user_id
        self.ambiente = ambiente
        self.url_consulta = url_consulta

    # ------------------------------------------------------------------
    # Log de auditoria
    # ------------------------------------------------------------------

    def _contexto(self, nota: NotaFiscal, event: str, **extra) -> Dict[str, Any]:
        context = {
            "event": event,
            "tenant_id": self.tenant_id,
            "user_id": self.user_id,
            "nota_id": nota.id,
        }
        context.update(extra)
        return context

    def _registrar_log(self, nota: NotaFiscal, tipo_alteracao: str, valor_anterior, valor_novo) -> None:
        # nota ainda sem id também entra na trilha, com nota_id vazio
        try:
            self.log_fiscal.registrar_log(nota.id or "", tipo_alteracao, valor_anterior, valor_novo)
        except Exception:
            logger.exception(
                "motor_log_falhou",
                extra=self._contexto(nota, "motor_log_falhou", tipo_alteracao=tipo_alteracao),
            )

    # ------------------------------------------------------------------
    # Recálculo
    # ------------------------------------------------------------------

    def recalcular_item(self, nota: NotaFiscal, indice: int, regime) -> ResultadoRecalculo:
        """
        Recalcula o item na posição `indice` (base 0).

        Regras:
          - Item e totais novos vêm no ResultadoRecalculo.
          - A nota recebida é marcada com precisa_validacao_fiscal=True e,
            se estava validada, volta para rascunho.
        """
        regime = exigir_regime(regime)
        if not 0 <= indice < len(nota.itens):
            raise ItemInexistenteError(f"Item {indice} não existe na nota.", indice=indice)

        item = nota.itens[indice]
        anterior = item_para_dict(item) if item.impostos is not None else None
        resultado = recalcular_item(item, nota, regime)

        # mesma regra do recálculo da nota: número mudou, precisa validar de novo
        if StatusNota(nota.status) == StatusNota.VALIDADA:
            NotaFiscalStateMachine.para_rascunho(
                nota, motivo="recalculo_item", extra_context={"tenant_id": self.tenant_id}
            )
        nota.precisa_validacao_fiscal = True

        logger.info(
            "motor_recalcular_item",
            extra=self._contexto(
                nota,
                "motor_recalcular_item",
                regime=regime.value,
                indice=indice,
                alteracoes=len(resultado.alteracoes),
            ),
        )
        self._registrar_log(
            nota,
            LOG_RECALCULO,
            anterior,
            {
                "item": item_para_dict(resultado.item),
                "alteracoes": [asdict(a) for a in resultado.alteracoes],
            },
        )
        return resultado

    def recalcular_nota(self, nota: NotaFiscal, regime) -> NotaFiscal:
        """
        Recalcula todos os itens e os totais. Devolve nova nota com
        precisa_validacao_fiscal=True.
        """
        regime = exigir_regime(regime)
        anterior = totais_para_dict(nota.totais)
        nova = recalcular_nota(nota, regime)

        logger.info(
            "motor_recalcular_nota",
            extra=self._contexto(
                nota,
                "motor_recalcular_nota",
                regime=regime.value,
                itens=len(nova.itens),
                valor_total=str(nova.totais.valor_total),
            ),
        )
        self._registrar_log(nota, LOG_RECALCULO, anterior, totais_para_dict(nova.totais))
        return nova

    # ------------------------------------------------------------------
    # Validação
    # ------------------------------------------------------------------

    def validar_nota(self, nota: NotaFiscal) -> ResultadoValidacao:
        resultado = validar_nota(nota)

        logger.info(
            "motor_validar_nota",
            extra=self._contexto(
                nota,
                "motor_validar_nota",
                valido=resultado.valido,
                erros=len(resultado.erros),
                avisos=len(resultado.avisos),
            ),
        )
        self._registrar_log(
            nota,
            LOG_VALIDACAO,
            {"status": StatusNota(nota.status).value, "precisa_validacao_fiscal": nota.precisa_validacao_fiscal},
            resultado_validacao_para_dict(resultado),
        )
        return resultado

    def finalizar_validacao(self, nota: NotaFiscal) -> ResultadoValidacao:
        """
        Valida e, se não houver erro, move a nota para "validada" e limpa
        precisa_validacao_fiscal. Com erro, a nota fica como está.
        """
        resultado = self.validar_nota(nota)
        if resultado.valido:
            NotaFiscalStateMachine.para_validada(
                nota, motivo="validacao_fiscal", extra_context={"tenant_id": self.tenant_id}
            )
            nota.precisa_validacao_fiscal = False
        return resultado

    # ------------------------------------------------------------------
    # Classificação / separação
    # ------------------------------------------------------------------

    def classificar_nota(self, nota: NotaFiscal) -> ClassificacaoNotaResult:
        return ClassificacaoNotaResult(
            tipo=classificar_nota(nota),
            itens_produto=sum(1 for i in nota.itens if i.tipo == TipoItem.PRODUTO),
            itens_servico=sum(1 for i in nota.itens if i.tipo == TipoItem.SERVICO),
        )

    def separar_nota(self, nota: NotaFiscal) -> NotasSeparadas:
        return separar_nota(nota)

    # ------------------------------------------------------------------
    # Projeção / XML
    # ------------------------------------------------------------------

    def _documentos(self, nota: NotaFiscal) -> List[NotaFiscal]:
        separadas = separar_nota(nota)
        return [doc for doc in (separadas.produtos, separadas.servicos) if doc is not None]

    def gerar_projecoes(self, nota: NotaFiscal) -> List[Dict[str, Any]]:
        """
        Uma projeção por autoridade. Nota mista vira duas (SEFAZ + município).
        """
        return [projetar_nota(doc) for doc in self._documentos(nota)]

    def gerar_xml(self, nota: NotaFiscal) -> List[str]:
        projecoes = self.gerar_projecoes(nota)
        xmls = [projecao_para_xml(p) for p in projecoes]

        logger.info(
            "motor_gerar_xml",
            extra=self._contexto(
                nota,
                "motor_gerar_xml",
                documentos=[p["tipo"] for p in projecoes],
            ),
        )
        self._registrar_log(
            nota,
            LOG_GERACAO_XML,
            None,
            {"documentos": [{"tipo": p["tipo"], "autoridade": p["autoridade"]} for p in projecoes]},
        )
        return xmls

    # ------------------------------------------------------------------
    # Numeração / chave de acesso
    # ------------------------------------------------------------------

    def gerar_chave_acesso(
        self,
        *,
        uf: str,
        cnpj_emitente: str,
        serie: str,
        data_emissao: datetime,
        valor_total=None,
        contingencia: bool = False,
        codigo_numerico: str | None = None,
        numero: str | None = None,
    ) -> ChaveAcessoResult:
        """
        Fluxo:
          1) Número já reservado pelo chamador ou, sem ele, o próximo da
             série no store (fallback 000000001).
          2) Chave de 44 dígitos (tpEmis 1 normal / 9 contingência offline).
          3) URL de consulta e, em contingência, o QR Code offline.
        """
        if not numero:
            numero = proximo_numero(self.documento_store, self.tenant_id, serie)
        tipo_emissao = TIPO_EMISSAO_CONTINGENCIA_OFFLINE if contingencia else TIPO_EMISSAO_NORMAL
        chave = gerar_chave_acesso(
            uf=uf,
            data_emissao=data_emissao,
            cnpj_emitente=cnpj_emitente,
            serie=serie,
            numero=numero,
            tipo_emissao=tipo_emissao,
            codigo_numerico=codigo_numerico,
        )

        resultado = ChaveAcessoResult(
            numero=numero,
            serie=str(serie),
            chave_acesso=chave,
            tipo_emissao=tipo_emissao,
            url_consulta=gerar_url_consulta(chave, self.ambiente, self.url_consulta),
            qrcode_contingencia=(
                gerar_qrcode_contingencia(chave, data_emissao, valor_total) if contingencia else None
            ),
        )

        logger.info(
            "motor_gerar_chave_acesso",
            extra={
                "event": "motor_gerar_chave_acesso",
                "tenant_id": self.tenant_id,
                "user_id": self.user_id,
                "serie": resultado.serie,
                "numero": resultado.numero,
                "tipo_emissao": tipo_emissao,
            },
        )
        return resultado
