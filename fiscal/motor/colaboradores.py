# fiscal/motor/colaboradores.py
"""
Contratos dos colaboradores externos do motor fiscal.

- LogFiscalProtocol: trilha de auditoria (recálculo, validação, geração).
- DocumentoStoreProtocol: leitura do último número usado por série.

Implementações em memória servem para desenvolvimento e testes; as
versões com banco ficam em fiscal.log_fiscal e fiscal.documento_store.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Tuple


# ---------------------------------------------------------------------------
# Contratos
# ---------------------------------------------------------------------------


class LogFiscalProtocol(Protocol):
    def registrar_log(
        self,
        nota_id: str,
        tipo_alteracao: str,
        valor_anterior: Any,
        valor_novo: Any,
    ) -> None:
        ...


class DocumentoStoreProtocol(Protocol):
    def ultimo_numero_da_serie(self, tenant_id: str, serie: str) -> Optional[str]:
        ...


# ---------------------------------------------------------------------------
# Implementações simples
# ---------------------------------------------------------------------------


class LogFiscalNulo:
    """Descarta tudo. Usado quando o log de auditoria está desligado."""

    def registrar_log(self, nota_id, tipo_alteracao, valor_anterior, valor_novo) -> None:
        return None


@dataclass
class RegistroLogFiscal:
    nota_id: str
    tipo_alteracao: str
    valor_anterior: Any
    valor_novo: Any


@dataclass
class LogFiscalEmMemoria:
    registros: List[RegistroLogFiscal] = field(default_factory=list)

    def registrar_log(self, nota_id, tipo_alteracao, valor_anterior, valor_novo) -> None:
        self.registros.append(
            RegistroLogFiscal(
                nota_id=nota_id,
                tipo_alteracao=tipo_alteracao,
                valor_anterior=valor_anterior,
                valor_novo=valor_novo,
            )
        )


class LogFiscalAlwaysFail:
    """Simula falha do colaborador de log (cenários de log best-effort)."""

    def registrar_log(self, nota_id, tipo_alteracao, valor_anterior, valor_novo) -> None:
        raise RuntimeError("Falha simulada ao gravar log fiscal.")


@dataclass
class DocumentoStoreEmMemoria:
    """
    Último número por (tenant, série).
    """
    numeros: Dict[Tuple[str, str], str] = field(default_factory=dict)

    def ultimo_numero_da_serie(self, tenant_id: str, serie: str) -> Optional[str]:
        return self.numeros.get((str(tenant_id), str(serie)))
