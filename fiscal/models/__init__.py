from .documento_sequencia_models import DocumentoFiscalSequencia
from .nota_fiscal_log_models import NotaFiscalLog, TipoAlteracaoLog


__all__ = [
    "DocumentoFiscalSequencia",
    "NotaFiscalLog",
    "TipoAlteracaoLog",
]
