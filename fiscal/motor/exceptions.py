# fiscal/motor/exceptions.py
"""
Erros de contrato do motor fiscal.

Só levantamos exceção quando o chamador usou o motor errado (sem regime,
nota sem itens, índice inexistente...). Problema de dado do usuário vira
ErroValidacao/AvisoValidacao, nunca exceção.
"""


class MotorFiscalError(Exception):
    """
    Base dos erros do motor.
    """

    code = "FISCAL_6000"

    def __init__(self, mensagem: str, *, code: str | None = None):
        self.mensagem = mensagem
        if code:
            self.code = code
        super().__init__(mensagem)


class RegimeTributarioObrigatorioError(MotorFiscalError):
    code = "FISCAL_6001"

    def __init__(self, mensagem: str = "Regime tributário é obrigatório."):
        super().__init__(mensagem)


class NotaSemItensError(MotorFiscalError):
    code = "FISCAL_6002"

    def __init__(self, mensagem: str = "Nota fiscal sem itens."):
        super().__init__(mensagem)


class ItemInexistenteError(MotorFiscalError):
    code = "FISCAL_6003"

    def __init__(self, mensagem: str, indice=None):
        self.indice = indice
        super().__init__(mensagem)


class ArgumentoInvalidoError(MotorFiscalError):
    code = "FISCAL_6004"


class TransicaoStatusInvalidaError(MotorFiscalError):
    code = "FISCAL_6005"

    def __init__(self, mensagem: str, status_atual=None, status_novo=None):
        self.status_atual = status_atual
        self.status_novo = status_novo
        super().__init__(mensagem)


class NotaNaoEditavelError(MotorFiscalError):
    """
    Nota já saiu de rascunho/validada: números não podem mais mudar.
    """

    code = "FISCAL_6006"

    def __init__(self, mensagem: str, status=None):
        self.status = status
        super().__init__(mensagem)
