# conftest.py (na raiz do projeto)

import logging
from datetime import datetime
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from fiscal.motor.tipos import (
    DadosFiscaisPessoa,
    Endereco,
    ItemNotaFiscal,
    NotaFiscal,
    TipoItem,
    TipoOperacao,
)


logger = logging.getLogger(__name__)

TENANT_ID = "12345678000191"

CNPJ_EMITENTE = "12345678000195"
CNPJ_DESTINATARIO = "98765432000110"

COD_MUNICIPIO_SAO_PAULO = "3550308"
COD_MUNICIPIO_RIO = "3304557"


# =============================================================================
# PARTES (emitente / destinatário)
# =============================================================================

def _pessoa(cpf_cnpj, razao_social, uf, municipio, codigo_municipio, ie="123456789012"):
    return DadosFiscaisPessoa(
        cpf_cnpj=cpf_cnpj,
        razao_social=razao_social,
        inscricao_estadual=ie,
        inscricao_municipal="12345",
        endereco=Endereco(
            logradouro="Rua Teste",
            numero="100",
            bairro="Centro",
            municipio=municipio,
            codigo_municipio=codigo_municipio,
            uf=uf,
            cep="01001000",
        ),
    )


@pytest.fixture
def emitente_sp():
    return _pessoa(CNPJ_EMITENTE, "Empresa Emitente LTDA", "SP", "São Paulo", COD_MUNICIPIO_SAO_PAULO)


@pytest.fixture
def destinatario_rj():
    return _pessoa(CNPJ_DESTINATARIO, "Cliente Destino LTDA", "RJ", "Rio de Janeiro", COD_MUNICIPIO_RIO)


@pytest.fixture
def destinatario_sp():
    return _pessoa(CNPJ_DESTINATARIO, "Cliente Local LTDA", "SP", "São Paulo", COD_MUNICIPIO_SAO_PAULO)


# =============================================================================
# ITENS / NOTA
# =============================================================================

@pytest.fixture
def make_produto():
    """
    Factory de item de produto. Padrão: 10 x 100,00, NCM 8 dígitos,
    CFOP de saída interestadual.
    """
    def _make(numero_item=1, **overrides):
        dados = {
            "numero_item": numero_item,
            "tipo": TipoItem.PRODUTO,
            "codigo": f"P{numero_item:03d}",
            "descricao": f"Produto {numero_item}",
            "quantidade": Decimal("10"),
            "valor_unitario": Decimal("100.00"),
            "ncm": "84713012",
            "cfop": "6102",
        }
        dados.update(overrides)
        return ItemNotaFiscal(**dados)

    return _make


@pytest.fixture
def make_servico():
    def _make(numero_item=1, **overrides):
        dados = {
            "numero_item": numero_item,
            "tipo": TipoItem.SERVICO,
            "codigo": f"S{numero_item:03d}",
            "descricao": f"Serviço {numero_item}",
            "quantidade": Decimal("1"),
            "valor_unitario": Decimal("500.00"),
            "codigo_servico": "1401",
        }
        dados.update(overrides)
        return ItemNotaFiscal(**dados)

    return _make


@pytest.fixture
def make_nota(emitente_sp, destinatario_rj):
    """
    Factory de NotaFiscal de saída SP -> RJ com cabeçalho completo.
    """
    def _make(itens=None, **overrides):
        dados = {
            "id": "nota-1",
            "tipo_operacao": TipoOperacao.SAIDA,
            "emitente": emitente_sp,
            "destinatario": destinatario_rj,
            "itens": list(itens or []),
            "numero": "1",
            "serie": "1",
            "data_emissao": datetime(2024, 1, 15, 10, 30, 0),
            "natureza_operacao": "Venda de mercadoria",
        }
        dados.update(overrides)
        return NotaFiscal(**dados)

    return _make


# =============================================================================
# API
# =============================================================================

@pytest.fixture
def user(db):
    User = get_user_model()
    return User.objects.create_user(username="operador", password="senha-teste")


@pytest.fixture
def api_client(user):
    client = APIClient()
    client.force_authenticate(user=user)
    client.credentials(HTTP_X_TENANT_ID=TENANT_ID)
    return client
