# tests/fiscal/adapters/test_adapters_django.py

from decimal import Decimal

import pytest
from django.db import transaction
from django.test.utils import override_settings

from fiscal.documento_store import DjangoDocumentoStore
from fiscal.log_fiscal import DjangoLogFiscal
from fiscal.models import DocumentoFiscalSequencia, NotaFiscalLog, TipoAlteracaoLog
from fiscal.motor.chave_acesso import NUMERO_MAXIMO, proximo_numero
from fiscal.motor.colaboradores import LogFiscalNulo
from fiscal.motor.exceptions import ArgumentoInvalidoError
from fiscal.motor.tipos import RegimeTributario
from fiscal.motor_factory import _normalize_ambiente, get_motor_fiscal


# ---------------------------------------------------------------------------
# Log fiscal
# ---------------------------------------------------------------------------

@pytest.mark.django_db
def test_django_log_fiscal_grava_linha():
    log = DjangoLogFiscal(tenant_id="t1", user_id=3)

    log.registrar_log("nota-9", TipoAlteracaoLog.RECALCULO, {"valor_total": "0.00"}, {"valor": Decimal("1.50")})

    registro = NotaFiscalLog.objects.get(nota_id="nota-9")
    assert registro.tenant_id == "t1"
    assert registro.user_id == 3
    assert registro.tipo_alteracao == "recalculo"
    assert registro.valor_anterior == {"valor_total": "0.00"}
    assert registro.valor_novo == {"valor": "1.50"}


@pytest.mark.django_db
def test_fachada_com_log_django_grava_recalculo_e_validacao(make_nota, make_produto):
    """
    Cenário:
    - Motor montado pela factory (log no banco habilitado).

    Esperado:
    - Recálculo + validação geram duas linhas em NotaFiscalLog.
    """
    motor = get_motor_fiscal(tenant_id="t1", user_id=1)

    nova = motor.recalcular_nota(make_nota([make_produto()]), RegimeTributario.LUCRO_REAL)
    motor.validar_nota(nova)

    tipos = list(NotaFiscalLog.objects.filter(nota_id="nota-1").values_list("tipo_alteracao", flat=True))
    assert sorted(tipos) == [TipoAlteracaoLog.RECALCULO, TipoAlteracaoLog.VALIDACAO]


# ---------------------------------------------------------------------------
# Sequência de numeração
# ---------------------------------------------------------------------------

@pytest.mark.django_db
def test_documento_store_sem_sequencia_devolve_none():
    store = DjangoDocumentoStore()

    assert store.ultimo_numero_da_serie("t1", "1") is None
    assert proximo_numero(store, "t1", "1") == "000000001"


@pytest.mark.django_db
def test_documento_store_reserva_numeros_em_sequencia(caplog):
    """
    Cenário:
    - Série sem sequência; três reservas seguidas.

    Esperado:
    - Sequência criada na primeira reserva; números 1, 2, 3 com 9 dígitos.
    - Leitura do store e proximo_numero enxergam o último reservado.
    """
    store = DjangoDocumentoStore()

    with caplog.at_level("INFO"):
        numeros = [store.reservar_proximo_numero("t1", "1") for _ in range(3)]

    assert numeros == ["000000001", "000000002", "000000003"]
    seq = DocumentoFiscalSequencia.objects.get(tenant_id="t1", modelo="65", serie=1)
    assert seq.numero_atual == 3
    assert store.ultimo_numero_da_serie("t1", "1") == "3"
    assert proximo_numero(store, "t1", "1") == "000000004"
    assert any(getattr(r, "event", None) == "motor_numero_reservado" for r in caplog.records)


@pytest.mark.django_db
def test_documento_store_continua_sequencia_existente():
    DocumentoFiscalSequencia.objects.create(tenant_id="t1", serie=2, numero_atual=41)

    assert DjangoDocumentoStore().reservar_proximo_numero("t1", "2") == "000000042"


@pytest.mark.django_db
def test_documento_store_isola_tenant_e_modelo():
    DjangoDocumentoStore().reservar_proximo_numero("t1", "1")

    assert DjangoDocumentoStore().ultimo_numero_da_serie("t2", "1") is None
    assert DjangoDocumentoStore(modelo="55").ultimo_numero_da_serie("t1", "1") is None
    assert DjangoDocumentoStore().reservar_proximo_numero("t2", "1") == "000000001"


@pytest.mark.django_db
def test_reserva_desfeita_quando_transacao_falha():
    store = DjangoDocumentoStore()
    store.reservar_proximo_numero("t1", "1")

    with pytest.raises(ArgumentoInvalidoError):
        with transaction.atomic():
            store.reservar_proximo_numero("t1", "1")
            raise ArgumentoInvalidoError("falha ao gerar a chave")

    assert DocumentoFiscalSequencia.objects.get(tenant_id="t1", serie=1).numero_atual == 1


@pytest.mark.django_db
def test_reserva_em_sequencia_inativa_ou_esgotada_levanta_erro():
    DocumentoFiscalSequencia.objects.create(tenant_id="t1", serie=1, numero_atual=50, ativo=False)
    DocumentoFiscalSequencia.objects.create(tenant_id="t1", serie=2, numero_atual=NUMERO_MAXIMO)

    with pytest.raises(ArgumentoInvalidoError):
        DjangoDocumentoStore().reservar_proximo_numero("t1", "1")
    with pytest.raises(ArgumentoInvalidoError):
        DjangoDocumentoStore().reservar_proximo_numero("t1", "2")


@pytest.mark.django_db
def test_sequencia_inativa_e_ignorada():
    DocumentoFiscalSequencia.objects.create(tenant_id="t1", serie=1, numero_atual=50, ativo=False)

    assert DjangoDocumentoStore().ultimo_numero_da_serie("t1", "1") is None


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "valor, esperado",
    [(None, "homologacao"), ("PROD", "producao"), ("produção", "producao"), ("qualquer", "homologacao")],
)
def test_normalize_ambiente(valor, esperado):
    assert _normalize_ambiente(valor) == esperado


@override_settings(MOTOR_FISCAL_LOG_HABILITADO=False, MOTOR_FISCAL_AMBIENTE="producao")
def test_factory_respeita_settings():
    motor = get_motor_fiscal(tenant_id="t1", user_id=1)

    assert isinstance(motor.log_fiscal, LogFiscalNulo)
    assert isinstance(motor.documento_store, DjangoDocumentoStore)
    assert motor.ambiente == "producao"
    assert motor.url_consulta == "https://www.nfce.fazenda.sp.gov.br/consulta"
