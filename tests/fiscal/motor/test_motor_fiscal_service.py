# tests/fiscal/motor/test_motor_fiscal_service.py

import xml.etree.ElementTree as ET
from datetime import datetime
from decimal import Decimal

import pytest

from fiscal.motor.chave_acesso import chave_acesso_valida
from fiscal.motor.colaboradores import (
    DocumentoStoreEmMemoria,
    LogFiscalAlwaysFail,
    LogFiscalEmMemoria,
)
from fiscal.motor.exceptions import (
    ItemInexistenteError,
    NotaNaoEditavelError,
    RegimeTributarioObrigatorioError,
)
from fiscal.motor.tipos import RegimeTributario, StatusNota, TipoNota
from fiscal.services.motor_fiscal_service import (
    LOG_GERACAO_XML,
    LOG_RECALCULO,
    LOG_VALIDACAO,
    MotorFiscalService,
)

PRESUMIDO = RegimeTributario.LUCRO_PRESUMIDO


def _eventos(caplog, event):
    return [r for r in caplog.records if getattr(r, "event", None) == event]


@pytest.fixture
def log_fiscal():
    return LogFiscalEmMemoria()


@pytest.fixture
def motor(log_fiscal):
    return MotorFiscalService(log_fiscal=log_fiscal, tenant_id="t1", user_id=7)


# ---------------------------------------------------------------------------
# Recálculo
# ---------------------------------------------------------------------------

def test_recalcular_nota_grava_log_e_evento(motor, log_fiscal, make_nota, make_produto, caplog):
    """
    Cenário:
    - Nota com id, recálculo via fachada.

    Esperado:
    - Nota nova com totais; uma entrada "recalculo" no log fiscal com
      totais antes/depois; evento motor_recalcular_nota no logger.
    """
    nota = make_nota([make_produto()])

    with caplog.at_level("INFO"):
        nova = motor.recalcular_nota(nota, PRESUMIDO)

    assert nova.totais.valor_icms == Decimal("120.00")

    assert len(log_fiscal.registros) == 1
    registro = log_fiscal.registros[0]
    assert registro.nota_id == "nota-1"
    assert registro.tipo_alteracao == LOG_RECALCULO
    assert registro.valor_anterior["valor_total"] == "0.00"
    assert registro.valor_novo["valor_total"] == "1000.00"

    eventos = _eventos(caplog, "motor_recalcular_nota")
    assert eventos
    assert eventos[0].tenant_id == "t1"
    assert eventos[0].regime == "lucro_presumido"


def test_recalcular_item_por_indice(motor, log_fiscal, make_nota, make_produto):
    nota = motor.recalcular_nota(make_nota([make_produto(), make_produto(2)]), PRESUMIDO)
    nota.itens[1].valor_unitario = Decimal("200")

    resultado = motor.recalcular_item(nota, 1, PRESUMIDO)

    assert resultado.item.valor_total == Decimal("2000")
    assert resultado.totais.valor_produtos == Decimal("3000.00")
    assert log_fiscal.registros[-1].tipo_alteracao == LOG_RECALCULO
    assert log_fiscal.registros[-1].valor_novo["alteracoes"]


def test_recalcular_item_em_nota_validada_volta_para_rascunho(motor, make_nota, make_produto):
    nota = motor.recalcular_nota(make_nota([make_produto()]), PRESUMIDO)
    motor.finalizar_validacao(nota)
    assert nota.status == StatusNota.VALIDADA

    nota.itens[0].quantidade = Decimal("2")
    resultado = motor.recalcular_item(nota, 0, PRESUMIDO)

    assert resultado.item.valor_total == Decimal("200")
    assert nota.status == StatusNota.RASCUNHO
    assert nota.precisa_validacao_fiscal is True


def test_recalcular_item_em_nota_autorizada_nao_mexe_no_status(motor, make_nota, make_produto):
    nota = make_nota([make_produto()], status=StatusNota.AUTORIZADA, precisa_validacao_fiscal=False)

    with pytest.raises(NotaNaoEditavelError):
        motor.recalcular_item(nota, 0, PRESUMIDO)

    assert nota.status == StatusNota.AUTORIZADA
    assert nota.precisa_validacao_fiscal is False


@pytest.mark.parametrize("indice", [-1, 2])
def test_recalcular_item_inexistente(indice, motor, make_nota, make_produto):
    with pytest.raises(ItemInexistenteError) as exc:
        motor.recalcular_item(make_nota([make_produto(), make_produto(2)]), indice, PRESUMIDO)

    assert exc.value.code == "FISCAL_6003"


def test_regime_obrigatorio_na_fachada(motor, make_nota, make_produto):
    with pytest.raises(RegimeTributarioObrigatorioError):
        motor.recalcular_nota(make_nota([make_produto()]), None)


def test_falha_no_log_nao_desfaz_o_calculo(make_nota, make_produto, caplog):
    """
    Cenário:
    - Colaborador de log sempre falha.

    Esperado:
    - Recálculo devolve a nota normalmente; evento motor_log_falhou registrado.
    """
    motor = MotorFiscalService(log_fiscal=LogFiscalAlwaysFail(), tenant_id="t1")

    with caplog.at_level("INFO"):
        nova = motor.recalcular_nota(make_nota([make_produto()]), PRESUMIDO)
        resultado = motor.validar_nota(nova)

    assert nova.totais.valor_icms == Decimal("120.00")
    assert resultado.valido is True
    assert len(_eventos(caplog, "motor_log_falhou")) == 2


def test_nota_sem_id_tambem_gera_log(motor, log_fiscal, make_nota, make_produto):
    """
    Cenário:
    - Nota ainda sem id passa por recálculo e validação.

    Esperado:
    - Duas entradas no log fiscal, ambas com nota_id vazio.
    """
    nova = motor.recalcular_nota(make_nota([make_produto()], id=None), PRESUMIDO)
    motor.validar_nota(nova)

    assert [r.tipo_alteracao for r in log_fiscal.registros] == [LOG_RECALCULO, LOG_VALIDACAO]
    assert {r.nota_id for r in log_fiscal.registros} == {""}


# ---------------------------------------------------------------------------
# Validação
# ---------------------------------------------------------------------------

def test_validar_nota_grava_log(motor, log_fiscal, make_nota, make_produto):
    nota = make_nota([make_produto(ncm="123")])

    resultado = motor.validar_nota(nota)

    assert resultado.valido is False
    registro = log_fiscal.registros[-1]
    assert registro.tipo_alteracao == LOG_VALIDACAO
    assert registro.valor_novo["valido"] is False
    assert any(e["campo"] == "itens[0].ncm" for e in registro.valor_novo["erros"])


def test_finalizar_validacao_move_para_validada(motor, make_nota, make_produto):
    nota = motor.recalcular_nota(make_nota([make_produto()]), PRESUMIDO)

    resultado = motor.finalizar_validacao(nota)

    assert resultado.valido is True
    assert nota.status == StatusNota.VALIDADA
    assert nota.precisa_validacao_fiscal is False


def test_finalizar_validacao_com_erro_mantem_rascunho(motor, make_nota, make_produto):
    nota = make_nota([make_produto(ncm="123")])

    resultado = motor.finalizar_validacao(nota)

    assert resultado.valido is False
    assert nota.status == StatusNota.RASCUNHO
    assert nota.precisa_validacao_fiscal is True


# ---------------------------------------------------------------------------
# Classificação / projeções / XML
# ---------------------------------------------------------------------------

def test_classificar_nota_mista(motor, make_nota, make_produto, make_servico):
    result = motor.classificar_nota(make_nota([make_produto(), make_servico(2), make_servico(3)]))

    assert result.tipo == TipoNota.MISTA
    assert (result.itens_produto, result.itens_servico) == (1, 2)


def test_gerar_projecoes_nota_mista_gera_duas(motor, make_nota, make_produto, make_servico):
    nota = motor.recalcular_nota(make_nota([make_produto(), make_servico(2)]), PRESUMIDO)

    projecoes = motor.gerar_projecoes(nota)

    assert [p["autoridade"] for p in projecoes] == ["sefaz", "municipio"]
    assert [p["cabecalho"]["modelo"] for p in projecoes] == ["55", "SE"]


def test_gerar_xml_grava_log(motor, log_fiscal, make_nota, make_produto, make_servico):
    nota = motor.recalcular_nota(make_nota([make_produto(), make_servico(2)]), PRESUMIDO)

    xmls = motor.gerar_xml(nota)

    assert [ET.fromstring(x).tag for x in xmls] == ["NFe", "EnviarLoteRpsEnvio"]
    registro = log_fiscal.registros[-1]
    assert registro.tipo_alteracao == LOG_GERACAO_XML
    assert [d["tipo"] for d in registro.valor_novo["documentos"]] == ["nfe", "nfse"]


# ---------------------------------------------------------------------------
# Chave de acesso
# ---------------------------------------------------------------------------

def test_gerar_chave_acesso_usa_store(caplog):
    store = DocumentoStoreEmMemoria(numeros={("t1", "1"): "000000009"})
    motor = MotorFiscalService(documento_store=store, tenant_id="t1")

    with caplog.at_level("INFO"):
        result = motor.gerar_chave_acesso(
            uf="SP",
            cnpj_emitente="12345678000195",
            serie="1",
            data_emissao=datetime(2024, 1, 15, 10, 30),
            codigo_numerico="12345678",
        )

    assert result.numero == "000000010"
    assert result.tipo_emissao == "1"
    assert chave_acesso_valida(result.chave_acesso)
    assert result.url_consulta.endswith(f"?p={result.chave_acesso}")
    assert result.qrcode_contingencia is None
    assert _eventos(caplog, "motor_gerar_chave_acesso")


def test_gerar_chave_acesso_contingencia():
    motor = MotorFiscalService(tenant_id="t1")

    result = motor.gerar_chave_acesso(
        uf="SP",
        cnpj_emitente="12345678000195",
        serie="1",
        data_emissao=datetime(2024, 1, 15, 10, 30),
        valor_total=Decimal("10"),
        contingencia=True,
    )

    assert result.numero == "000000001"
    assert result.tipo_emissao == "9"
    assert result.qrcode_contingencia.endswith("|10,00|CONTINGENCIA")


def test_gerar_chave_acesso_com_numero_reservado_nao_consulta_store():
    store = DocumentoStoreEmMemoria(numeros={("t1", "1"): "000000009"})
    motor = MotorFiscalService(documento_store=store, tenant_id="t1")

    result = motor.gerar_chave_acesso(
        uf="SP",
        cnpj_emitente="12345678000195",
        serie="1",
        data_emissao=datetime(2024, 1, 15, 10, 30),
        codigo_numerico="12345678",
        numero="000000001",
    )

    assert result.numero == "000000001"
    assert result.chave_acesso[25:34] == "000000001"
    assert chave_acesso_valida(result.chave_acesso)
    assert store.numeros[("t1", "1")] == "000000009"
