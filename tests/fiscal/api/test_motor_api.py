# tests/fiscal/api/test_motor_api.py

import xml.etree.ElementTree as ET

import pytest
from django.urls import reverse
from rest_framework.test import APIClient

from fiscal.models import DocumentoFiscalSequencia, NotaFiscalLog, TipoAlteracaoLog
from fiscal.serializers import NotaFiscalSerializer

TENANT_ID = "12345678000191"


def _eventos(caplog, event):
    return [r for r in caplog.records if getattr(r, "event", None) == event]


def _pessoa(cpf_cnpj, uf, codigo_municipio):
    return {
        "cpf_cnpj": cpf_cnpj,
        "razao_social": f"Empresa {uf}",
        "inscricao_estadual": "123456789012",
        "inscricao_municipal": "12345",
        "endereco": {
            "logradouro": "Rua Teste",
            "numero": "100",
            "bairro": "Centro",
            "municipio": "Municipio",
            "codigo_municipio": codigo_municipio,
            "uf": uf,
            "cep": "01001000",
        },
    }


def _produto(numero_item=1, **overrides):
    item = {
        "numero_item": numero_item,
        "tipo": "produto",
        "codigo": f"P{numero_item:03d}",
        "descricao": "Notebook",
        "quantidade": "10",
        "valor_unitario": "100.00",
        "ncm": "84713012",
        "cfop": "6102",
    }
    item.update(overrides)
    return item


def _servico(numero_item=1, **overrides):
    item = {
        "numero_item": numero_item,
        "tipo": "servico",
        "codigo": f"S{numero_item:03d}",
        "descricao": "Manutenção",
        "quantidade": "1",
        "valor_unitario": "500.00",
        "codigo_servico": "1401",
    }
    item.update(overrides)
    return item


def _nota(itens, **overrides):
    nota = {
        "id": "nota-api-1",
        "tipo_operacao": "saida",
        "numero": "1",
        "serie": "1",
        "data_emissao": "2024-01-15T10:30:00-03:00",
        "natureza_operacao": "Venda de mercadoria",
        "emitente": _pessoa("12345678000195", "SP", "3550308"),
        "destinatario": _pessoa("98765432000110", "RJ", "3304557"),
        "itens": itens,
    }
    nota.update(overrides)
    return nota


# ---------------------------------------------------------------------------
# Recálculo
# ---------------------------------------------------------------------------

@pytest.mark.django_db
def test_recalcular_nota_sucesso(api_client, caplog):
    """
    Cenário:
    - Nota SP -> RJ, 10 x 100,00, lucro presumido.

    Esperado:
    - 200 com ICMS interestadual 12% (120,00) e total 1000,00.
    - Linha de recálculo em NotaFiscalLog para o tenant do header.
    - Evento motor_api_recalcular_nota com outcome=success.
    """
    url = reverse("fiscal:motor_recalcular")
    payload = {"nota": _nota([_produto()]), "regime": "lucro_presumido"}

    with caplog.at_level("INFO"):
        resp = api_client.post(url, payload, format="json")

    assert resp.status_code == 200, resp.content
    body = resp.json()
    assert body["totais"]["valor_icms"] == "120.00"
    assert body["totais"]["valor_total"] == "1000.00"
    assert body["regime_tributario"] == "lucro_presumido"
    assert body["tipo"] == "nfe"
    assert body["itens"][0]["impostos"]["icms"]["valor"] == "120.00"

    registro = NotaFiscalLog.objects.get(nota_id="nota-api-1")
    assert registro.tenant_id == TENANT_ID
    assert registro.tipo_alteracao == TipoAlteracaoLog.RECALCULO

    eventos = _eventos(caplog, "motor_api_recalcular_nota")
    assert eventos
    assert eventos[0].outcome == "success"


@pytest.mark.django_db
def test_resposta_do_recalculo_pode_ser_reenviada(api_client):
    """
    Cenário:
    - Item com CST de ICMS escolhido pelo usuário (40).
    - Resposta do recálculo é reenviada como a nota da próxima edição.

    Esperado:
    - Resposta valida no NotaFiscalSerializer (partes incluídas).
    - Escolha manual volta na resposta e sobrevive ao segundo recálculo.
    """
    url = reverse("fiscal:motor_recalcular")
    nota = _nota([_produto(classificacao_override={"cst_icms": "40"})])

    resp = api_client.post(url, {"nota": nota, "regime": "lucro_presumido"}, format="json")

    assert resp.status_code == 200, resp.content
    body = resp.json()
    assert body["emitente"]["cpf_cnpj"] == "12345678000195"
    assert body["destinatario"]["endereco"]["uf"] == "RJ"
    assert body["itens"][0]["classificacao_override"]["cst_icms"] == "40"
    assert body["itens"][0]["impostos"]["icms"]["cst"] == "40"

    ser = NotaFiscalSerializer(data=body)
    assert ser.is_valid(), ser.errors

    resp2 = api_client.post(url, {"nota": body, "regime": "lucro_presumido"}, format="json")

    assert resp2.status_code == 200, resp2.content
    item = resp2.json()["itens"][0]
    assert item["classificacao_override"]["cst_icms"] == "40"
    assert item["impostos"]["icms"]["cst"] == "40"


@pytest.mark.django_db
def test_recalcular_nota_sem_regime_retorna_400(api_client):
    url = reverse("fiscal:motor_recalcular")

    resp = api_client.post(url, {"nota": _nota([_produto()])}, format="json")

    assert resp.status_code == 400
    assert "regime" in resp.json()


@pytest.mark.django_db
def test_recalcular_nota_sem_autenticacao_retorna_401():
    url = reverse("fiscal:motor_recalcular")

    resp = APIClient().post(url, {"nota": _nota([_produto()]), "regime": "lucro_real"}, format="json")

    assert resp.status_code == 401


@pytest.mark.django_db
def test_recalcular_nota_autorizada_retorna_400(api_client, caplog):
    url = reverse("fiscal:motor_recalcular")
    payload = {"nota": _nota([_produto()], status="autorizada"), "regime": "lucro_real"}

    with caplog.at_level("INFO"):
        resp = api_client.post(url, payload, format="json")

    assert resp.status_code == 400
    assert resp.json()["code"] == "FISCAL_6006"
    eventos = _eventos(caplog, "motor_api_recalcular_nota")
    assert eventos and eventos[0].outcome == "rejected"


@pytest.mark.django_db
def test_recalcular_item_sucesso(api_client):
    url = reverse("fiscal:motor_recalcular_item")
    payload = {
        "nota": _nota([_produto(), _produto(2, valor_unitario="200.00")]),
        "regime": "lucro_real",
        "indice": 1,
    }

    resp = api_client.post(url, payload, format="json")

    assert resp.status_code == 200, resp.content
    body = resp.json()
    assert body["item"]["valor_total"] == "2000.00"
    assert body["totais"]["valor_produtos"] == "3000.00"
    assert any(a["campo"] == "valor_total" for a in body["alteracoes"])


@pytest.mark.django_db
def test_recalcular_item_em_nota_validada_volta_para_rascunho(api_client):
    url = reverse("fiscal:motor_recalcular_item")
    payload = {
        "nota": _nota([_produto()], status="validada", precisa_validacao_fiscal=False),
        "regime": "lucro_presumido",
        "indice": 0,
    }

    resp = api_client.post(url, payload, format="json")

    assert resp.status_code == 200, resp.content
    body = resp.json()
    assert body["status"] == "rascunho"
    assert body["precisa_validacao_fiscal"] is True


@pytest.mark.django_db
def test_recalcular_item_inexistente_retorna_404(api_client):
    url = reverse("fiscal:motor_recalcular_item")
    payload = {"nota": _nota([_produto()]), "regime": "lucro_real", "indice": 5}

    resp = api_client.post(url, payload, format="json")

    assert resp.status_code == 404
    assert resp.json()["code"] == "FISCAL_6003"


# ---------------------------------------------------------------------------
# Validação / classificação
# ---------------------------------------------------------------------------

@pytest.mark.django_db
def test_validar_nota_com_ncm_invalido(api_client):
    """
    Cenário:
    - Produto com NCM de 3 dígitos.

    Esperado:
    - 200 (dado inválido não é exceção) com valido=false e erro em itens[0].ncm.
    """
    url = reverse("fiscal:motor_validar")

    resp = api_client.post(url, {"nota": _nota([_produto(ncm="123")])}, format="json")

    assert resp.status_code == 200
    body = resp.json()
    assert body["valido"] is False
    assert any(e["campo"] == "itens[0].ncm" for e in body["erros"])


@pytest.mark.django_db
def test_validar_nota_com_regime_calcula_antes(api_client):
    url = reverse("fiscal:motor_validar")
    payload = {
        "nota": _nota([_produto()], totais={"valor_produtos": "1000.00", "valor_total": "1000.00"}),
        "regime": "lucro_presumido",
    }

    resp = api_client.post(url, payload, format="json")

    assert resp.status_code == 200
    assert resp.json()["valido"] is True


@pytest.mark.django_db
def test_classificar_nota_mista(api_client):
    url = reverse("fiscal:motor_classificar")
    payload = {"nota": _nota([_produto(), _servico(2), _servico(3)])}

    resp = api_client.post(url, payload, format="json")

    assert resp.status_code == 200
    assert resp.json() == {"tipo": "mista", "itens_produto": 1, "itens_servico": 2}


# ---------------------------------------------------------------------------
# Projeção / XML
# ---------------------------------------------------------------------------

@pytest.mark.django_db
def test_projecao_json_nota_mista(api_client):
    url = reverse("fiscal:motor_projecao")
    payload = {"nota": _nota([_produto(), _servico(2)]), "regime": "lucro_presumido"}

    resp = api_client.post(url, payload, format="json")

    assert resp.status_code == 200, resp.content
    projecoes = resp.json()["projecoes"]
    assert [p["autoridade"] for p in projecoes] == ["sefaz", "municipio"]


@pytest.mark.django_db
def test_projecao_xml_nota_mista(api_client):
    url = reverse("fiscal:motor_projecao") + "?formato=xml"
    payload = {"nota": _nota([_produto(), _servico(2)]), "regime": "lucro_presumido"}

    resp = api_client.post(url, payload, format="json")

    assert resp.status_code == 200, resp.content
    xmls = resp.json()["xml"]
    assert [ET.fromstring(x).tag for x in xmls] == ["NFe", "EnviarLoteRpsEnvio"]


@pytest.mark.django_db
def test_projecao_formato_invalido_retorna_400(api_client):
    url = reverse("fiscal:motor_projecao") + "?formato=pdf"

    resp = api_client.post(url, {"nota": _nota([_produto()])}, format="json")

    assert resp.status_code == 400
    assert "formato" in resp.json()


@pytest.mark.django_db
def test_projecao_nota_sem_itens_retorna_400(api_client):
    url = reverse("fiscal:motor_projecao")

    resp = api_client.post(url, {"nota": _nota([])}, format="json")

    assert resp.status_code == 400
    assert resp.json()["code"] == "FISCAL_6002"


# ---------------------------------------------------------------------------
# Chave de acesso
# ---------------------------------------------------------------------------

@pytest.mark.django_db
def test_chave_acesso_numera_sequencialmente(api_client, caplog):
    """
    Cenário:
    - Duas chamadas seguidas para a mesma série, sem sequência prévia.

    Esperado:
    - Primeira usa 000000001 (chave conhecida com cNF fixo); segunda usa 000000002.
    - Sequência do tenant fica em 2.
    """
    url = reverse("fiscal:motor_chave_acesso")
    payload = {
        "uf": "SP",
        "cnpj_emitente": "12345678000195",
        "data_emissao": "2024-01-15T10:30:00-03:00",
        "codigo_numerico": "12345678",
    }

    with caplog.at_level("INFO"):
        primeira = api_client.post(url, payload, format="json")
    segunda = api_client.post(url, payload, format="json")

    assert primeira.status_code == 200, primeira.content
    body = primeira.json()
    assert body["numero"] == "000000001"
    assert body["serie"] == "1"
    assert body["tipo_emissao"] == "1"
    assert body["chave_acesso"] == "35240112345678000195650010000000011123456781"
    assert body["qrcode_contingencia"] is None

    assert segunda.status_code == 200
    assert segunda.json()["numero"] == "000000002"

    seq = DocumentoFiscalSequencia.objects.get(tenant_id=TENANT_ID, modelo="65", serie=1)
    assert seq.numero_atual == 2
    assert _eventos(caplog, "motor_api_chave_acesso")


@pytest.mark.django_db
def test_chave_acesso_contingencia(api_client):
    url = reverse("fiscal:motor_chave_acesso")
    payload = {
        "uf": "SP",
        "cnpj_emitente": "12345678000195",
        "serie": "2",
        "data_emissao": "2024-01-15T10:30:00-03:00",
        "valor_total": "10.00",
        "contingencia": True,
    }

    resp = api_client.post(url, payload, format="json")

    assert resp.status_code == 200, resp.content
    body = resp.json()
    assert body["serie"] == "2"
    assert body["tipo_emissao"] == "9"
    assert body["qrcode_contingencia"]


@pytest.mark.django_db
def test_chave_acesso_sem_tenant_retorna_400(user):
    client = APIClient()
    client.force_authenticate(user=user)
    url = reverse("fiscal:motor_chave_acesso")

    resp = client.post(
        url,
        {"uf": "SP", "cnpj_emitente": "12345678000195", "data_emissao": "2024-01-15T10:30:00-03:00"},
        format="json",
    )

    assert resp.status_code == 400
    assert "tenant_id" in resp.json()
    assert not DocumentoFiscalSequencia.objects.exists()


@pytest.mark.django_db
def test_chave_acesso_uf_desconhecida_retorna_400(api_client):
    url = reverse("fiscal:motor_chave_acesso")
    payload = {"uf": "XX", "cnpj_emitente": "12345678000195", "data_emissao": "2024-01-15T10:30:00-03:00"}

    resp = api_client.post(url, payload, format="json")

    assert resp.status_code == 400
    assert "code" in resp.json()
    # número reservado volta junto com o rollback
    assert not DocumentoFiscalSequencia.objects.exists()


# ---------------------------------------------------------------------------
# Middleware de log de request
# ---------------------------------------------------------------------------

@pytest.mark.django_db
def test_request_id_do_cliente_volta_no_header(api_client, caplog):
    url = reverse("fiscal:motor_classificar")

    with caplog.at_level("INFO", logger="django.request"):
        resp = api_client.post(
            url,
            {"nota": _nota([_produto()])},
            format="json",
            HTTP_X_REQUEST_ID="req-123",
        )

    assert resp.status_code == 200
    assert resp["X-Request-ID"] == "req-123"
    eventos = _eventos(caplog, "http_request")
    assert eventos
    assert eventos[0].tenant_id == TENANT_ID
    assert eventos[0].status == 200


@pytest.mark.django_db
def test_request_id_gerado_quando_ausente(api_client):
    resp = api_client.post(reverse("fiscal:motor_classificar"), {"nota": _nota([_produto()])}, format="json")

    assert resp.status_code == 200
    assert len(resp["X-Request-ID"]) == 36
