# fiscal/urls.py

from django.urls import path

from fiscal.views.motor_fiscal_views import (
    chave_acesso_view,
    classificar_nota_view,
    projecao_nota_view,
    recalcular_item_view,
    recalcular_nota_view,
    validar_nota_view,
)

app_name = "fiscal"

urlpatterns = [
    # motor - recálculo
    path("motor/recalcular/", recalcular_nota_view, name="motor_recalcular"),
    path("motor/recalcular-item/", recalcular_item_view, name="motor_recalcular_item"),

    # motor - validação / classificação
    path("motor/validar/", validar_nota_view, name="motor_validar"),
    path("motor/classificar/", classificar_nota_view, name="motor_classificar"),

    # motor - projeção (JSON ou ?formato=xml)
    path("motor/projecao/", projecao_nota_view, name="motor_projecao"),

    # motor - numeração + chave de acesso NFC-e
    path("motor/chave-acesso/", chave_acesso_view, name="motor_chave_acesso"),
]
