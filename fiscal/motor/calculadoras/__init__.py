# fiscal/motor/calculadoras/__init__.py
from __future__ import annotations

from .icms import calcular_icms
from .ipi import calcular_ipi
from .iss import calcular_iss
from .pis_cofins import calcular_pis_cofins

__all__ = [
    "calcular_icms",
    "calcular_ipi",
    "calcular_iss",
    "calcular_pis_cofins",
]
