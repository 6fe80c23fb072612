# fiscal/motor/__init__.py
"""
Motor fiscal puro: catálogo de regras, calculadoras, recálculo,
validação, chave de acesso e projeção para a autoridade.

Nada aqui importa Django; a fachada em fiscal.services.motor_fiscal_service
é quem fala com log/banco.
"""
