"""
Módulo de Fluxo de Caixa - DRE
==============================

Controle de receitas e despesas de pequenas empresas, com categorias
classificadas na taxonomia da DRE (Demonstrativo de Resultado do Exercício)
e o cálculo do demonstrativo, dos indicadores de margem e da evolução mensal.

Componentes:
- taxonomia.py: classificação de categorias nos grupos da DRE
- usuarios.py: cadastro de usuários (donos dos lançamentos)
- categorias.py: CRUD de categorias
- lancamentos.py: CRUD, listagem paginada e consultas de lançamentos
- dre.py: motor de cálculo da DRE, indicadores e evolução mensal
- relatorio.py: montagem do relatório completo por período
"""

__version__ = "1.0.0"
