# src/datapack/core/__init__.py
"""
Core do Datapack.

Este pacote reúne as responsabilidades essenciais de um build versionado
de pacote de dados, independente de layout de projeto ou interface.

Componentes principais:
    - config       → modelo e carga da configuração, versão dos dados
    - pipeline     → Object Store, Script Runner, contexto e tipos do build
    - digest       → fingerprints, digest e version gate
    - engine       → orquestração do build, lock e cancelamento
    - traceability → Build Manifest e Event Log

Princípios fundamentais:
    - Nenhuma decisão silenciosa: toda falha é uma exceção tipada com payload
    - Estado aceito (digest) só muda por commit atômico

Limites explícitos:
    - Não conhece o layout convencional de projeto (ver `datapack.project`)
"""
