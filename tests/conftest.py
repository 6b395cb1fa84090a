# tests/conftest.py
"""
Fixtures compartilhados para testes do Datapack.

Este módulo define fixtures reutilizáveis que fornecem:
- documentos de configuração mínimos e determinísticos (YAML)
- um ambiente de build isolado em `tmp_path` (scripts, digest, working root)
- um BuildContext controlado

Decisões arquiteturais:
    - Scripts de processamento são escritos como arquivos reais em `tmp_path`
      e executados pelo Script Runner de verdade (sem mocks)
    - Imports do core são realizados de forma lazy para melhorar
      a clareza de erros durante falhas
    - O working root de cada teste fica dentro de `tmp_path`

Invariantes:
    - Nenhuma fixture escreve fora de `tmp_path`
    - Nenhuma fixture depende de estado global ou variáveis de ambiente

Limites explícitos:
    - Não substituir testes de integração (ver tests/e2e)
    - Não conter lógica de domínio
"""

import textwrap
from datetime import datetime, timezone
from pathlib import Path

import pytest


# =====================================================
# Config fixtures
# =====================================================

@pytest.fixture
def project_like_config_yaml() -> str:
    """
    YAML de configuração semelhante ao uso real de um projeto.

    Dois scripts em ordem de build, dois artefatos esperados, working root
    temporário e versão dos dados declarada como string.
    """
    return """\
files:
  cars.py:
    enabled: true
  summary.py:
    enabled: true
objects:
  - cars_over_20
  - mpg_summary
workingRoot: "{tmp}"
dataVersion: "0.1.0"
"""


@pytest.fixture
def project_like_config_local_yaml() -> str:
    """Override local: desabilita um script e troca o working root."""
    return """\
files:
  summary.py:
    enabled: false
workingRoot: "{project}/work"
"""


# =====================================================
# Build fixtures
# =====================================================

class BuildEnv:
    """
    Ambiente de build isolado.

    Layout (relativo a `root`):
        scripts/            # scripts de processamento
        data/digest.json    # digest
        data/objects/       # blobs de artefatos (padrão do Orchestrator)
        work/               # working root
        .datapack/build_manifest.json
    """

    def __init__(self, root: Path):
        self.root = root
        self.scripts_dir = root / "scripts"
        self.scripts_dir.mkdir(parents=True, exist_ok=True)
        self.digest_path = root / "data" / "digest.json"
        self.working_root = root / "work"
        self.manifest_path = root / ".datapack" / "build_manifest.json"

    def script(self, name: str, body: str) -> str:
        path = self.scripts_dir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(body), encoding="utf-8")
        return name

    def config(self, scripts, objects, **kwargs):
        from datapack.core.config.model import BuildConfig, ScriptEntry

        entries = tuple(ScriptEntry(path=s) if isinstance(s, str) else s for s in scripts)
        kwargs.setdefault("working_root", str(self.working_root))
        return BuildConfig(scripts=entries, expected_artifacts=tuple(objects), **kwargs)

    @property
    def digest_store(self):
        from datapack.core.digest.store import DigestStore

        return DigestStore(self.digest_path)

    def options(self, **kwargs):
        from datapack.core.engine.orchestrator import BuildOptions

        kwargs.setdefault("project_dir", self.root)
        kwargs.setdefault("scripts_dir", self.scripts_dir)
        kwargs.setdefault("manifest_path", self.manifest_path)
        return BuildOptions(**kwargs)

    def build(self, config, data_version=None, **kwargs):
        from datapack.core.engine.orchestrator import BuildOrchestrator

        options = self.options(data_version=data_version, **kwargs)
        return BuildOrchestrator(config, self.digest_store, options).run()

    def digest_bytes(self):
        return self.digest_path.read_bytes() if self.digest_path.exists() else None


@pytest.fixture
def build_env(tmp_path) -> BuildEnv:
    """Ambiente de build isolado em `tmp_path`."""
    return BuildEnv(tmp_path)


@pytest.fixture
def dummy_build_config():
    """BuildConfig mínimo: um script, um artefato, working root temporário."""
    from datapack.core.config.model import BuildConfig, ScriptEntry

    return BuildConfig(
        scripts=(ScriptEntry(path="a.py"),),
        expected_artifacts=("a_obj",),
        working_root="{tmp}",
        data_version="0.1.0",
    )


@pytest.fixture
def dummy_ctx(dummy_build_config, tmp_path):
    """BuildContext determinístico para testes."""
    from datapack.core.pipeline.context import BuildContext

    return BuildContext(
        build_id="build-test-001",
        created_at=datetime(2026, 1, 16, 0, 0, 0, tzinfo=timezone.utc),
        config=dummy_build_config,
        project_dir=tmp_path,
        working_root=tmp_path / "work",
        meta={"source": "pytest"},
    )
