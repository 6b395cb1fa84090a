# src/datapack/project.py
"""
Fachada de projeto do Datapack.

Um projeto de pacote de dados segue o layout convencional:

    <root>/
        datapack.yml                 # configuração do build
        datapack.local.yml           # override local opcional (deep-merge)
        data-raw/                    # scripts (caminhos em `files` são relativos a ele)
        data/digest.json             # digest do último commit aceito
        data/objects/                # valores dos artefatos aceitos (joblib)
        extdata/                     # arquivos auxiliares do projeto
        .datapack/build_manifest.json
        .datapack/work/              # working root padrão (um por projeto)

A fachada apenas conecta os componentes do core a esse layout; toda regra
de build vive no Orchestrator.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Union

from datapack.core.config.loader import load_config, save_config
from datapack.core.config.model import BuildConfig, ScriptEntry
from datapack.core.digest.store import DigestRecord, DigestStore
from datapack.core.engine.orchestrator import BuildOptions, BuildOrchestrator
from datapack.core.pipeline.runner import ProjectPaths
from datapack.core.pipeline.types import BuildResult
from datapack.core.traceability.manifest import BuildManifest, load_manifest
from datapack.persistence.artifact_store import ArtifactStore

CONFIG_FILENAME = "datapack.yml"
LOCAL_CONFIG_FILENAME = "datapack.local.yml"
DIGEST_FILENAME = "digest.json"
OBJECTS_DIRNAME = "objects"
STATE_DIRNAME = ".datapack"
MANIFEST_FILENAME = "build_manifest.json"
DEFAULT_WORKING_ROOT = "{project}/.datapack/work"


class DataPackageProject:
    """Projeto de pacote de dados em `root`."""

    def __init__(self, root: Union[str, Path]):
        self.paths = ProjectPaths.for_project(root)

    @property
    def root(self) -> Path:
        return self.paths.root

    @property
    def config_path(self) -> Path:
        return self.root / CONFIG_FILENAME

    @property
    def local_config_path(self) -> Path:
        return self.root / LOCAL_CONFIG_FILENAME

    @property
    def digest_path(self) -> Path:
        return self.paths.data_dir / DIGEST_FILENAME

    @property
    def manifest_path(self) -> Path:
        return self.root / STATE_DIRNAME / MANIFEST_FILENAME

    @property
    def digest_store(self) -> DigestStore:
        return DigestStore(self.digest_path)

    @property
    def artifact_store(self) -> ArtifactStore:
        return ArtifactStore(self.paths.data_dir / OBJECTS_DIRNAME)

    # ------------------------------------------------------------------
    # Criação
    # ------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        root: Union[str, Path],
        *,
        scripts: Iterable[Union[str, ScriptEntry]] = (),
        objects: Iterable[str] = (),
        working_root: str = DEFAULT_WORKING_ROOT,
        data_version: Optional[str] = "0.1.0",
    ) -> "DataPackageProject":
        """
        Cria o esqueleto de um projeto e grava a configuração inicial.

        Scripts declarados que ainda não existem em `data-raw/` são criados
        vazios. O working root padrão é `.datapack/work` dentro do projeto, de
        modo que projetos distintos não compartilham diretório nem lock. Um
        projeto já configurado em `root` não é sobrescrito.
        """
        project = cls(root)
        if project.config_path.exists():
            raise FileExistsError(str(project.config_path))

        entries = [ScriptEntry(path=s) if isinstance(s, str) else s for s in scripts]
        config = BuildConfig(
            scripts=tuple(entries),
            expected_artifacts=tuple(objects),
            working_root=working_root,
            data_version=data_version,
        )
        for d in (project.paths.raw_dir, project.paths.data_dir, project.paths.extdata_dir):
            d.mkdir(parents=True, exist_ok=True)
        for entry in entries:
            script = project.paths.raw_path(entry.path)
            if not script.exists():
                script.parent.mkdir(parents=True, exist_ok=True)
                script.touch()

        project.save_config(config)
        return project

    # ------------------------------------------------------------------
    # Configuração
    # ------------------------------------------------------------------
    def load_config(self) -> BuildConfig:
        return load_config(self.config_path, local_path=self.local_config_path)

    def save_config(self, config: BuildConfig) -> Path:
        return save_config(config, self.config_path)

    # ------------------------------------------------------------------
    # Build
    # ------------------------------------------------------------------
    def build(self, data_version: Optional[str] = None, **options: Any) -> BuildResult:
        """
        Executa um build com a configuração atual do projeto.

        `options` aceita os campos de `BuildOptions` ligados à execução
        (`cross_script_access`, `script_timeout`, `cancel_token`, `runtimes`).
        """
        build_options = BuildOptions(
            project_dir=self.root,
            data_version=data_version,
            scripts_dir=self.paths.raw_dir,
            artifact_store=self.artifact_store,
            manifest_path=self.manifest_path,
            project=self.paths,
            **options,
        )
        return BuildOrchestrator(self.load_config(), self.digest_store, build_options).run()

    # ------------------------------------------------------------------
    # Consulta do último commit
    # ------------------------------------------------------------------
    def digest(self) -> DigestRecord:
        return self.digest_store.load()

    def data_version(self) -> Optional[str]:
        return self.digest().data_version

    def load_artifacts(self, *names: str) -> Dict[str, Any]:
        """Valores dos artefatos do último commit aceito (todos, ou só `names`)."""
        return self.artifact_store.load_committed(self.digest(), names)

    def last_manifest(self) -> BuildManifest:
        return load_manifest(self.manifest_path)
