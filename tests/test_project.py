# tests/test_project.py
"""
Testes da fachada de projeto (`DataPackageProject`).

Os testes asseguram que:
- `create` monta o layout convencional e grava a configuração
- `build` usa `data-raw/` como base dos scripts e injeta `project`
- o último commit pode ser consultado (versão, artefatos, manifest)
- o override local é aplicado sobre a configuração do projeto
"""

import pytest

from datapack import DataPackageProject
from datapack.core.config.model import ScriptEntry


def _write(project, name, body):
    (project.paths.raw_dir / name).write_text(body, encoding="utf-8")


def test_create_builds_conventional_layout(tmp_path):
    project = DataPackageProject.create(
        tmp_path / "pkg",
        scripts=["a.py", ScriptEntry(path="sub/b.py", enabled=False)],
        objects=["x"],
        working_root="{project}/work",
    )

    root = tmp_path / "pkg"
    for d in ("data-raw", "data", "extdata"):
        assert (root / d).is_dir()
    assert (root / "data-raw" / "a.py").exists()
    assert (root / "data-raw" / "sub" / "b.py").exists()

    config = project.load_config()
    assert config.list_scripts() == ["a.py", "sub/b.py"]
    assert config.list_scripts(enabled_only=True) == ["a.py"]
    assert config.data_version == "0.1.0"


def test_create_refuses_existing_project(tmp_path):
    DataPackageProject.create(tmp_path, scripts=["a.py"], objects=["x"])
    with pytest.raises(FileExistsError):
        DataPackageProject.create(tmp_path, scripts=["a.py"], objects=["x"])


def test_build_and_query_last_commit(tmp_path):
    project = DataPackageProject.create(tmp_path, scripts=["a.py"], objects=["x"], working_root="work")
    (project.paths.extdata_dir / "seed.txt").write_text("41", encoding="utf-8")
    _write(
        project,
        "a.py",
        "objects.write('x', int(project.path('extdata', 'seed.txt').read_text()) + 1)\n",
    )

    result = project.build()

    assert result.data_version == "0.1.0"
    assert project.data_version() == "0.1.0"
    assert project.load_artifacts() == {"x": 42}
    assert project.load_artifacts("x") == {"x": 42}
    assert project.digest().producers == {"x": "a.py"}
    assert project.last_manifest().outcome["status"] == "success"
    assert (tmp_path / "work").is_dir()


def test_build_version_argument_overrides_config(tmp_path):
    project = DataPackageProject.create(tmp_path, scripts=["a.py"], objects=["x"], working_root="work")
    _write(project, "a.py", "objects.write('x', 1)\n")

    assert project.build("2.0.0").data_version == "2.0.0"


def test_local_override_disables_script(tmp_path):
    project = DataPackageProject.create(
        tmp_path, scripts=["a.py", "b.py"], objects=["x", "y"], working_root="work"
    )
    _write(project, "a.py", "objects.write('x', 1)\n")
    _write(project, "b.py", "objects.write('y', 2)\n")
    project.build()

    project.local_config_path.write_text("files:\n  b.py:\n    enabled: false\n", encoding="utf-8")
    _write(project, "b.py", "raise RuntimeError('não deveria executar')\n")

    result = project.build()

    assert result.skipped_scripts == ["b.py"]
    assert result.committed_artifacts == {"x": 1, "y": 2}
    assert result.version_changed is False


def test_default_working_root_is_private_to_the_project(tmp_path):
    """
    Verifica que projetos com working root padrão não se bloqueiam.

    Invariantes:
        - o working root padrão fica dentro do projeto
        - o lock de outro projeto não impede o build deste
    """
    from datapack.core.engine.lock import LOCK_FILE_NAME, BuildLock

    a = DataPackageProject.create(tmp_path / "a", scripts=["s.py"], objects=["x"])
    b = DataPackageProject.create(tmp_path / "b", scripts=["s.py"], objects=["x"])
    for p in (a, b):
        _write(p, "s.py", "from pathlib import Path\nPath('here.txt').write_text('x')\nobjects.write('x', 1)\n")

    a_root = a.load_config().resolve_working_root(a.root)
    b_root = b.load_config().resolve_working_root(b.root)
    assert a_root == a.root / ".datapack" / "work"
    assert a_root != b_root

    with BuildLock(a_root / LOCK_FILE_NAME):
        assert b.build().version_changed is True

    assert (b_root / "here.txt").exists()
    assert not (a_root / "here.txt").exists()


_BUILD_IN_SUBPROCESS = """
import sys
from datapack import DataPackageProject

print(DataPackageProject(sys.argv[1]).build("0.1.0").version_changed)
"""


def test_rebuild_in_new_process_with_set_artifact_is_noop(tmp_path):
    """
    Reexecuta o mesmo build em processos com PYTHONHASHSEED distintos.

    Um artefato `set` de strings tem ordem de iteração diferente em cada
    processo; o segundo build ainda deve ser no-op (sem VersionGateError).
    """
    import os
    import subprocess
    import sys
    from pathlib import Path

    import datapack

    project = DataPackageProject.create(tmp_path, scripts=["tags.py"], objects=["tags"])
    _write(project, "tags.py", "objects.write('tags', {'alpha', 'beta', 'gamma', 'delta', 'eps'})\n")
    before = None

    src_dir = str(Path(datapack.__file__).resolve().parents[1])
    outputs = []
    for seed in ("1", "2"):
        env = dict(os.environ)
        env["PYTHONHASHSEED"] = seed
        env["PYTHONPATH"] = os.pathsep.join(p for p in (src_dir, env.get("PYTHONPATH", "")) if p)
        proc = subprocess.run(
            [sys.executable, "-c", _BUILD_IN_SUBPROCESS, str(tmp_path)],
            env=env,
            capture_output=True,
            text=True,
        )
        assert proc.returncode == 0, proc.stderr
        outputs.append(proc.stdout.strip())
        if before is None:
            before = project.digest_path.read_bytes()

    assert outputs == ["True", "False"]
    assert project.digest_path.read_bytes() == before
