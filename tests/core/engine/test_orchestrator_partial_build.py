# tests/core/engine/test_orchestrator_partial_build.py
"""
Testes de builds parciais (scripts desabilitados).

Um script desabilitado não executa; os artefatos que ele produziu no último
commit aceito são levados adiante (valor e fingerprint) a partir do
Artifact Store.

Os testes asseguram que:
- artefatos de scripts desabilitados permanecem no build
- o fingerprint levado adiante é o do commit anterior
- scripts habilitados ainda podem mudar outros artefatos (com bump)
- sem commit anterior ou sem blob, o artefato é dado como ausente
"""

import pytest

from datapack.core.exceptions import MissingArtifactError
from datapack.core.pipeline.types import ScriptStatus
from datapack.core.traceability.manifest import load_manifest


def _scripts(build_env, a_value=1):
    build_env.script("a.py", f"objects.write('a_obj', {a_value})\n")
    build_env.script(
        "b.py",
        """
        from pathlib import Path

        Path("b_ran.txt").write_text("yes")
        objects.write("b_obj", {"rows": [1, 2, 3]})
        """,
    )
    return build_env.config(["a.py", "b.py"], ["a_obj", "b_obj"])


def test_disabled_script_artifacts_are_carried_forward(build_env):
    """
    Verifica que desabilitar um script preserva seus artefatos.

    Invariantes:
        - o script desabilitado não executa (status SKIPPED)
        - o artefato levado adiante mantém valor e fingerprint
        - sem mudança de conteúdo o build é no-op
    """
    config = _scripts(build_env)
    first = build_env.build(config, data_version="0.1.0")
    (build_env.working_root / "b_ran.txt").unlink()

    result = build_env.build(config.disable("b.py"), data_version="0.1.0")

    assert not (build_env.working_root / "b_ran.txt").exists()
    assert result.scripts["b.py"].status == ScriptStatus.SKIPPED
    assert result.skipped_scripts == ["b.py"]
    assert result.carried_artifacts == ["b_obj"]
    assert result.committed_artifacts == {"a_obj": 1, "b_obj": {"rows": [1, 2, 3]}}
    assert result.fingerprints == first.fingerprints
    assert result.version_changed is False

    manifest = load_manifest(build_env.manifest_path)
    assert "script_skipped" in manifest.event_types()
    assert "artifacts_carried" in manifest.event_types()
    assert manifest.scripts["b.py"]["status"] == "skipped"


def test_partial_build_can_commit_other_changes(build_env):
    config = _scripts(build_env)
    first = build_env.build(config, data_version="0.1.0")

    _scripts(build_env, a_value=2)
    result = build_env.build(config.disable("b.py"), data_version="0.2.0")

    assert result.version_changed is True
    assert result.changed_artifacts == ["a_obj"]
    assert result.fingerprints["b_obj"] == first.fingerprints["b_obj"]

    digest = build_env.digest_store.load()
    assert digest.producers == {"a_obj": "a.py", "b_obj": "b.py"}
    assert digest.fingerprints["b_obj"] == first.fingerprints["b_obj"]

    again = build_env.build(config.disable("b.py"), data_version="0.2.0")
    assert again.committed_artifacts["b_obj"] == {"rows": [1, 2, 3]}
    assert again.carried_artifacts == ["b_obj"]


def test_disabled_script_without_previous_commit_is_missing(build_env):
    config = _scripts(build_env).disable("b.py")

    with pytest.raises(MissingArtifactError) as exc:
        build_env.build(config, data_version="0.1.0")

    assert exc.value.names == ["b_obj"]
    assert not build_env.digest_path.exists()


def test_carried_artifact_without_blob_is_missing(build_env):
    import shutil

    config = _scripts(build_env)
    build_env.build(config, data_version="0.1.0")
    digest_before = build_env.digest_bytes()
    shutil.rmtree(build_env.digest_path.parent / "objects")

    with pytest.raises(MissingArtifactError) as exc:
        build_env.build(config.disable("b.py"), data_version="0.1.0")

    assert exc.value.names == ["b_obj"]
    assert build_env.digest_bytes() == digest_before


def test_enabled_script_that_stops_writing_is_missing(build_env):
    config = _scripts(build_env)
    build_env.build(config, data_version="0.1.0")

    build_env.script("b.py", "pass\n")
    with pytest.raises(MissingArtifactError) as exc:
        build_env.build(config, data_version="0.2.0")
    assert exc.value.names == ["b_obj"]
