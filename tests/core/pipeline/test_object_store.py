# tests/core/pipeline/test_object_store.py
"""
Testes do Object Store.

Este módulo valida o canal de troca de artefatos entre scripts:
- escrita restrita a nomes declarados
- um dono por artefato (o próprio dono pode reescrever)
- leitura só do que já foi escrito
- modo isolado (toda leitura falha)
- coleta final com valores levados adiante

Invariantes:
    - Toda violação é uma exceção tipada com payload serializável
    - O store nunca cria artefatos implicitamente
"""

import pytest

from datapack.core.exceptions import (
    AccessDisabledError,
    ArtifactNotFoundError,
    DuplicateArtifactError,
    MissingArtifactError,
    UndeclaredArtifactError,
)
from datapack.core.pipeline.objects import ObjectStore


def _store(**kwargs):
    return ObjectStore(expected=("x", "y", "z"), **kwargs)


def test_write_then_read_within_build():
    store = _store()
    with store.scope("a.py"):
        store.write("x", [1, 2])
    with store.scope("b.py"):
        assert store.read("x") == [1, 2]

    assert store.has("x")
    assert "x" in store
    assert "y" not in store
    assert store.owner("x") == "a.py"
    assert store.names() == ["x"]
    assert store.written_by("a.py") == ["x"]
    assert store.written_by("b.py") == []


def test_scope_is_restored_after_exit():
    store = _store()
    assert store.current_script is None
    with store.scope("a.py"):
        assert store.current_script == "a.py"
        with store.scope("b.py"):
            assert store.current_script == "b.py"
        assert store.current_script == "a.py"
    assert store.current_script is None


def test_owner_may_overwrite_but_other_script_may_not():
    """
    Verifica a regra de dono único por artefato.

    Invariantes:
        - o script dono pode reescrever o próprio artefato
        - outro script recebe DuplicateArtifactError com dono e escritor
        - o valor original é preservado após a tentativa rejeitada
    """
    store = _store()
    with store.scope("a.py"):
        store.write("x", 1)
        store.write("x", 2)

    with store.scope("b.py"):
        with pytest.raises(DuplicateArtifactError) as exc:
            store.write("x", 3)

    assert exc.value.owner == "a.py"
    assert exc.value.writer == "b.py"
    assert exc.value.to_payload().type == "ARTIFACT_DUPLICATE"
    with store.scope("a.py"):
        assert store.read("x") == 2


def test_read_missing_artifact_raises_not_found():
    store = _store()
    with store.scope("b.py"):
        with pytest.raises(ArtifactNotFoundError) as exc:
            store.read("x")
    assert exc.value.details == {"artifact": "x", "reader": "b.py"}
    assert "files" in exc.value.hint


def test_undeclared_name_is_rejected_on_write():
    store = _store()
    with store.scope("a.py"):
        with pytest.raises(UndeclaredArtifactError) as exc:
            store.write("w", 1)
    assert exc.value.details["expected"] == ["x", "y", "z"]
    assert store.names() == []


def test_isolated_mode_rejects_every_read():
    store = _store(cross_script_access=False)
    with store.scope("a.py"):
        store.write("x", 1)
        with pytest.raises(AccessDisabledError):
            store.read("x")
    with store.scope("b.py"):
        with pytest.raises(AccessDisabledError):
            store.read("x")


def test_harvest_collects_expected_in_declared_order():
    store = _store()
    with store.scope("a.py"):
        store.write("z", 3)
        store.write("x", 1)

    harvested = store.harvest({"y": 2, "x": "stale"})

    assert list(harvested) == ["x", "y", "z"]
    assert harvested == {"x": 1, "y": 2, "z": 3}


def test_harvest_reports_all_missing_names():
    store = _store()
    with store.scope("a.py"):
        store.write("y", 1)

    with pytest.raises(MissingArtifactError) as exc:
        store.harvest()
    assert exc.value.names == ["x", "z"]
    assert exc.value.stage == "harvest"
