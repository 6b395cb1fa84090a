# tests/core/digest/test_gate.py
"""
Testes do version gate.

Regra: conteúdo alterado exige versão estritamente maior que a registrada;
sem alteração, o commit é um no-op e a versão registrada permanece.
"""

import pytest

from datapack.core.config.errors import InvalidDataVersionError
from datapack.core.digest.gate import evaluate_version_gate
from datapack.core.digest.store import DigestRecord
from datapack.core.exceptions import VersionGateError

FP_A = "a" * 64
FP_B = "b" * 64


def _previous():
    return DigestRecord(data_version="0.1.0", fingerprints={"cars": FP_A}, producers={"cars": "cars.py"})


def test_first_build_commits_any_valid_version():
    decision = evaluate_version_gate(DigestRecord(), {"cars": FP_A}, "0.0.1")

    assert decision.commit
    assert decision.version_changed
    assert decision.recorded_version is None
    assert decision.data_version == "0.0.1"
    assert decision.diff.added == ["cars"]


def test_unchanged_content_is_noop_with_recorded_version():
    decision = evaluate_version_gate(_previous(), {"cars": FP_A}, "0.5.0")

    assert not decision.commit
    assert decision.data_version == "0.1.0"


def test_unchanged_content_with_lower_version_is_still_noop():
    decision = evaluate_version_gate(_previous(), {"cars": FP_A}, "0.0.1")
    assert not decision.commit
    assert decision.data_version == "0.1.0"


@pytest.mark.parametrize("requested", ["0.1.0", "0.1", "0.0.9"])
def test_changed_content_without_bump_is_rejected(requested):
    with pytest.raises(VersionGateError) as exc:
        evaluate_version_gate(_previous(), {"cars": FP_B}, requested)

    err = exc.value
    assert err.changed_artifacts == ["cars"]
    assert err.recorded_version == "0.1.0"
    assert err.requested_version == requested
    assert err.stage == "version_gate"
    assert err.to_payload().type == "VERSION_GATE"
    assert "0.1.0" in err.hint


def test_changed_content_with_bump_commits():
    decision = evaluate_version_gate(_previous(), {"cars": FP_B}, "0.2.0")
    assert decision.commit
    assert decision.data_version == "0.2.0"
    assert decision.diff.changed == ["cars"]


def test_removed_artifact_counts_as_change():
    previous = DigestRecord(data_version="0.1.0", fingerprints={"cars": FP_A, "old": FP_B})
    with pytest.raises(VersionGateError) as exc:
        evaluate_version_gate(previous, {"cars": FP_A}, "0.1.0")
    assert exc.value.changed_artifacts == ["old"]


def test_invalid_requested_version_is_rejected_even_without_change():
    with pytest.raises(InvalidDataVersionError):
        evaluate_version_gate(_previous(), {"cars": FP_A}, "latest")
