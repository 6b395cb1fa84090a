# tests/core/digest/test_fingerprint.py
"""
Testes do Fingerprint Service.

Os testes asseguram que:
- o fingerprint de bytes é o SHA-256 hexadecimal
- valores com o mesmo conteúdo têm o mesmo fingerprint, em objetos distintos
- qualquer mudança de conteúdo (valor, dtype, coluna, índice) muda o fingerprint
- valores de tipos ou estruturas diferentes não colidem (tuple × list, 1 × "1")
- sets têm fingerprint independente da ordem de iteração, em qualquer processo
"""

import hashlib

import numpy as np
import pandas as pd
import pytest

from datapack.core.digest.fingerprint import fingerprint, fingerprint_artifact, serialize_artifact


def _cars() -> pd.DataFrame:
    return pd.DataFrame(
        {"model": ["Mazda RX4", "Datsun 710", "Fiat 128"], "mpg": [21.0, 22.8, 32.4], "cyl": [6, 4, 4]}
    )


def test_fingerprint_of_bytes_is_sha256_hex():
    assert fingerprint(b"abc") == hashlib.sha256(b"abc").hexdigest()
    assert len(fingerprint(b"")) == 64


def test_fingerprint_requires_bytes():
    with pytest.raises(TypeError):
        fingerprint("abc")


def test_equal_dataframes_share_fingerprint():
    assert fingerprint_artifact(_cars()) == fingerprint_artifact(_cars())


@pytest.mark.parametrize(
    "mutate",
    [
        lambda df: df.assign(mpg=df["mpg"] + 0.1),
        lambda df: df.assign(cyl=df["cyl"].astype("float64")),
        lambda df: df.rename(columns={"cyl": "cylinders"}),
        lambda df: df.set_index("model"),
        lambda df: df.iloc[:2],
        lambda df: df[["mpg", "model", "cyl"]],
    ],
)
def test_any_dataframe_change_changes_fingerprint(mutate):
    assert fingerprint_artifact(mutate(_cars())) != fingerprint_artifact(_cars())


def test_series_and_ndarray():
    s = pd.Series([1, 2, 3], name="n")
    assert fingerprint_artifact(s) == fingerprint_artifact(pd.Series([1, 2, 3], name="n"))
    assert fingerprint_artifact(s) != fingerprint_artifact(s.rename("m"))

    a = np.arange(6)
    assert fingerprint_artifact(a) == fingerprint_artifact(np.arange(6))
    assert fingerprint_artifact(a) != fingerprint_artifact(a.reshape(2, 3))
    assert fingerprint_artifact(a) != fingerprint_artifact(a.astype("int32"))


def test_json_values_ignore_key_order():
    assert fingerprint_artifact({"a": 1, "b": [1, 2]}) == fingerprint_artifact({"b": [1, 2], "a": 1})
    assert fingerprint_artifact({"a": 1}) != fingerprint_artifact({"a": 2})


def test_types_do_not_collide():
    assert serialize_artifact(b"[1]")[:6] == b"bytes\x00"
    assert fingerprint_artifact(b"[1]") != fingerprint_artifact([1])
    assert fingerprint_artifact("1") != fingerprint_artifact(1)


@pytest.mark.parametrize(
    "left, right",
    [
        ((1, 2), [1, 2]),
        ({1: "a"}, {"1": "a"}),
        ({1: "a"}, {1.0: "a"}),
        ([True], [1]),
        ([1], [1.0]),
        (0.0, -0.0),
        ({1, 2}, frozenset({1, 2})),
        ({"k": (1, 2)}, {"k": [1, 2]}),
        ([None], []),
        (["ab", "c"], ["a", "bc"]),
        (np.int64(1), 1),
        (np.float64(1.5), 1.5),
    ],
)
def test_structurally_different_values_do_not_collide(left, right):
    assert fingerprint_artifact(left) != fingerprint_artifact(right)


def test_dict_subclass_is_distinguished():
    from collections import OrderedDict

    assert fingerprint_artifact(OrderedDict(a=1)) != fingerprint_artifact({"a": 1})
    assert fingerprint_artifact(OrderedDict(a=1, b=2)) == fingerprint_artifact(OrderedDict(b=2, a=1))


def test_sets_are_order_independent():
    words = ["alpha", "beta", "gamma", "delta", "eps"]
    assert fingerprint_artifact(set(words)) == fingerprint_artifact(set(reversed(words)))
    assert fingerprint_artifact({"tags": frozenset(words)}) == fingerprint_artifact({"tags": frozenset(words[::-1])})
    assert not serialize_artifact(set(words)).startswith(b"pickle")


def test_other_objects_fall_back_to_pickle():
    import datetime as dt

    value = {"when": dt.date(2026, 1, 16)}
    assert fingerprint_artifact(value) == fingerprint_artifact({"when": dt.date(2026, 1, 16)})
    assert fingerprint_artifact(value) != fingerprint_artifact({"when": dt.date(2026, 1, 17)})


_CROSS_PROCESS_CODE = """
import numpy as np
import pandas as pd
from datapack.core.digest.fingerprint import fingerprint_artifact

value = {
    "tags": {"alpha", "beta", "gamma", "delta", "eps"},
    "nested": [frozenset({"x", "y", "z"}), ("a", 1)],
    "frame": pd.DataFrame({"labels": [{"p", "q", "r"}, {"s"}], "n": [1, 2]}),
    "arr": np.array([{"u", "v", "w"}], dtype=object),
}
print(fingerprint_artifact(value))
"""


def test_fingerprint_is_stable_across_hash_seeds():
    """
    Verifica o determinismo entre processos.

    `hash()` de strings é aleatorizado por processo (PYTHONHASHSEED), o que
    muda a ordem de iteração de sets; o fingerprint não pode depender dela.
    """
    import os
    import subprocess
    import sys
    from pathlib import Path

    import datapack

    src_dir = str(Path(datapack.__file__).resolve().parents[1])
    seen = set()
    for seed in ("0", "1", "2", "3"):
        env = dict(os.environ)
        env["PYTHONHASHSEED"] = seed
        env["PYTHONPATH"] = os.pathsep.join(p for p in (src_dir, env.get("PYTHONPATH", "")) if p)
        proc = subprocess.run(
            [sys.executable, "-c", _CROSS_PROCESS_CODE],
            env=env,
            capture_output=True,
            text=True,
            check=True,
        )
        seen.add(proc.stdout.strip())

    assert len(seen) == 1
    assert len(seen.pop()) == 64


def test_dataframe_with_unhashable_cells_is_fingerprinted():
    df = pd.DataFrame({"tags": [["a"], ["b", "c"]]})
    assert fingerprint_artifact(df) == fingerprint_artifact(pd.DataFrame({"tags": [["a"], ["b", "c"]]}))
