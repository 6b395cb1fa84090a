# src/datapack/core/digest/fingerprint.py
"""
Fingerprint Service — hash de conteúdo de artefatos.

O fingerprint de um artefato é o SHA-256 (hex, 64 caracteres) dos seus
bytes serializados de forma canônica. Ele é a base do version gate: se o
fingerprint não muda, o conteúdo do artefato não mudou.

Política de serialização canônica (v2), sempre prefixada pelo tipo para
que valores de tipos diferentes nunca colidam:
    - bytes / bytearray / memoryview → os próprios bytes
    - pandas.DataFrame / Series → esquema + índice + colunas; colunas
      tipadas via `pd.util.hash_pandas_object`, colunas `object` pela
      codificação canônica de valores
    - numpy.ndarray → dtype, shape e buffer contíguo (dtype `object`
      pela codificação canônica dos elementos)
    - demais valores → codificação canônica de valores (abaixo)

Codificação canônica de valores:
    - cada valor leva uma tag de tipo; strings, bytes e contêineres levam
      o tamanho, então a codificação é injetiva
    - tuple ≠ list, 1 ≠ 1.0 ≠ True ≠ "1", inclusive em chaves de dict
    - dict, set e frozenset são ordenados pela codificação dos elementos
    - subclasses de tipos nativos levam também o nome qualificado da classe
    - objetos sem codificação própria caem para pickle (protocolo fixo);
      seu determinismo depende do próprio objeto

Invariantes:
    - Mesmo conteúdo → mesmo hash, em qualquer processo
      (nenhuma dependência de `hash()` do Python, que é aleatorizado)
    - Nenhum efeito colateral
"""

from __future__ import annotations

import hashlib
import json
import pickle
from typing import Any, List

import numpy as np
import pandas as pd

PICKLE_PROTOCOL = 4


def fingerprint(data: bytes) -> str:
    """SHA-256 hexadecimal de `data`."""
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise TypeError(f"fingerprint requer bytes, recebido: {type(data).__name__}")
    return hashlib.sha256(bytes(data)).hexdigest()


def _canonical_json(obj: Any) -> bytes:
    return json.dumps(
        obj,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=True,
    ).encode("utf-8")


def _sized(data: bytes) -> bytes:
    return str(len(data)).encode("ascii") + b":" + data


def _qualname(cls: type) -> bytes:
    return f"{cls.__module__}.{cls.__qualname__}".encode("utf-8")


# -----------------------------
# Codificação canônica de valores
# -----------------------------
def _encode_items(tag: bytes, encoded: List[bytes], out: List[bytes]) -> None:
    out.append(tag + str(len(encoded)).encode("ascii") + b"[")
    out.extend(encoded)
    out.append(b"]")


def _encode(value: Any, out: List[bytes]) -> None:
    if value is None:
        out.append(b"N")
        return

    if isinstance(value, np.generic):
        out.append(b"g" + _sized(value.dtype.str.encode("ascii")) + _sized(value.tobytes()))
        return

    if isinstance(value, (pd.DataFrame, pd.Series)):
        out.append(b"p" + _sized(_pandas_bytes(value)))
        return

    if isinstance(value, np.ndarray):
        out.append(b"a" + _sized(_ndarray_bytes(value)))
        return

    for base, encoder in _NATIVE_ENCODERS:
        if isinstance(value, base):
            if type(value) is not base:
                out.append(b"@" + _sized(_qualname(type(value))))
            encoder(value, out)
            return

    out.append(b"P" + _sized(pickle.dumps(value, protocol=PICKLE_PROTOCOL)))


def _encode_float(value: float, out: List[bytes]) -> None:
    # float.hex é exato e normaliza NaN; distingue 0.0 de -0.0
    out.append(b"f" + float(value).hex().encode("ascii") + b";")


def _encode_dict(value: dict, out: List[bytes]) -> None:
    pairs = sorted((canonical_bytes(k), canonical_bytes(v)) for k, v in value.items())
    _encode_items(b"d", [k + v for k, v in pairs], out)


# bool antes de int (bool é subclasse de int)
_NATIVE_ENCODERS = (
    (bool, lambda v, out: out.append(b"T" if v else b"F")),
    (int, lambda v, out: out.append(b"i" + str(int(v)).encode("ascii") + b";")),
    (float, _encode_float),
    (str, lambda v, out: out.append(b"s" + _sized(str(v).encode("utf-8", "surrogatepass")))),
    (bytes, lambda v, out: out.append(b"b" + _sized(bytes(v)))),
    (bytearray, lambda v, out: out.append(b"B" + _sized(bytes(v)))),
    (list, lambda v, out: _encode_items(b"l", [canonical_bytes(x) for x in v], out)),
    (tuple, lambda v, out: _encode_items(b"t", [canonical_bytes(x) for x in v], out)),
    (dict, _encode_dict),
    (set, lambda v, out: _encode_items(b"S", sorted(canonical_bytes(x) for x in v), out)),
    (frozenset, lambda v, out: _encode_items(b"Z", sorted(canonical_bytes(x) for x in v), out)),
)


def canonical_bytes(value: Any) -> bytes:
    """Codificação canônica e injetiva de um valor Python (ver módulo)."""
    out: List[bytes] = []
    _encode(value, out)
    return b"".join(out)


# -----------------------------
# numpy / pandas
# -----------------------------
def _ndarray_bytes(value: np.ndarray) -> bytes:
    header = _canonical_json(
        {"dtype": value.dtype.str, "dtype_name": str(value.dtype), "shape": list(value.shape)}
    )
    if value.dtype == object:
        return header + b"\x00" + canonical_bytes(value.ravel().tolist())
    return header + b"\x00" + np.ascontiguousarray(value).tobytes()


def _hashed(values: Any) -> bytes:
    rows = pd.util.hash_pandas_object(values, index=False).to_numpy()
    return np.ascontiguousarray(rows).tobytes()


def _index_bytes(index: pd.Index) -> bytes:
    head = _sized(str(index.dtype).encode("utf-8")) + _sized(canonical_bytes(list(index.names)))
    if isinstance(index, pd.MultiIndex) or index.dtype == object:
        return head + b"o" + canonical_bytes(index.tolist())
    return head + b"h" + _hashed(index)


def _column_bytes(column: pd.Series) -> bytes:
    if column.dtype == object:
        return b"o" + canonical_bytes(column.tolist())
    return b"h" + _hashed(column)


def _pandas_bytes(value: Any) -> bytes:
    if isinstance(value, pd.DataFrame):
        schema = {
            "kind": "dataframe",
            "dtypes": [str(d) for d in value.dtypes],
            "shape": list(value.shape),
        }
        parts = [
            _canonical_json(schema),
            canonical_bytes(value.columns.tolist()),
            _index_bytes(value.index),
        ]
        parts.extend(_column_bytes(value.iloc[:, i]) for i in range(value.shape[1]))
    else:
        schema = {"kind": "series", "dtype": str(value.dtype), "shape": list(value.shape)}
        parts = [
            _canonical_json(schema),
            canonical_bytes(value.name),
            _index_bytes(value.index),
            _column_bytes(value),
        ]
    return b"".join(_sized(p) for p in parts)


def serialize_artifact(value: Any) -> bytes:
    """Serialização canônica de um valor de artefato (ver política no módulo)."""
    if isinstance(value, (bytes, bytearray, memoryview)):
        return b"bytes\x00" + bytes(value)

    if isinstance(value, (pd.DataFrame, pd.Series)):
        return b"pandas\x00" + _pandas_bytes(value)

    if isinstance(value, np.ndarray):
        return b"ndarray\x00" + _ndarray_bytes(value)

    return b"value\x00" + canonical_bytes(value)


def fingerprint_artifact(value: Any) -> str:
    return fingerprint(serialize_artifact(value))
