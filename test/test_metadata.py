# test/test_metadata.py
import pytest

from enginetdms.core import ObjectMeta, InvalidChannel


def test_objectmeta_accessors_and_normalizes_none():
    m = ObjectMeta(path="/'g'/'c'", properties={"unit_string": "Nm", "description": "torque", "k": 1})
    assert m.unit == "Nm"
    assert m.description == "torque"
    assert m.get("k") == 1
    assert m.get("missing", 5) == 5
    assert m.object_path.channel == "c"

    m2 = ObjectMeta(path="/", properties=None)  # type: ignore[arg-type]
    assert m2.properties == {}
    assert m2.unit is None


def test_objectmeta_copy_is_independent():
    m = ObjectMeta(path="/'g'", properties={"a": 1})
    c = m.copy()
    c.properties["a"] = 2
    assert m.properties == {"a": 1}


def test_objectmeta_rejects_bad_inputs():
    with pytest.raises(InvalidChannel):
        ObjectMeta(path="g/c")
    with pytest.raises(InvalidChannel):
        ObjectMeta(path="/", properties=["not", "a", "dict"])  # type: ignore[arg-type]
