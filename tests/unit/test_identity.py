from uuid import uuid4

import pytest

from bootstarter.db.identity import (
    INT_IDENTITY,
    NIL_UUID,
    STR_IDENTITY,
    UUID_IDENTITY,
    coerce_uuid,
    identity_kind_for,
    is_uuid_set,
)


@pytest.mark.parametrize("value,expected", [(1, True), (42, True), (0, False), (-3, False), (True, False), ("1", False)])
def test_int_identity(value, expected):
    assert INT_IDENTITY.is_set(value) is expected


@pytest.mark.parametrize("value,expected", [("a", True), ("", False), ("   ", False), (None, False)])
def test_str_identity(value, expected):
    assert STR_IDENTITY.is_set(value) is expected


def test_uuid_identity():
    assert UUID_IDENTITY.is_set(uuid4()) is True
    assert UUID_IDENTITY.is_set(NIL_UUID) is False
    assert UUID_IDENTITY.is_set(str(uuid4())) is False


def test_identity_kind_for_known_types():
    import uuid

    assert identity_kind_for(int) is INT_IDENTITY
    assert identity_kind_for(str) is STR_IDENTITY
    assert identity_kind_for(uuid.UUID) is UUID_IDENTITY
    assert identity_kind_for(INT_IDENTITY) is INT_IDENTITY


def test_identity_kind_for_unsupported_type():
    with pytest.raises(TypeError):
        identity_kind_for(float)


def test_coerce_uuid():
    key = uuid4()
    assert coerce_uuid(key) is key
    assert coerce_uuid(str(key)) == key
    assert coerce_uuid("not-a-uuid") is None
    assert coerce_uuid(None) is None


def test_is_uuid_set():
    assert is_uuid_set(uuid4())
    assert is_uuid_set(str(uuid4()))
    assert not is_uuid_set(NIL_UUID)
    assert not is_uuid_set("00000000-0000-0000-0000-000000000000")
    assert not is_uuid_set("")
