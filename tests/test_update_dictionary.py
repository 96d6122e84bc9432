import pytest

from appsettings.exceptions import InvalidValueError
from appsettings.factory import create_test_store

#-------------FIXTURES----------------
@pytest.fixture
def store(clock):
    return create_test_store(clock=clock)


#-------------MERGE (NOT EXPIRED)----------------
def test_merge_within_ttl(store):
    assert store.update_dictionary({"a": 1}, "k", ttl=1000) == {"a": 1}
    assert store.update_dictionary({"b": 2}, "k", ttl=1000) == {"a": 1, "b": 2}
    assert store.get("k") == {"a": 1, "b": 2}     # merged result persisted

def test_merge_overwrites_matching_keys(store):
    store.update_dictionary({"a": 1, "b": 1}, "k", ttl=1000)
    assert store.update_dictionary({"b": 2}, "k", ttl=1000) == {"a": 1, "b": 2}

def test_merge_does_not_refresh_timestamp(store, clock):
    store.update_dictionary({"a": 1}, "k", ttl=100)
    first = store.get("k.timestamp")

    clock.advance(60)
    store.update_dictionary({"b": 2}, "k", ttl=100)
    assert store.get("k.timestamp") == first

    # window is anchored to the first write
    clock.advance(60)
    assert store.update_dictionary({"c": 3}, "k", ttl=100) == {"c": 3}

def test_returned_dict_is_a_copy(store):
    result = store.update_dictionary({"a": 1}, "k", ttl=1000)
    result["x"] = 99
    assert store.get("k") == {"a": 1}


#-------------REPLACE (EXPIRED)----------------
def test_zero_ttl_replaces(store):
    store.update_dictionary({"a": 1}, "k", ttl=0)
    assert store.update_dictionary({"b": 2}, "k", ttl=0) == {"b": 2}

def test_no_ttl_replaces(store):
    store.update_dictionary({"a": 1}, "k")
    assert store.update_dictionary({"b": 2}, "k") == {"b": 2}
    assert store.get("k") == {"b": 2}

def test_replace_after_ttl_elapsed(store, clock):
    store.update_dictionary({"a": 1}, "k", ttl=10)
    clock.advance(10)
    assert store.update_dictionary({"b": 2}, "k", ttl=10) == {"b": 2}
    assert store.get("k.timestamp") == clock.now     # refreshed on replace

def test_stored_scalar_is_replaced(store):
    store.update_object("k", "scalar", ttl=1000)
    assert store.update_dictionary({"a": 1}, "k", ttl=1000) == {"a": 1}

def test_corrupt_stored_dict_is_replaced(store):
    store.update_dictionary({"a": 1}, "k", ttl=1000)
    store.backend.set(store.prefix + "k", "{broken")
    assert store.update_dictionary({"b": 2}, "k", ttl=1000) == {"b": 2}

def test_removed_dict_starts_over(store):
    store.update_dictionary({"a": 1}, "k", ttl=1000)
    store.remove("k")
    assert store.update_dictionary({"b": 2}, "k", ttl=1000) == {"b": 2}


#-------------ERRORS----------------
def test_rejects_non_dict(store):
    with pytest.raises(InvalidValueError):
        store.update_dictionary("not a dict", "k", ttl=10)

def test_rejects_nested_values(store):
    with pytest.raises(InvalidValueError):
        store.update_dictionary({"a": {"nested": 1}}, "k", ttl=10)
    assert store.get("k") is None
