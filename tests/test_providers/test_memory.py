"""Tests for MapProvider."""

import pytest

from josh.exceptions import JoshArgumentError, JoshOperandError
from josh.providers import JoshProvider, MapProvider


@pytest.fixture
async def filled(provider, sample_values):
    for key, value in sample_values.items():
        await provider.set(key, "", value)
    return provider


def test_provider_instance(provider):
    assert isinstance(provider, JoshProvider)
    assert provider.name == "tests"
    assert provider.options == {}


def test_default_context():
    assert MapProvider().name == "unknown"


async def test_init(provider):
    assert await provider.init() is True


# ── reads ────────────────────────────────────────────────────


async def test_roundtrip_all_value_shapes(filled, sample_values):
    for key, value in sample_values.items():
        assert await filled.get(key, "") == value


async def test_count_keys_values(filled, sample_values):
    assert await filled.count() == 7
    assert sorted(await filled.keys()) == sorted(sample_values)
    assert await filled.values() == list(sample_values.values())


async def test_get_missing(provider):
    assert await provider.get("nope", "") is None
    assert await provider.get("nope", "a.b") is None


async def test_has(filled):
    assert await filled.has("object", "")
    assert await filled.has("object", "a")
    assert await filled.has("null", "")
    assert not await filled.has("object", "z")
    assert not await filled.has("nope", "")


async def test_get_returns_copy(filled):
    value = await filled.get("object", "")
    value["a"] = 100
    assert await filled.get("object", "a") == 1


async def test_get_many(filled):
    assert await filled.get_many(["number", "boolean", "missing"]) == {
        "number": 42,
        "boolean": False,
    }


async def test_get_all(filled, sample_values):
    assert await filled.get_all() == sample_values


async def test_random_is_distinct(filled):
    picked = await filled.random(3)
    assert len(picked) == 3
    for key, value in picked.items():
        assert await filled.get(key, "") == value

    keys = await filled.random_key(7)
    assert sorted(keys) == sorted(await filled.keys())


# ── paths ────────────────────────────────────────────────────


async def test_read_and_write_paths(filled):
    assert await filled.get("object", "a") == 1
    assert await filled.get("array", "0") == 1
    assert await filled.get("complexObject", "c[4].a[1]") == 2

    await filled.set("object", "e", 5)
    assert await filled.get("object", "e") == 5

    await filled.set("array", "5", 6)
    assert await filled.get("array", "5") == 6


async def test_set_path_keeps_siblings(filled):
    await filled.set("complexObject", "c[4].a[1]", "x")
    assert await filled.get("complexObject", "c[4].a[1]") == "x"
    whole = await filled.get("complexObject", "")
    assert whole["c"][4] == {"a": [1, "x", 3, 4]}
    assert whole["d"] == {"1": "one", "2": "two"}


async def test_set_path_on_missing_key(provider):
    await provider.set("fresh", "a.b", 1)
    assert await provider.get("fresh", "") == {"a": {"b": 1}}


# ── bulk writes ──────────────────────────────────────────────


async def test_set_many(filled):
    await filled.set_many({"new1": "new1", "new2": "new2"}, True)
    assert await filled.count() == 9


async def test_set_many_without_overwrite(filled):
    await filled.set_many({"number": 0, "new": 1}, False)
    assert await filled.get("number", "") == 42
    assert await filled.get("new", "") == 1


# ── deletes ──────────────────────────────────────────────────


async def test_delete_key(filled):
    await filled.delete("string", "")
    assert await filled.count() == 6
    assert not await filled.has("string", "")


async def test_delete_path(filled):
    await filled.delete("object", "a")
    assert await filled.count() == 7
    assert await filled.get("object", "") == {"b": 2, "c": 3, "d": 4}


async def test_delete_missing_is_noop(filled):
    await filled.delete("object", "a")
    await filled.delete("object", "a")
    await filled.delete("nope", "")
    assert await filled.get("object", "") == {"b": 2, "c": 3, "d": 4}
    assert await filled.count() == 7


async def test_delete_many(filled):
    await filled.delete_many(["string", "object.a", "complexObject.c[4]"])
    assert not await filled.has("string", "")
    assert await filled.get("object", "") == {"b": 2, "c": 3, "d": 4}
    assert await filled.get("complexObject", "c") == [1, 2, 3, 4]


async def test_clear(filled):
    await filled.clear()
    assert await filled.count() == 0


# ── arrays ───────────────────────────────────────────────────


async def test_push(filled):
    await filled.push("array", "", 6, True)
    assert await filled.get("array", "") == [1, 2, 3, 4, 5, 6]


async def test_push_without_dupes(filled):
    await filled.push("array", "", 3, False)
    assert await filled.get("array", "") == [1, 2, 3, 4, 5]
    await filled.push("array", "", 7, False)
    assert await filled.get("array", "6") is None
    assert await filled.get("array", "5") == 7


async def test_push_nested(filled):
    await filled.push("complexObject", "c[4].a", 5, True)
    assert await filled.get("complexObject", "c[4].a") == [1, 2, 3, 4, 5]


async def test_push_non_list_is_noop(filled):
    await filled.push("number", "", 1, True)
    assert await filled.get("number", "") == 42


async def test_remove_value_removes_all(provider):
    await provider.set("list", "", [1, 2, 4, 3, 4, 5, 6])
    await provider.remove("list", "", 4)
    assert await provider.get("list", "") == [1, 2, 3, 5, 6]


async def test_remove_with_predicate(filled):
    await filled.remove("array", "", lambda v: v % 2 == 0)
    assert await filled.get("array", "") == [1, 3, 5]


async def test_remove_with_async_predicate(filled):
    async def big(value):
        return value > 3

    await filled.remove("array", "", big)
    assert await filled.get("array", "") == [1, 2, 3]


async def test_includes(filled):
    assert await filled.includes("array", "", 3)
    assert not await filled.includes("array", "", 9)
    assert not await filled.includes("number", "", 42)
    assert not await filled.includes("nope", "", 1)


# ── numbers ──────────────────────────────────────────────────


async def test_inc_dec(filled):
    await filled.inc("number", "")
    assert await filled.get("number", "") == 43
    await filled.dec("number", "")
    await filled.dec("number", "")
    assert await filled.get("number", "") == 41


async def test_inc_non_number_is_noop(filled):
    await filled.inc("string", "")
    await filled.inc("boolean", "")
    assert await filled.get("string", "") == "Test string."
    assert await filled.get("boolean", "") is False


async def test_math_roundtrip(filled):
    await filled.math("number", "", "multiply", 2)
    assert await filled.get("number", "") == 84
    await filled.math("number", "", "divide", 4)
    assert await filled.get("number", "") == 21
    await filled.math("number", "", "add", 21)
    assert await filled.get("number", "") == 42


@pytest.mark.parametrize(
    ("operation", "operand", "expected"),
    [
        ("+", 3, 13),
        ("sub", 3, 7),
        ("-", 3, 7),
        ("*", 3, 30),
        ("/", 4, 2.5),
        ("^", 2, 100),
        ("exponent", 3, 1000),
        ("%", 3, 1),
        ("modulo", 4, 2),
        ("unknown", 3, 10),
    ],
)
async def test_math_operations(provider, operation, operand, expected):
    await provider.set("n", "", 10)
    await provider.math("n", "", operation, operand)
    assert await provider.get("n", "") == expected


async def test_math_random(provider):
    await provider.set("n", "", 10)
    await provider.math("n", "", "random", 5)
    assert 0 <= await provider.get("n", "") < 5


async def test_math_zero_is_a_number(provider):
    await provider.set("n", "", 0)
    await provider.math("n", "", "add", 1)
    assert await provider.get("n", "") == 1


async def test_math_on_nested_path(filled):
    await filled.math("object", "b", "*", 10)
    assert await filled.get("object", "b") == 20


async def test_math_without_number_raises(filled):
    with pytest.raises(JoshOperandError):
        await filled.math("string", "", "add", 1)
    with pytest.raises(JoshOperandError):
        await filled.math("missing", "", "add", 1)


async def test_math_division_by_zero_raises(filled):
    with pytest.raises(JoshOperandError):
        await filled.math("number", "", "/", 0)
    assert await filled.get("number", "") == 42


async def test_math_float_modulo_by_zero_raises(provider):
    await provider.set("n", "", 5.5)
    with pytest.raises(JoshOperandError):
        await provider.math("n", "", "%", 0)
    assert await provider.get("n", "") == 5.5


async def test_math_overflow_raises(provider):
    await provider.set("n", "", 10.0)
    with pytest.raises(JoshOperandError):
        await provider.math("n", "", "^", 1000)
    assert await provider.get("n", "") == 10.0


async def test_math_without_real_result_raises(provider):
    await provider.set("n", "", -8)
    with pytest.raises(JoshOperandError):
        await provider.math("n", "", "^", 0.5)
    assert await provider.get("n", "") == -8


# ── strict equality ──────────────────────────────────────────


async def test_value_queries_do_not_mix_bools_and_numbers(provider):
    await provider.set("a", "", {"flag": 1})
    await provider.set("b", "", {"flag": True})
    assert list(await provider.filter_by_value("flag", True)) == ["b"]
    assert list(await provider.filter_by_value("flag", 1)) == ["a"]
    assert await provider.find_by_value("flag", True) == {"b": {"flag": True}}
    assert not await provider.every_by_value("flag", 1)

    await provider.delete("b", "")
    assert not await provider.some_by_value("flag", True)
    assert await provider.every_by_value("flag", 1)


async def test_push_without_dupes_keeps_bool_and_number_apart(provider):
    await provider.set("list", "", [1])
    await provider.push("list", "", True, False)
    assert await provider.get("list", "") == [1, True]
    await provider.push("list", "", True, False)
    assert await provider.get("list", "") == [1, True]


async def test_remove_bool_keeps_numbers(provider):
    await provider.set("list", "", [1, True, 1.0, False, 0])
    await provider.remove("list", "", True)
    assert await provider.get("list", "") == [1, 1.0, False, 0]


async def test_includes_is_strict(provider):
    await provider.set("list", "", [1, [0, 2]])
    assert not await provider.includes("list", "", True)
    assert not await provider.includes("list", "", [False, 2])
    assert await provider.includes("list", "", [0, 2])
    assert await provider.includes("list", "", 1.0)


async def test_set_field_under_list_raises_argument_error(provider):
    await provider.set("k", "", {"a": [1]})
    with pytest.raises(JoshArgumentError):
        await provider.set("k", "a.b", 2)
    assert await provider.get("k", "") == {"a": [1]}


# ── queries ──────────────────────────────────────────────────


async def test_filter_and_find_by_value(filled):
    assert await filled.filter_by_value("b", 2) == {
        "object": {"a": 1, "b": 2, "c": 3, "d": 4},
        "complexObject": {
            "a": 1,
            "b": 2,
            "c": [1, 2, 3, 4, {"a": [1, 2, 3, 4]}],
            "d": {"1": "one", "2": "two"},
        },
    }
    assert await filled.find_by_value("c", 3) == {"object": {"a": 1, "b": 2, "c": 3, "d": 4}}
    assert await filled.find_by_value("c", 99) is None


@pytest.fixture
async def counted(provider):
    for i in range(200):
        await provider.set(f"object{i}", "", {"key": f"object{i}", "count": i})
    return provider


async def test_filter_by_fn(counted):
    found = await counted.filter_by_fn(lambda v: v["count"] >= 100)
    assert len(found) == 100


async def test_find_by_fn(counted):
    found = await counted.find_by_fn(lambda v: v["count"] >= 101)
    assert found == {"object101": {"key": "object101", "count": 101}}


async def test_find_by_fn_with_path(counted):
    found = await counted.find_by_fn(lambda c: c == 0, "count")
    assert list(found) == ["object0"]


async def test_some_by_fn(counted):
    assert await counted.some_by_fn(lambda v: v["count"] == 101)
    assert not await counted.some_by_fn(lambda v: v["count"] == 1000)


async def test_some_and_every_by_value(counted):
    assert await counted.some_by_value("count", 5)
    assert not await counted.every_by_value("count", 5)


async def test_every_by_fn(counted):
    assert await counted.every_by_fn(lambda c: c < 200, "count")
    assert not await counted.every_by_fn(lambda c: c < 100, "count")


async def test_every_on_empty_is_true(provider):
    assert await provider.every_by_fn(lambda v: False)
    assert await provider.every_by_value("a", 1)


async def test_unresolved_path_is_not_a_match(filled):
    # Only "object" and "complexObject" have a "b" field.
    assert len(await filled.filter_by_fn(lambda b: True, "b")) == 2
    assert not await filled.every_by_fn(lambda b: True, "b")
    assert not await filled.some_by_value("zzz", 1)


async def test_async_predicate(counted):
    async def is_last(value):
        return value["count"] == 199

    assert list(await counted.filter_by_fn(is_last)) == ["object199"]


async def test_map(filled):
    await filled.clear()
    await filled.set("a", "", {"n": 1})
    await filled.set("b", "", {"n": 2})
    await filled.set("c", "", {"m": 3})
    assert await filled.map_by_path("n") == [1, 2, None]
    assert await filled.map_by_fn(lambda v: None if v is None else v * 10, "n") == [10, 20, None]
    assert await filled.map_by_fn(len) == [1, 1, 1]


# ── ids and lifecycle ────────────────────────────────────────


async def test_auto_id_sequence(provider):
    assert [await provider.auto_id() for _ in range(5)] == ["1", "2", "3", "4", "5"]


async def test_auto_id_survives_deletes(provider):
    first = await provider.auto_id()
    await provider.set(first, "", 1)
    await provider.delete(first, "")
    await provider.clear()
    assert await provider.auto_id() == "2"


async def test_clear_then_destroy(filled):
    await filled.clear()
    assert await filled.count() == 0
    await filled.set("again", "", 1)
    await filled.destroy()
    assert await filled.count() == 0
