import pytest

from jara.services.jara_bonus import jara_quantity


@pytest.mark.parametrize(
    "quantity,buy,get,expected",
    [
        (10, 3, 1, 3),
        (2, 3, 1, 0),
        (9, 3, 2, 6),
        (3, 3, 1, 1),
        (5, 0, 4, 0),
        (7, 2, 0, 0),
        (0, 3, 1, 0),
    ],
)
def test_jara_quantity_examples(quantity, buy, get, expected):
    assert jara_quantity(quantity, buy, get) == expected


def test_jara_quantity_is_monotonic_in_quantity():
    prev = 0
    for q in range(0, 50):
        cur = jara_quantity(q, 4, 1)
        assert cur >= prev
        prev = cur


def test_jara_quantity_matches_whole_multiples():
    for q in range(1, 40):
        assert jara_quantity(q, 5, 2) == (q // 5) * 2


@pytest.mark.parametrize("args", [(-1, 3, 1), (3, -1, 1), (3, 3, -1)])
def test_jara_quantity_rejects_negative_inputs(args):
    with pytest.raises(ValueError):
        jara_quantity(*args)
