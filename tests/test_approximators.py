# tests/test_approximators.py
from __future__ import annotations

import numpy as np
import pytest

from learners import InvalidParameter, LookUpTable, OutOfRange


def test_uniform_table_shape() -> None:
    t = LookUpTable.uniform(2, 10, 0, 10, n_outputs=3)
    assert t.n_inputs == 2
    assert t.n_entries == 100
    assert t.n_outputs == 3
    assert t.table.shape == (3, 100)
    assert np.all(t.table == 0.0)


def test_entry_numbers_are_row_major_over_buckets() -> None:
    t = LookUpTable([4, 5], [0.0, 0.0], [4.0, 5.0])
    assert t.entry_num([0, 0]) == 0
    assert t.entry_num([0, 1]) == 1
    assert t.entry_num([1, 0]) == 5
    assert t.entry_num([3, 4]) == 19


def test_quantization_truncates_within_buckets() -> None:
    t = LookUpTable.uniform(1, 4, 0.0, 1.0)
    assert t.quant_nums([0.0]).tolist() == [0]
    assert t.quant_nums([0.2499]).tolist() == [0]
    assert t.quant_nums([0.25]).tolist() == [1]
    assert t.quant_nums([0.99]).tolist() == [3]


def test_out_of_range_inputs_are_clamped_to_edge_buckets() -> None:
    t = LookUpTable.uniform(2, 10, 0, 10)
    assert t.quant_nums([-3.0, 25.0]).tolist() == [0, 9]
    assert t.quant_nums([10.0, 10.0]).tolist() == [9, 9]


def test_update_moves_only_the_addressed_entry() -> None:
    t = LookUpTable.uniform(2, 10, 0, 10, n_outputs=2)
    t.update([3, 4], 1, delta=2.0, step_size=0.5)
    assert t.restore([3, 4], 1) == pytest.approx(1.0)
    assert t.restore([3, 4], 0) == 0.0
    assert t.restore([4, 3], 1) == 0.0
    # same bucket, different raw input
    assert t.restore([3.7, 4.2], 1) == pytest.approx(1.0)
    assert np.count_nonzero(t.table) == 1


def test_restore_all_and_update_all() -> None:
    t = LookUpTable.unit([2, 2], n_outputs=3)
    t.update_all([0.9, 0.1], [1.0, -2.0, 4.0], step_size=0.25)
    assert t.restore_all([0.9, 0.1]).tolist() == pytest.approx([0.25, -0.5, 1.0])


def test_initialize_fills_every_entry() -> None:
    t = LookUpTable.integer_grid([0, 0], [3, 3], n_outputs=2)
    t.initialize(-1.5)
    assert np.all(t.table == -1.5)
    assert t.n_entries == 9


def test_table_property_is_a_copy() -> None:
    t = LookUpTable.uniform(1, 3, 0, 3)
    snapshot = t.table
    snapshot[:] = 7.0
    assert np.all(t.table == 0.0)


def test_integer_grid_has_one_bucket_per_value() -> None:
    t = LookUpTable.integer_grid([-2, 0], [2, 3])
    assert t.n_quants.tolist() == [4, 3]
    assert t.quant_nums([-2, 0]).tolist() == [0, 0]
    assert t.quant_nums([1, 2]).tolist() == [3, 2]


@pytest.mark.parametrize(
    "args",
    [
        ([], [], []),
        ([2, 2], [0.0], [1.0, 1.0]),
        ([0, 2], [0.0, 0.0], [1.0, 1.0]),
        ([2], [1.0], [1.0]),
    ],
)
def test_invalid_construction_is_rejected(args) -> None:
    with pytest.raises(InvalidParameter):
        LookUpTable(*args)


def test_invalid_output_count_and_missing_arguments() -> None:
    with pytest.raises(InvalidParameter):
        LookUpTable([2], [0.0], [1.0], n_outputs=0)
    with pytest.raises(InvalidParameter):
        LookUpTable(None, [0.0], [1.0])
    with pytest.raises(InvalidParameter):
        LookUpTable.uniform(0, 2, 0.0, 1.0)


def test_wrong_input_arity_and_output_index_raise_out_of_range() -> None:
    t = LookUpTable.uniform(2, 4, 0, 1, n_outputs=2)
    with pytest.raises(OutOfRange):
        t.restore([0.5])
    with pytest.raises(OutOfRange):
        t.restore([0.5, 0.5], output=2)
    with pytest.raises(IndexError):
        t.update([0.5, 0.5], -1, 1.0, 1.0)
