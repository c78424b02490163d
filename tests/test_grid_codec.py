import numpy as np
import pytest

from grid_codec import GridCoordinateCodec
from grid_errors import ConfigurationError, RangeError
from graph_build import iter_grid_indices


def test_round_trip_every_cell_3d():
    codec = GridCoordinateCodec((4, 3, 2))
    assert codec.num_cells == 24
    seen = set()
    for index in iter_grid_indices(codec.size):
        vid, inside = codec.to_vertex(index)
        assert inside
        assert codec.to_coordinate(vid) == index
        seen.add(vid)
    assert seen == set(range(24))


def test_vertex_id_is_row_major_offset():
    codec = GridCoordinateCodec((4, 3, 2))
    assert codec.strides == (1, 4, 12)
    # numpy shape is the index-order size reversed: (z, y, x)
    shape = (2, 3, 4)
    for index in [(0, 0, 0), (3, 0, 0), (1, 2, 0), (3, 2, 1)]:
        vid, _ = codec.to_vertex(index)
        assert vid == np.ravel_multi_index(index[::-1], shape)


def test_out_of_bounds_is_a_flag_not_an_error():
    codec = GridCoordinateCodec((3, 3))
    assert codec.to_vertex((-1, 0)) == (0, False)
    assert codec.to_vertex((3, 0)) == (0, False)
    assert codec.to_vertex((0, 3)) == (0, False)
    assert codec.to_vertex((2, 2)) == (8, True)


def test_dimension_mismatch():
    codec = GridCoordinateCodec((3, 3))
    with pytest.raises(ConfigurationError):
        codec.to_vertex((1, 1, 1))


def test_cell_count_beyond_int64_raises_range_error():
    with pytest.raises(RangeError):
        GridCoordinateCodec((2 ** 32, 2 ** 32))


def test_empty_grid_has_no_cells():
    codec = GridCoordinateCodec((0, 5))
    assert codec.num_cells == 0
    assert codec.to_vertex((0, 0)) == (0, False)


def test_non_integer_index_rejected():
    codec = GridCoordinateCodec((3, 3))
    with pytest.raises(ConfigurationError):
        codec.to_vertex((1.5, 0))
    with pytest.raises(ConfigurationError):
        codec.is_inside((True, 0))


def test_numpy_integer_index_accepted():
    codec = GridCoordinateCodec((3, 3))
    assert codec.to_vertex((np.int64(2), np.int32(1))) == (5, True)
