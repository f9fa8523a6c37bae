"""Tests for label selection on dense axes and the axis-range correction."""

import numpy as np
import pytest

import pyscores as psc


@pytest.mark.parametrize("n", [1, 5, 24, 25])
def test_every_element_labelled_up_to_dense_n(n) -> None:
    vec = np.random.default_rng(n).normal(size=n)
    assert psc.select_labels(vec).tolist() == list(range(n))


@pytest.mark.parametrize("n", [26, 40, 100, 333])
def test_number_of_labels_on_dense_axes(n) -> None:
    vec = np.random.default_rng(n).normal(size=n)
    idx = psc.select_labels(vec)
    expected = int(np.round(n * (1 - abs(25 - n) / n)))
    assert len(idx) == expected
    assert len(set(idx.tolist())) == len(idx)
    assert idx.min() >= 0
    assert idx.max() < n


def test_isolated_peak_is_labelled() -> None:
    vec = np.sin(np.linspace(0, 3 * np.pi, 60))
    vec[30] = 25.0
    idx = psc.select_labels(vec)
    assert 30 in idx.tolist()[:3]


def _loop_selection(v, dense_n=25) -> list:
    # element by element rendition of the selection, for comparison
    n = len(v)
    ons = np.zeros((n, 3))
    for k in (1, 2, 3):
        for i in range(k, n - k):
            fwd = v[i] - v[i + k]
            bwd = v[i] - v[i - k]
            ons[i, k - 1] = bwd if abs(bwd) < abs(fwd) else fwd
    mtrx = np.zeros((n, 4))
    for i in range(n):
        j = min(range(3), key=lambda c: abs(ons[i, c]))
        mtrx[i, j] = ons[i, j]
        mtrx[i, 3] = v[i]
    mtrx[0, :] = 0
    mtrx[-1, :] = 0
    for c in range(4):
        sd = mtrx[:, c].std(ddof=1)
        mtrx[:, c] = (mtrx[:, c] - mtrx[:, c].mean()) / sd if sd > 0 else 0
    u = np.linalg.svd(mtrx)[0][:, 0]
    top = int(round(n * (1 - abs(dense_n - n) / n)))
    return sorted(range(n), key=lambda i: -u[i] ** 2)[:top]


@pytest.mark.parametrize("seed, n", [(0, 26), (1, 40), (2, 40), (3, 80), (4, 150)])
def test_selection_matches_element_by_element_computation(seed, n) -> None:
    vec = np.random.default_rng(seed).normal(size=n)
    assert set(psc.select_labels(vec).tolist()) == set(_loop_selection(vec))


def test_nearest_contrast_prefers_smaller_neighbour_difference() -> None:
    assert psc._nearest_contrast(np.array([5.0, 0.0, 1.0]), 1).tolist() == [0.0, -1.0, 0.0]
    assert psc._nearest_contrast(np.array([0.5, 0.0, 3.0]), 1).tolist() == [0.0, -0.5, 0.0]
    assert psc._nearest_contrast(np.array([0.0, 0.0, 3.0, 0.0, 1.0]), 2).tolist() == [0.0, 0.0, 2.0, 0.0, 0.0]


def test_nearest_contrast_ties_go_forward() -> None:
    # |1 - 2| == |1 - 0|: the forward difference v[i] - v[i+k] wins
    assert psc._nearest_contrast(np.array([0.0, 1.0, 2.0]), 1).tolist() == [0.0, -1.0, 0.0]
    assert psc._nearest_contrast(np.array([0.0, 0.0, 1.0, 0.0, 2.0]), 2).tolist() == [0.0, 0.0, -1.0, 0.0, 0.0]


def test_nearest_contrast_without_room_for_offset() -> None:
    assert psc._nearest_contrast(np.arange(4.0), 2).tolist() == [0.0, 0.0, 0.0, 0.0]


@pytest.mark.parametrize("seed", range(5))
def test_zeroed_edges_tie_in_index_order(seed) -> None:
    vec = np.random.default_rng(seed).normal(size=30)
    idx = psc.select_labels(vec, dense_n=29).tolist()
    # 29 of 30 kept: the equal edge rows are either both kept, adjacent and
    # in index order, or the last one is the one left out
    assert len(idx) == 29
    assert 0 in idx
    if 29 in idx:
        assert idx.index(29) == idx.index(0) + 1


def test_constant_contrasts_do_not_break_selection() -> None:
    # a straight line has no offset-2/3 contrasts: those columns are constant
    idx = psc.select_labels(np.arange(40.0))
    assert len(idx) == 25
    assert np.all(np.isfinite(idx))


def test_first_column_of_matrix_is_used() -> None:
    rng = np.random.default_rng(3)
    vec = rng.normal(size=(50, 2))
    assert psc.select_labels(vec).tolist() == psc.select_labels(vec[:, 0]).tolist()


@pytest.mark.parametrize(
    "n, size",
    [(10, 15.0), (20, 16), (25, 16), (30, 16), (100, 11.0), (1000, 75 / 975 + 10)],
)
def test_label_font_size(n, size) -> None:
    assert psc.label_font_size(n) == pytest.approx(size)


def test_label_font_size_floor() -> None:
    assert psc.label_font_size(1000, min_size=12) == 12


def test_range_forced_symmetric_with_negative_values() -> None:
    assert psc.adjust_axis_range((-2.0, 4.0), vmin=-1.5, labelled=True) == (-5.0, 5.0)


def test_range_keeps_sign_of_each_bound() -> None:
    lo, hi = psc.adjust_axis_range((-4.0, -1.0), vmin=-3.0, labelled=True)
    assert lo == pytest.approx(-5.0)
    assert hi == pytest.approx(-5.0)


def test_range_unchanged_without_labels_or_negatives() -> None:
    assert psc.adjust_axis_range((-2.0, 4.0), vmin=-1.5, labelled=False) == (-2.0, 4.0)
    assert psc.adjust_axis_range((0.0, 4.0), vmin=0.0, labelled=True) == (0.0, 4.0)


def test_auto_range_pads_both_ends() -> None:
    assert psc.auto_range(0.0, 10.0) == pytest.approx((-0.5, 10.5))
    lo, hi = psc.auto_range(3.0, 3.0)
    assert lo < 3.0 < hi


def test_filter_labels_drops_coincident_points() -> None:
    bdata = np.array([[0.0, 0.0], [0.0, 0.0], [5.0, 5.0], [-5.0, 1.0]])
    keep = psc.filter_labels(bdata, blur=1)
    assert keep.tolist() == [True, False, True, True]


def test_filter_labels_infinite_blur_keeps_all() -> None:
    bdata = np.zeros((4, 2))
    assert psc.filter_labels(bdata, blur=np.inf).all()


def test_higher_blur_shows_more_labels() -> None:
    bdata = np.random.default_rng(1).normal(size=(200, 2))
    assert psc.filter_labels(bdata, blur=10).sum() >= psc.filter_labels(bdata, blur=0.1).sum()
