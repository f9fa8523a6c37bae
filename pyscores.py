"""
Scores for Python (pyScores)

Computations behind the score plots of PCA / PLS models:

        * decoding of the binary option descriptor used by the score plots
        * class ordinals in order of appearance (for colours and legends)
        * multiplicity bins and marker sizes
        * selection of a readable subset of labels on dense axes
        * axis-range correction so that rotated labels are not clipped
        * variance percentages and projection of new observations

Models are dictionaries, the same kind the PCA and PLS routines produce:

        T   : [N x A] scores               P   : [M x A] loadings
        mx  : [M] centering parameters     sx  : [M] scaling parameters
        var : total variance               lvs : selected components (1-based)
        TV  : [N x A] scores to display instead of T (optional)
        Ws  : [M x A] PLS weights, used instead of P to project (optional)
        type: 'pca' | 'pls'
"""

from __future__ import annotations

import numpy as np
import pandas as pd
from scipy.stats import zscore

DENSE_N = 25
MULT_THRESHOLDS = (20, 50, 100)
FONT_SIZE_MAX = 16
FONT_SIZE_MIN = 8
RANGE_FACTOR = 1.25
# labels sit half way between the baseline and 75% of the value
LABEL_HEIGHT = 0.375

_MULT_MODES = {"00": "size", "01": "shape", "10": "zaxis", "11": "size+zaxis"}
_ORDINALS = {1: "1st", 2: "2nd", 3: "3rd"}


class ArgumentCountError(TypeError):
    """A required input was not supplied."""


class DimensionError(ValueError):
    """An input does not have the size required by its position."""


class UnsupportedConfigurationError(ValueError):
    """The combination of inputs cannot be drawn."""


def nth(pos: int) -> str:
    return _ORDINALS.get(pos, f"{pos}th")


def dimension_error(pos: int, shape: str, routine: str) -> DimensionError:
    return DimensionError(
        f"Dimension Error: {nth(pos)} argument must be {shape}. See help({routine}) for more info."
    )


def as_vector(x) -> np.ndarray:
    """Resolve labels / classes / multiplicities into a 1-D array.

    None gives an empty array, a single string is one element, row or column
    matrices are flattened. Anything else is returned as it came so that the
    size checks downstream can reject it.
    """
    if x is None:
        return np.array([])
    if isinstance(x, str):
        x = [x]
    if isinstance(x, (pd.Series, pd.DataFrame, pd.Index)):
        x = x.to_numpy()
    arr = np.asarray(x)
    if arr.ndim == 0:
        arr = arr.reshape(1)
    elif arr.ndim == 2 and 1 in arr.shape:
        arr = arr.ravel()
    return arr


def check_size(arr: np.ndarray, n: int, pos: int, shape: str, routine: str) -> None:
    if arr.ndim != 1 or arr.shape[0] != n:
        raise dimension_error(pos, shape, routine)


# ---------------------------------------------------------------------------
# Options
# ---------------------------------------------------------------------------

def decode_options(opt=0, *, routine: str = "scores", pos: int = 3) -> dict:
    '''
    Decode the option descriptor of the score plots.

    opt is a binary code 'abcde' (str or int, an int is read digit by digit
    in decimal, so 1 means '1', i.e. a=1):
        a: 0 scatter plot of pairs of components | 1 bar plot of each component
        b: 0 calibration and test data           | 1 only test data
        c: 0 categorical classes (legend)        | 1 numerical classes (colorbar)
        d: 0 no multiplicity                     | 1 multiplicity
        e: (d=0) 0 filled marks | 1 empty marks
        ef:(d=1) 00 size | 01 shape | 10 z-axis | 11 size and z-axis

    Missing digits are set to 0. The class digit is inverted in the returned
    'code' (1 = categorical), which is what the drawing routines read.
    '''
    if opt is None:
        opt = 0
    if isinstance(opt, (bool, np.bool_)) or not isinstance(opt, (str, int, np.integer)):
        raise DimensionError(
            f"Dimension Error: {nth(pos)} argument must be a string or num of at least 5 bits. "
            f"See help({routine}) for more info."
        )
    code = opt if isinstance(opt, str) else str(int(opt))

    while len(code) < 5:
        code += "0"
    if len(code) < 6 and code[3] == "1":
        code += "0"

    if any(c not in "01" for c in code):
        raise ValueError(
            f"Value Error: {nth(pos)} argument must contain binary values. See help({routine}) for more info."
        )

    code = code[:2] + ("1" if code[2] == "0" else "0") + code[3:]

    multiplicity = code[3] == "1"
    return {
        "code": code,
        "layout": "bar" if code[0] == "1" else "scatter",
        "scope": "test" if code[1] == "1" else "all",
        "classes": "categorical" if code[2] == "1" else "numeric",
        "multiplicity": multiplicity,
        "mult_mode": _MULT_MODES[code[4:6]] if multiplicity else None,
        "empty_marks": (not multiplicity) and code[4] == "1",
    }


# ---------------------------------------------------------------------------
# Classes and multiplicity
# ---------------------------------------------------------------------------

def normalize_classes(classes):
    """Ordinals 1..K for each element, numbered in order of first appearance.

    Returns (ordinals, unique_classes). An empty input gives two empty arrays.
    """
    classes = as_vector(classes)
    if classes.size == 0:
        return np.zeros(0, dtype=int), np.array([], dtype=object)
    codes, uniques = pd.factorize(classes, sort=False, use_na_sentinel=False)
    return codes.astype(int) + 1, np.asarray(uniques, dtype=object)


def check_thresholds(maxv, *, routine: str = "vector_plot", pos: int = 9) -> np.ndarray:
    maxv = np.asarray(maxv, dtype=float).ravel()
    if maxv.shape[0] != 3:
        raise dimension_error(pos, "1-by-3", routine)
    if np.any(np.diff(maxv) <= 0):
        raise ValueError(
            f"Value Error: {nth(pos)} argument must be ascending. See help({routine}) for more info."
        )
    return maxv


def multiplicity_bins(mult, maxv=MULT_THRESHOLDS) -> np.ndarray:
    '''
    Bin index (1-based) of each multiplicity.

    Edges are [0, 1, t1, t2, t3, Inf]: the first bin is [0, 1], the rest are
    open on the left and closed on the right. Values in no bin (negative or
    NaN) get 0.
    '''
    mult = np.asarray(mult, dtype=float).ravel()
    edges = np.concatenate(([0.0, 1.0], check_thresholds(maxv), [np.inf]))
    bins = np.zeros(mult.shape[0], dtype=int)
    bins[(mult >= edges[0]) & (mult <= edges[1])] = 1
    for j in range(1, len(edges) - 1):
        bins[(mult > edges[j]) & (mult <= edges[j + 1])] = j + 1
    return bins


def multiplicity_sizes(nbins: int = 5) -> list[int]:
    return [int(np.round(0.5 * i ** 2 * np.pi)) for i in range(1, nbins + 1)]


# ---------------------------------------------------------------------------
# Labels and axes
# ---------------------------------------------------------------------------

def _nearest_contrast(v: np.ndarray, k: int) -> np.ndarray:
    # smaller in magnitude of v[i]-v[i+k] and v[i]-v[i-k]; ties go forward
    n = v.shape[0]
    out = np.zeros(n)
    if n > 2 * k:
        fwd = v[k:n - k] - v[2 * k:]
        bwd = v[k:n - k] - v[:n - 2 * k]
        out[k:n - k] = np.where(np.abs(bwd) < np.abs(fwd), bwd, fwd)
    return out


def select_labels(vec, *, dense_n: int = DENSE_N) -> np.ndarray:
    '''
    Indices (0-based) of the elements of vec worth labelling.

    Up to dense_n elements every element is labelled. Above that, each element
    gets its smallest neighbour difference at offsets 1, 2 and 3; together
    with the values themselves these form a 4-column matrix (first and last
    rows set to 0) that is autoscaled and reduced to its first left singular
    vector U. The round(N*(1-|dense_n-N|/N)) elements with the largest U**2
    are kept, in decreasing order of U**2 (ties by position).
    '''
    v = np.asarray(vec, dtype=float)
    if v.ndim > 1:
        v = v[:, 0]
    n = v.shape[0]
    if n <= dense_n:
        return np.arange(n)

    ons = np.column_stack([_nearest_contrast(v, k) for k in (1, 2, 3)])
    rows = np.arange(n)
    col = np.argmin(np.abs(ons), axis=1)
    onsdiff = np.zeros((n, 3))
    onsdiff[rows, col] = ons[rows, col]

    vecmtrx = np.column_stack((onsdiff, v))
    vecmtrx[[0, -1], :] = 0  # edge labels look bad on long axes
    with np.errstate(invalid="ignore", divide="ignore"):
        vecmtrx = np.nan_to_num(zscore(vecmtrx, axis=0, ddof=1))
    U, _, _ = np.linalg.svd(vecmtrx, full_matrices=False)

    top_labels = int(np.round((1 - abs(dense_n - n) / n) * n))
    top_labels = min(max(top_labels, 0), n)
    # equal rows (the zeroed edges) must tie exactly
    score = np.round(U[:, 0] ** 2, 12)
    idx = np.argsort(-score, kind="stable")
    return idx[:top_labels]


def label_font_size(n: int, *, dense_n: int = DENSE_N,
                    max_size: float = FONT_SIZE_MAX, min_size: float = FONT_SIZE_MIN) -> float:
    """Font size for n labels: 75/|n-dense_n| + 10, clipped to [min_size, max_size]."""
    if n == dense_n:
        return max_size
    return max(min(75 / abs(n - dense_n) + 10, max_size), min_size)


def auto_range(lo: float, hi: float, *, pad: float = 0.05) -> tuple[float, float]:
    """Range an autoscaling axis would show for data in [lo, hi]."""
    span = hi - lo
    if span == 0:
        span = abs(hi) if hi != 0 else 1.0
    return lo - pad * span, hi + pad * span


def adjust_axis_range(ax, vmin: float, labelled: bool) -> tuple[float, float]:
    '''
    Widen an autoscaled range (lo, hi) so rotated labels below zero fit.

    Only when labels were drawn and some value is negative: both ends move to
    RANGE_FACTOR times the largest absolute end, keeping their signs.
    '''
    lo, hi = float(ax[0]), float(ax[1])
    if not labelled or not vmin < 0:
        return lo, hi
    lim = RANGE_FACTOR * max(abs(lo), abs(hi))
    return lim * float(np.sign(lo)), lim * float(np.sign(hi))


def filter_labels(bdata, blur=1) -> np.ndarray:
    '''
    Boolean mask of the points of a scatter whose labels can be shown.

    Points are visited from the farthest to the origin inwards; a label is
    dropped when it lies within span/(50*blur) on both axes of one already
    kept. The higher blur, the more labels; blur=Inf keeps them all.
    '''
    bdata = np.asarray(bdata, dtype=float)
    n = bdata.shape[0]
    keep = np.zeros(n, dtype=bool)
    if n == 0:
        return keep
    if np.isinf(blur):
        keep[:] = True
        return keep

    delta = np.ptp(bdata, axis=0) / (50 * blur)
    order = np.argsort(-np.sum(bdata ** 2, axis=1), kind="stable")
    kept = np.zeros((0, 2))
    for i in order:
        close = np.all(np.abs(kept - bdata[i]) <= delta, axis=1)
        if not close.any():
            keep[i] = True
            kept = np.vstack((kept, bdata[[i]]))
    return keep


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------

def _as_matrix(x) -> np.ndarray:
    arr = np.array(x, dtype=float)
    if arr.ndim == 1:
        arr = arr.reshape(-1, 1)
    return arr


def parse_model(model, *, routine: str = "scores") -> dict:
    '''
    Check a model dictionary and return a normalized copy.

    T and P (or Ws) are cut to the len(lvs) components that are plotted;
    mx and sx default to no centering and no scaling.
    '''
    if model is None:
        raise ArgumentCountError(f"Error in the number of arguments. See help({routine}) for more info.")
    missing = [k for k in ("T", "var") if k not in model]
    if "P" not in model and "Ws" not in model:
        missing.append("P")
    if missing:
        raise ArgumentCountError(
            f"Error in the number of arguments: model has no {', '.join(missing)}. "
            f"See help({routine}) for more info."
        )

    T = _as_matrix(model["T"])
    P = _as_matrix(model["Ws"] if "Ws" in model else model["P"])
    lvs = [int(a) for a in np.atleast_1d(model.get("lvs", np.arange(1, T.shape[1] + 1)))]
    A = len(lvs)
    M = P.shape[0]
    if A == 0 or A > T.shape[1] or P.shape[1] != T.shape[1]:
        raise dimension_error(1, "a model with T [N x A] and P [M x A], A >= len(lvs)", routine)
    if min(lvs) < 1:
        raise ValueError(f"Value Error: model lvs must be positive. See help({routine}) for more info.")

    mx = np.asarray(model.get("mx", np.zeros(M)), dtype=float).ravel()
    sx = np.asarray(model.get("sx", np.ones(M)), dtype=float).ravel()
    if mx.shape[0] != M or sx.shape[0] != M:
        raise dimension_error(1, "a model with mx and sx of length M", routine)

    var = float(model["var"])
    if not var > 0:
        raise ValueError(f"Value Error: model var must be positive. See help({routine}) for more info.")

    TV = model.get("TV")
    if TV is not None:
        TV = _as_matrix(TV)
        if TV.shape != T.shape:
            raise dimension_error(1, "a model with TV the same size as T", routine)
        TV = TV[:, :A]

    if "type" in model:
        kind = str(model["type"]).lower()
    else:
        kind = "pls" if "Q" in model else "pca"

    return {"T": T[:, :A], "P": P[:, :A], "mx": mx, "sx": sx, "var": var,
            "lvs": lvs, "TV": TV, "type": kind}


def variance_percent(T, total_var: float) -> np.ndarray:
    """Percentage of the total variance in each column of the scores T."""
    T = _as_matrix(T)
    return 100 * np.sum(T ** 2, axis=0) / total_var


def scores_pred(Xnew, model: dict) -> np.ndarray:
    '''
    Scores of new observations: ((Xnew - mx) / sx) @ P

    Xnew: [L x M] numpy array, or a DataFrame with the observation ids in the
          first column. Rows with missing values (NaN) are projected to the
          model plane using only the variables that were measured.
    model: model dictionary (see parse_model)
    '''
    model = parse_model(model)
    P = model["P"]
    if isinstance(Xnew, pd.DataFrame):
        X_ = np.array(Xnew.values[:, 1:]).astype(float)
    else:
        X_ = np.array(Xnew, dtype=float)
        if X_.size == 0:
            return np.zeros((0, P.shape[1]))
        if X_.ndim == 1:
            X_ = np.reshape(X_, (1, -1))
    if X_.shape[0] == 0:
        return np.zeros((0, P.shape[1]))
    if X_.shape[1] != P.shape[0]:
        raise dimension_error(2, "L-by-M", "scores")

    Xmcs = (X_ - model["mx"]) / model["sx"]
    X_nan_map = np.isnan(Xmcs)
    if not X_nan_map.any():
        return Xmcs @ P

    tnew = np.zeros((X_.shape[0], P.shape[1]))
    for i in range(X_.shape[0]):
        measured = ~X_nan_map[i]
        tempP = P[measured, :]
        tnew[i], *_ = np.linalg.lstsq(tempP.T @ tempP, tempP.T @ Xmcs[i, measured], rcond=None)
    return tnew
