#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Plots for pyScores

Score plots of PCA / PLS models drawn with Bokeh:

        * scores        one bar plot per component, or one scatter per pair of
                        components, for calibration and / or new observations
        * vector_plot   bar or line plot of one or more vectors, with labels
                        thinned on dense axes, classes, multiplicity and
                        control limits
        * scatter_plot  scatter plot with classes (legend or colorbar),
                        multiplicity (size, shape or depth) and labels
                        filtered by blur

Every routine returns the Bokeh figure(s) it builds. With show_plot=True the
figures are also written to a time-stamped HTML file and shown.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

import matplotlib
import numpy as np
import pandas as pd
import pyscores as psc
from bokeh.io import output_file, show
from bokeh.layouts import column
from bokeh.models import ColorBar, ColumnDataSource, Label, LabelSet, Legend, LinearColorMapper, Range1d, Span
from bokeh.plotting import figure

__all__ = ["scores", "vector_plot", "scatter_plot"]

TOOLS = "save,wheel_zoom,box_zoom,pan,reset,box_select,lasso_select"
_MARKERS = ("circle", "triangle", "square", "diamond", "inverted_triangle")

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _timestr() -> str:
    return datetime.now().strftime("%Y%m%d%H%M%S%f")


def _new_output_file(prefix: str, title: str) -> None:
    output_file(f"{prefix}_{_timestr()}.html", title=title, mode="inline")


def _make_bokeh_palette(n: int, cmap_name: str = "hsv") -> list[str]:
    cmap = matplotlib.colormaps[cmap_name]
    # hsv is cyclic, its last colour repeats the first
    rgba = cmap(np.linspace(0, 1, n, endpoint=cmap_name != "hsv"), alpha=1, bytes=True)
    return [f"#{r:02x}{g:02x}{b:02x}" for r, g, b in rgba[:, :3]]


def _add_origin_lines(p) -> None:
    p.renderers.extend([
        Span(location=0, dimension="height", line_color="black", line_width=1),
        Span(location=0, dimension="width",  line_color="black", line_width=1),
    ])


def _set_axis_labels(p, xylabel) -> None:
    p.xaxis.axis_label = str(xylabel[0])
    p.yaxis.axis_label = str(xylabel[1])
    p.xaxis.axis_label_text_font_size = "16pt"
    p.yaxis.axis_label_text_font_size = "16pt"
    p.axis.major_label_text_font_size = "14pt"


def _add_legend(p, legend_it: list) -> None:
    if legend_it:
        leg = Legend(items=legend_it)
        p.add_layout(leg, "right")
        leg.click_policy = "hide"


def _text(labels: np.ndarray) -> list[str]:
    return [str(e) for e in labels]


def _numeric(arr: np.ndarray) -> bool:
    return arr.dtype.kind in "iuf"


def _limits_matrix(lcont, n: int, routine: str) -> Optional[np.ndarray]:
    """Control limits as an N x L matrix; L constants are repeated on every row."""
    if lcont is None:
        return None
    lcont = np.array(lcont, dtype=float)
    if lcont.size == 0:
        return None
    if lcont.ndim <= 1:
        lcont = lcont.reshape(-1, 1)
    if lcont.shape[0] == n:
        return lcont
    if lcont.shape[1] == 1:
        return np.tile(lcont.T, (n, 1))
    raise psc.dimension_error(5, "N-by-L or L-by-1", routine)


# ---------------------------------------------------------------------------
# Public plotting functions
# ---------------------------------------------------------------------------

def vector_plot(
    vec,
    *,
    elabel=None,
    classes=None,
    xylabel=None,
    lcont=None,
    opt="1",
    vlabel=None,
    mult=None,
    maxv=psc.MULT_THRESHOLDS,
    title: str = "",
    plotwidth: int = 600,
    plotheight: int = 400,
    show_plot: bool = True,
    shush: bool = False,
):
    '''
    Bar or line plot of the columns of vec.

    vector_plot(vec,*,elabel=None,classes=None,xylabel=None,lcont=None,opt='1',
                vlabel=None,mult=None,maxv=(20,50,100))

    Args:
        vec:     [N x M] vector(s) to plot
        elabel:  [N] names of the elements (1..N by default). Numeric unique
                 names are also used as x positions.
        classes: [N] groups for the elements (a single group by default)
        xylabel: (xlabel, ylabel)
        lcont:   [N x L] or [L] control limits (none by default)
        opt:     '0' line plot | '1' bar plot (default)
        vlabel:  [M] names of the vectors (1..M by default)
        mult:    [N] multiplicity of each element (1s by default)
        maxv:    thresholds for the multiplicity marker sizes

    Returns:
        the Bokeh figure
    '''
    routine = "vector_plot"
    if vec is None:
        raise psc.ArgumentCountError(f"Error in the number of arguments. See help({routine}) for more info.")
    vec = np.array(vec, dtype=float)
    if vec.ndim == 0:
        vec = vec.reshape(1, 1)
    elif vec.ndim == 1:
        vec = vec.reshape(-1, 1)
    elif vec.shape[0] == 1:
        vec = vec.T
    N, M = vec.shape

    elabel = psc.as_vector(elabel)
    if elabel.size == 0:
        elabel = np.arange(1, N + 1)
    classes = psc.as_vector(classes)
    if xylabel is None:
        xylabel = ("", "")
    opt = str(int(opt)) if isinstance(opt, (int, np.integer)) else str(opt)
    vlabel = psc.as_vector(vlabel)
    if vlabel.size == 0:
        vlabel = np.arange(1, M + 1)
    mult = psc.as_vector(mult)
    if mult.size == 0:
        mult = np.ones(N)

    # Validate dimensions and values before drawing anything
    psc.check_size(elabel, N, 2, "N-by-1", routine)
    if classes.size:
        psc.check_size(classes, N, 3, "N-by-1", routine)
    if len(xylabel) != 2:
        raise psc.dimension_error(4, "a pair (xlabel, ylabel)", routine)
    lcont = _limits_matrix(lcont, N, routine)
    if len(opt) != 1:
        raise psc.dimension_error(6, "1-by-1", routine)
    psc.check_size(vlabel, M, 7, "M-by-1", routine)
    psc.check_size(mult, N, 8, "N-by-1", routine)
    maxv = psc.check_thresholds(maxv, routine=routine, pos=9)
    if opt not in ("0", "1"):
        raise ValueError(f"Value Error: 6th argument must contain a binary value. See help({routine}) for more info.")

    if opt == "1" and classes.size and M > 1:
        counts = pd.Series(classes).value_counts()
        if counts.min() <= 1:
            raise psc.UnsupportedConfigurationError(
                "Exception: Cannot visualize a multivariate bar plot with one-observation classes. "
                "Try setting the 6th argument to 1."
            )

    ord_classes, unique_classes = psc.normalize_classes(classes)
    if _numeric(elabel) and np.unique(elabel).shape[0] == N:
        pos = elabel.astype(float)
    else:
        pos = np.arange(1, N + 1, dtype=float)
    # bars, limit steps and padding follow the spacing of the positions
    step = float(np.min(np.diff(np.unique(pos)))) if N > 1 else 1.0
    names = _text(elabel)

    p = figure(tools=TOOLS, width=plotwidth, height=plotheight, title=title)

    # Multiplicity: open circles on the baseline, behind the data
    bins = psc.multiplicity_bins(mult, maxv)
    for j, size in enumerate(psc.multiplicity_sizes(), start=1):
        ind = bins == j
        if ind.any():
            p.scatter(x=pos[ind], y=np.zeros(int(ind.sum())), marker="circle", size=size,
                      fill_color=None, line_color="black")

    bar_width = 0.8 * step / M
    legend_it = []
    if unique_classes.size:
        palette = _make_bokeh_palette(unique_classes.shape[0])
        if opt == "0":
            for m in range(M):
                p.line(x=pos, y=vec[:, m], line_color="black")
        for i, (cls_val, color_) in enumerate(zip(unique_classes, palette), start=1):
            ind = ord_classes == i
            glyphs = []
            for m in range(M):
                if opt == "0":
                    g = p.scatter(x=pos[ind], y=vec[ind, m], marker="circle", size=8,
                                  fill_color=color_, line_color=color_)
                else:
                    offset = (m - (M - 1) / 2) * bar_width
                    g = p.vbar(x=pos[ind] + offset, top=vec[ind, m], width=bar_width,
                               fill_color=color_, line_color=None)
                glyphs.append(g)
            legend_it.append((str(cls_val), glyphs))
    else:
        palette = _make_bokeh_palette(M)
        for m, color_ in enumerate(palette):
            if opt == "0":
                g = p.line(x=pos, y=vec[:, m], line_width=2, line_color=color_)
            else:
                offset = (m - (M - 1) / 2) * bar_width
                g = p.vbar(x=pos + offset, top=vec[:, m], width=bar_width,
                           fill_color=color_, line_color=None)
            legend_it.append((str(vlabel[m]), [g]))
    _add_legend(p, legend_it)

    # Control limits, one step per element
    if lcont is not None:
        xs = np.repeat(pos, 2) + np.tile([-0.5 * step, 0.5 * step], N)
        for k in range(lcont.shape[1]):
            p.line(x=xs, y=np.repeat(lcont[:, k], 2), line_color="red",
                   line_dash="dashed", line_width=2)

    # Labels of the first vector
    idx_top = psc.select_labels(vec[:, 0]) if N > psc.DENSE_N else np.arange(N)
    if not shush and len(idx_top) < N:
        print(f"vector_plot: labelling {len(idx_top)} of {N} elements")
    font_size = round(psc.label_font_size(N), 1)
    for i in idx_top:
        val = vec[i, 0]
        if np.isnan(val):
            continue
        p.add_layout(Label(x=pos[i], y=psc.LABEL_HEIGHT * val, text=names[i],
                           angle=np.pi / 2, text_align="left" if val > 0 else "right",
                           text_baseline="middle", text_font_size=f"{font_size}pt"))

    _set_axis_labels(p, xylabel)

    plotted = [vec.ravel(), [0.0]]
    if lcont is not None:
        plotted.append(lcont.ravel())
    values = np.concatenate(plotted)
    values = values[np.isfinite(values)]
    ax = psc.auto_range(values.min(), values.max())
    ax_adj = psc.adjust_axis_range(ax, np.nanmin(vec) if np.isfinite(vec).any() else 0.0,
                                   labelled=len(idx_top) > 0)
    if ax_adj != ax:
        p.x_range = Range1d(pos.min() - 0.5 * step, pos.max() + 0.5 * step)
        p.y_range = Range1d(*ax_adj)

    if show_plot:
        _new_output_file("Vector_Plot", title or "Vector Plot")
        show(p)
    return p


def scatter_plot(
    bdata,
    *,
    elabel=None,
    classes=None,
    xylabel=None,
    lcont=None,
    opt="00000",
    mult=None,
    maxv=psc.MULT_THRESHOLDS,
    blur=1,
    marker_size: int = 7,
    title: str = "",
    plotwidth: int = 600,
    plotheight: int = 600,
    show_plot: bool = True,
):
    '''
    Scatter plot of the two columns of bdata.

    Args:
        bdata:   [N x 2] coordinates
        elabel:  [N] names of the points (no labels by default)
        classes: [N] groups of the points (a single group by default)
        xylabel: (xlabel, ylabel)
        lcont:   (xlimits, ylimits) control limits, scalars or sequences
        opt:     option descriptor, as in decode_options (or its output).
                 The class digit selects a legend (categorical) or a colorbar
                 (numeric); the multiplicity digits select size, shape or
                 depth (marker transparency) encoding.
        mult:    [N] multiplicity of each point (1s by default)
        maxv:    thresholds for the multiplicity bins
        blur:    the higher, the more labels are shown (Inf shows all)
    '''
    routine = "scatter_plot"
    if bdata is None:
        raise psc.ArgumentCountError(f"Error in the number of arguments. See help({routine}) for more info.")
    bdata = np.array(bdata, dtype=float)
    if bdata.ndim != 2 or bdata.shape[1] != 2:
        raise psc.dimension_error(1, "N-by-2", routine)
    N = bdata.shape[0]

    elabel = psc.as_vector(elabel)
    classes = psc.as_vector(classes)
    if xylabel is None:
        xylabel = ("", "")
    opts = opt if isinstance(opt, dict) else psc.decode_options(opt, routine=routine, pos=6)
    mult = psc.as_vector(mult)
    if mult.size == 0:
        mult = np.ones(N)

    if elabel.size:
        psc.check_size(elabel, N, 2, "N-by-1", routine)
    if classes.size:
        psc.check_size(classes, N, 3, "N-by-1", routine)
    if len(xylabel) != 2:
        raise psc.dimension_error(4, "a pair (xlabel, ylabel)", routine)
    if lcont is not None and len(lcont) != 2:
        raise psc.dimension_error(5, "a pair (xlimits, ylimits)", routine)
    psc.check_size(mult, N, 7, "N-by-1", routine)
    maxv = psc.check_thresholds(maxv, routine=routine, pos=8)
    if np.ndim(blur) != 0:
        raise psc.dimension_error(9, "1-by-1", routine)
    if not blur > 0:
        raise ValueError(f"Value Error: 9th argument must be positive. See help({routine}) for more info.")

    numeric_classes = opts["classes"] == "numeric" and classes.size > 0
    if numeric_classes:
        try:
            class_values = classes.astype(float)
        except ValueError:
            raise ValueError(
                f"Value Error: 3rd argument must be numeric for numerical classes. See help({routine}) for more info."
            ) from None
    ord_classes, unique_classes = psc.normalize_classes(classes)
    if not classes.size:
        ord_classes = np.ones(N, dtype=int)

    # Multiplicity encoding
    mode = opts["mult_mode"]
    bins = np.maximum(psc.multiplicity_bins(mult, maxv), 1) if opts["multiplicity"] else np.ones(N, dtype=int)
    nbins = len(psc.multiplicity_sizes())
    sizes = marker_size * bins if mode in ("size", "size+zaxis") else np.full(N, marker_size)
    markers = [_MARKERS[b - 1] for b in bins] if mode == "shape" else ["circle"] * N
    if mode == "zaxis":
        depth = bins
        ndepth = nbins
    elif mode == "size+zaxis":
        depth = ord_classes
        ndepth = max(int(ord_classes.max()), 1) if N else 1
    else:
        depth = np.ones(N, dtype=int)
        ndepth = 1
    alphas = 0.2 + 0.8 * (depth - 1) / max(ndepth - 1, 1) if ndepth > 1 else np.full(N, 0.8)

    names = _text(elabel) if elabel.size else [str(n) for n in range(1, N + 1)]
    data = dict(
        x=bdata[:, 0], y=bdata[:, 1], ObsID=names,
        ObsNum=[str(n) for n in range(1, N + 1)],
        Class=[str(c) for c in classes] if classes.size else [""] * N,
        Mult=mult, size=sizes, marker=markers, alpha=alphas,
    )
    TOOLTIPS = [("Obs #", "@ObsNum"), ("(x,y)", "($x, $y)"), ("Obs: ", "@ObsID")]
    if classes.size:
        TOOLTIPS.append(("Class:", "@Class"))
    if opts["multiplicity"]:
        TOOLTIPS.append(("Multiplicity:", "@Mult"))

    p = figure(tools=TOOLS, tooltips=TOOLTIPS, width=plotwidth, height=plotheight,
               title=title, toolbar_location="above" if classes.size else "right")
    empty = opts["empty_marks"]

    if numeric_classes:
        data["ClassValue"] = class_values
        src = ColumnDataSource(data)
        low, high = float(np.nanmin(class_values)), float(np.nanmax(class_values))
        if low == high:
            high = low + 1
        mapper = LinearColorMapper(palette=_make_bokeh_palette(256, "viridis"), low=low, high=high)
        color_ = {"field": "ClassValue", "transform": mapper}
        p.scatter("x", "y", source=src, size="size", marker="marker",
                  fill_color=None if empty else color_, line_color=color_, fill_alpha="alpha")
        p.add_layout(ColorBar(color_mapper=mapper, width=8), "right")
    else:
        palette = _make_bokeh_palette(max(unique_classes.shape[0], 1))
        legend_it = []
        for i, color_ in enumerate(palette, start=1):
            ind = ord_classes == i
            src = ColumnDataSource({k: np.asarray(v)[ind] for k, v in data.items()})
            c = p.scatter("x", "y", source=src, size="size", marker="marker",
                          fill_color=None if empty else color_, line_color=color_,
                          fill_alpha="alpha")
            if unique_classes.size:
                legend_it.append((str(unique_classes[i - 1]), [c]))
        _add_legend(p, legend_it)

    if elabel.size:
        keep = psc.filter_labels(bdata, blur)
        lbl_src = ColumnDataSource(dict(x=bdata[keep, 0], y=bdata[keep, 1],
                                        names=[n for n, k in zip(names, keep) if k]))
        p.add_layout(LabelSet(x="x", y="y", text="names", level="glyph",
                              x_offset=5, y_offset=5, source=lbl_src))

    if lcont is not None:
        for dimension, limits in zip(("height", "width"), lcont):
            for lim in np.atleast_1d(np.asarray(limits, dtype=float)):
                p.add_layout(Span(location=float(lim), dimension=dimension,
                                  line_color="red", line_dash="dashed", line_width=2))

    _set_axis_labels(p, xylabel)
    _add_origin_lines(p)

    if show_plot:
        _new_output_file("Scatter_Plot", title or "Scatter Plot")
        show(p)
    return p


def scores(
    model: dict,
    test=None,
    *,
    opt=0,
    tit: str = "",
    label=None,
    classes=None,
    blur=1,
    mult=None,
    plotwidth: int = 600,
    plotheight: Optional[int] = None,
    show_plot: bool = True,
    shush: bool = False,
) -> list:
    '''
    Score plots of a model and, optionally, of new observations.

    scores(model,test=None,*,opt=0,tit='',label=None,classes=None,blur=1,mult=None)

    Args:
        model:   model dictionary (T, P, mx, sx, var, lvs[, TV, type])
        test:    [L x M] new observations, or a DataFrame with the observation
                 ids in the first column
        opt:     binary code 'abcde' (see pyscores.decode_options). By default
                 '00000': scatter plots of calibration and test scores with
                 categorical classes.
        tit:     title for every plot
        label:   [K] K=N+L (b=0) or K=L (b=1), names of the observations
                 (1..N then 1..L by default)
        classes: [K] groups of the observations (calibration in 1, test in 2
                 by default)
        blur:    the higher, the more labels in the scatter plots
        mult:    [K] multiplicity of the observations (1s by default)
        plotwidth, plotheight: size of each figure. Without plotheight, bar
                 plots are 400 high and scatter plots are square.

    Returns:
        list of Bokeh figures: one bar plot per component when a single
        component is selected or a=1, otherwise one scatter per pair of
        components (1-2, 1-3, ..., 2-3, ...)
    '''
    routine = "scores"
    mdl = psc.parse_model(model, routine=routine)
    N = mdl["T"].shape[0]
    M = mdl["P"].shape[0]
    A = len(mdl["lvs"])

    test_ids = None
    if test is None:
        Xt = np.zeros((0, M))
    elif isinstance(test, pd.DataFrame):
        test_ids = test.values[:, 0].astype(str)
        Xt = np.array(test.values[:, 1:]).astype(float)
    else:
        Xt = np.array(test, dtype=float)
        if Xt.size == 0:
            Xt = np.zeros((0, M))
        elif Xt.ndim == 1:
            Xt = Xt.reshape(1, -1)
    L = Xt.shape[0]
    if L and (Xt.ndim != 2 or Xt.shape[1] != M):
        raise psc.dimension_error(2, "L-by-M", routine)

    opts = psc.decode_options(opt, routine=routine, pos=3)
    test_only = opts["scope"] == "test"
    if test_only and L == 0:
        if not shush:
            print("scores: no test observations, plotting the calibration scores")
        test_only = False
    K = L if test_only else N + L

    test_labels = test_ids if test_ids is not None else np.arange(1, L + 1)
    label = psc.as_vector(label)
    if label.size == 0:
        if test_only:
            label = np.asarray(test_labels)
        else:
            label = np.concatenate((np.arange(1, N + 1).astype(object), np.asarray(test_labels, dtype=object)))
    classes = psc.as_vector(classes)
    if classes.size == 0:
        classes = np.ones(L, dtype=int) if test_only else np.concatenate((np.ones(N, dtype=int), 2 * np.ones(L, dtype=int)))
    mult = psc.as_vector(mult)
    if mult.size == 0:
        mult = np.ones(K)

    psc.check_size(label, K, 5, "K-by-1", routine)
    psc.check_size(classes, K, 6, "K-by-1", routine)
    if np.ndim(blur) != 0:
        raise psc.dimension_error(7, "1-by-1", routine)
    if mult.ndim != 1 or mult.shape[0] != K:
        raise psc.DimensionError(f"Dimension Error: mult must be K-by-1. See help({routine}) for more info.")

    # Variance explained by the calibration scores, even if others are shown
    pct = psc.variance_percent(mdl["T"], mdl["var"])
    T = mdl["TV"] if mdl["TV"] is not None else mdl["T"]
    TT = psc.scores_pred(Xt, mdl) if L else np.zeros((0, A))
    Tt = TT if test_only else np.vstack((T, TT))

    dim = "LV" if mdl["type"] == "pls" else "PC"
    ax_lbl = [f"Scores {dim} {lv} ({np.floor(pc + 0.5):.0f}%)" for lv, pc in zip(mdl["lvs"], pct)]

    fig_h = []
    if A == 1 or opts["layout"] == "bar":
        for i in range(A):
            p = vector_plot(Tt[:, i], elabel=label, classes=classes, xylabel=("", ax_lbl[i]),
                            mult=mult, plotwidth=plotwidth, plotheight=plotheight or 400,
                            show_plot=False, shush=shush)
            p.title.text = tit
            fig_h.append(p)
    else:
        for i in range(A - 1):
            for j in range(i + 1, A):
                p = scatter_plot(Tt[:, [i, j]], elabel=label, classes=classes,
                                 xylabel=(ax_lbl[i], ax_lbl[j]), opt=opts, mult=mult,
                                 blur=blur, plotwidth=plotwidth, plotheight=plotheight or plotwidth,
                                 show_plot=False)
                p.title.text = tit
                fig_h.append(p)

    if not shush:
        print(f"scores: {len(fig_h)} plot(s) of {dim}s {mdl['lvs']} executed on: {datetime.now()}")
    if show_plot and fig_h:
        _new_output_file("Scores", tit or "Scores")
        show(column(fig_h))
    return fig_h
