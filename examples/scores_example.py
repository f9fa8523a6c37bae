#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Example script to plot the scores of a PCA model, with and without new data
"""

import numpy as np
import pyscores_plots as sp

rng = np.random.default_rng(42)

# Calibration data with 3 groups and a PCA model of 3 PCs built with an SVD
X = np.vstack([rng.normal(loc=m, size=(30, 10)) for m in (-1, 0, 1)])
mx = X.mean(axis=0)
sx = X.std(axis=0, ddof=1)
Xcs = (X - mx) / sx
U, s, Vt = np.linalg.svd(Xcs, full_matrices=False)
model = {"T": U[:, :3] * s[:3], "P": Vt[:3].T, "mx": mx, "sx": sx,
         "var": np.sum(Xcs ** 2), "lvs": [1, 2, 3], "type": "pca"}

groups = ["low"] * 30 + ["mid"] * 30 + ["high"] * 30

# Scatter plots PC1-PC2, PC1-PC3 and PC2-PC3 coloured by group
sp.scores(model, tit="Calibration", classes=groups)

# One bar plot per PC: 90 observations, labels are thinned to the most distinct
sp.scores(model, opt=1, tit="Calibration bars", classes=groups)

# New observations next to the calibration ones
Xnew = rng.normal(size=(8, 10))
sp.scores(model, Xnew, tit="Calibration and test")

# New observations only, with their multiplicity shown in the marker size
sp.scores(model, Xnew, opt="01010", tit="Test only", mult=rng.integers(1, 150, size=8))

# Line plot of a vector with control limits
sp.vector_plot(model["T"][:, 0], classes=groups, opt=0, lcont=[-3, 3],
               xylabel=("Observation", "t [1]"))
