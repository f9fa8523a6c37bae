import setuptools

with open("README.md", "r") as fh:
    long_description = fh.read()

setuptools.setup(
    name="pyscores",
    version="1.0",
    description="Score plots for PCA and PLS models: bar and scatter plots with readable labels, classes and multiplicity",
    long_description=long_description,
    long_description_content_type="text/markdown",
    py_modules = ["pyscores","pyscores_plots"],
    include_package_data=True,
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.9",
    install_requires=[
        "numpy",
        "scipy",
        "pandas>=1.5",
        "bokeh>=3",
        "matplotlib>=3.5",
    ],
    extras_require={
        "test": ["pytest"],
    },
) 
