#!/usr/bin/env python

"""The setup script."""

from setuptools import find_packages, setup

with open("requirements.txt") as f:
    requirements = f.read().strip().split("\n")

with open("README.md") as f:
    long_description = f.read()

with open("dimgroups/_version.py") as f:
    version = f.read().split("=")[1].strip().strip("\"")

setup(
    maintainer="dimgroups developers",
    python_requires=">=3.10",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "License :: OSI Approved :: Apache Software License",
        "Natural Language :: English",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Scientific/Engineering",
        "Operating System :: OS Independent",
        "Intended Audience :: Science/Research",
    ],
    description="GroupBy along labeled dimensions of xarray objects",
    install_requires=requirements,
    extras_require={
        "test": ["pytest", "hypothesis", "packaging", "asv_runner"],
        "all": ["dask[array]", "cftime"],
    },
    license="Apache Software License 2.0",
    long_description=long_description,
    long_description_content_type="text/markdown",
    include_package_data=True,
    keywords="dimgroups",
    name="dimgroups",
    version=version,
    packages=find_packages(include=["dimgroups", "dimgroups.*"]),
    zip_safe=False,
)
