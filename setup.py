
import os
from setuptools import setup


def read(fname):
    return open(os.path.join(os.path.dirname(__file__), fname)).read()


setup(
    name='periodicstats',
    version="1.0.0",
    license="MIT",
    keywords="soft-condensed particle-simulation structure-factor numba",
    description="periodicstats is a collection of spatial statistics for particle configurations in periodic simulation boxes.",
    long_description=read("README.md"),
    long_description_content_type="text/markdown",
    packages=["periodicstats",
              "periodicstats.box",
              "periodicstats.locality",
              "periodicstats.parallel",
              "periodicstats.utils",
              "periodicstats.density",
              "periodicstats.diffraction"],
    install_requires=["numpy", "numba"],
    extras_require={"test": ["pytest", "scipy"]},
    classifiers=["License :: OSI Approved :: MIT License",
                 "Programming Language :: Python :: 3",
                 ],
    zip_safe=False
)
