"""Package setup script."""
import sys

import setuptools

setuptools.setup(
    name="pilco-control",
    version="0.1",
    description="Moment matching of squashed controllers for PILCO",
    author="Eric Langlois",
    author_email="edl@cs.toronto.edu",
    license="MIT",
    packages=setuptools.find_packages(),
    install_requires=["numpy>=1.15.3"],
    extras_require={"test": ["pytest>=3.4.1"]},
    tests_require=["pytest>=3.4.1"],
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3.7",
        "Topic :: Scientific/Engineering :: Artificial Intelligence",
    ],
)

target_version = (3, 7, 0)
if sys.version_info < target_version:
    print("WARNING:")
    print(
        "Package is designed for Python at least {}\n"
        "but you are using Python {}.".format(
            ".".join(str(x) for x in target_version),
            ".".join(str(x) for x in sys.version_info),
        )
    )
