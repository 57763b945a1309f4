# This should be only one line. If it must be multi-line, indent the second
# line onwards to keep the PKG-INFO file format intact.
"""Encrypted, per-environment secret storage for applications.
"""

from setuptools import find_packages, setup

version = open("src/secretstash/version.txt").read().strip()

setup(
    name="secretstash",
    version=version,
    install_requires=[
        "ConfigUpdater",
        "cryptography>=3.1",
        "py",
        "pyrage>=1.0", ],
    extras_require={
        "test": [
            "mock",
            "pytest",
            "pytest-coverage",
            "pytest-instafail",
            "pytest-timeout", ]},
    entry_points="""
        [console_scripts]
            secretstash = secretstash.main:main
    """,
    license="BSD (2-clause)",
    keywords="secrets encryption configuration",
    classifiers="""\
License :: OSI Approved :: BSD License
Programming Language :: Python
Programming Language :: Python :: 3
Programming Language :: Python :: 3 :: Only
Topic :: Security :: Cryptography
"""[:-1].split("\n"),
    description=__doc__.strip(),
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    packages=find_packages("src"),
    package_dir={"": "src"},
    package_data={"secretstash": ["version.txt"]},
    include_package_data=True,
    zip_safe=False,
    python_requires=">=3.8")
