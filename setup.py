from setuptools import setup, find_packages
import pathlib

def _parse_requirements(fname="requirements.txt"):
    lines = (pathlib.Path(__file__).parent / fname).read_text().splitlines()
    return [l.strip() for l in lines if l.strip() and not l.startswith("#")]

setup(
    name="feindexer",
    version="0.1.0",
    # only the feindexer package; test/ is not shipped
    packages=find_packages(include=["feindexer", "feindexer.*"]),
    # tell it about the standalone main.py driver
    py_modules=["main"],
    python_requires=">=3.9",
    install_requires=_parse_requirements(),
    extras_require={
        "test": ["pytest>=7"],
    },
    entry_points={
        "console_scripts": [
            # point the script at the standalone module main.py
            "feindexer = main:main",
        ],
    },

    author="Regas Apostolos-Nikolaos",
    author_email="regas.apn@gmail.com",
    description="MGI front-end search index builder (database → Solr cores)",
    url="https://github.com/AnrPg/AlethiOmics",
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
)
