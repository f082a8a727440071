"""Setup configuration for Map/Report Filter Sync package."""

from setuptools import setup, find_namespace_packages

setup(
    name="map-report-filter-sync",
    version="1.0.0",
    description="Bidirectional filter synchronization between an embedded report and a web map",
    author="Alex",
    author_email="",
    packages=find_namespace_packages(include=["src", "src.*", "config"]),
    package_data={"config": ["*.yaml"]},
    python_requires=">=3.11",
    install_requires=[
        "duckdb>=1.0.0",
        "pandas>=2.1.0",
        "numpy>=1.26.0",
        "python-dotenv>=1.0.0",
        "pyyaml>=6.0",
        "tenacity>=8.2.0",
        "pydantic>=2.5.0",
    ],
    extras_require={
        "dev": [
            "pytest>=8.0.0",
            "pytest-cov>=4.1.0",
            "black>=24.1.0",
            "ruff>=0.2.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "filtersync-replay=src.replay:main",
        ],
    },
)
