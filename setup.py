# pylint: disable=missing-module-docstring
# ruff: noqa

from pathlib import Path

from setuptools import find_packages, setup


def read_long_description() -> str:
    """Return README contents for PyPI description."""
    readme_path = Path(__file__).with_name("README.md")
    return readme_path.read_text(encoding="utf-8") if readme_path.exists() else "Idea Refinery"


setup(
    name="idea-refinery",
    version="0.1.0",
    description="Guided pipeline refining a raw business idea into a validated concept",
    long_description=read_long_description(),
    long_description_content_type="text/markdown",
    python_requires=">=3.11",
    packages=find_packages(
        include=[
            "refinement_engine",
            "refinement_engine.*",
            "generators",
            "generators.*",
            "persistence",
            "persistence.*",
            "refinery_cli",
            "refinery_cli.*",
        ],
    ),
    include_package_data=True,
    install_requires=[
        "pydantic>=2.5",
        "pandas>=2.0",
        "httpx>=0.26",
        "openai>=1.0",
        "anthropic>=0.25",
        "python-dotenv>=1.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
        ],
    },
    entry_points={
        "console_scripts": [
            "idea-refine = refinery_cli.cli_entrypoints:run",
        ]
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
)
