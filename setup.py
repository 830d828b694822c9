from setuptools import setup, find_packages
from pathlib import Path

readme_path = Path(__file__).parent / "README.md"
if readme_path.exists():
    long_description = readme_path.read_text(encoding="utf-8")
else:
    long_description = "Declarative model validation and validate-then-map translation of untyped input into model classes."

setup(
    name="model_translator",
    version="0.1.0",
    description="Declarative model validation and translation of untyped input into model classes",
    long_description=long_description,
    long_description_content_type="text/markdown",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.10",
    install_requires=[
        "pydantic>=2.5",  # Constraint engine for compiled schemas
        "pyyaml>=6.0",  # Declarative class validation documents
        "jsonschema>=4.20.0",  # Checks declaration documents before they are applied
    ],
    extras_require={
        "dev": [
            "pytest",
            "coverage",
            "hypothesis",
            "parameterized==0.9.0",
        ],
    },
)
