# pylint: disable=missing-module-docstring
from pathlib import Path

from setuptools import setup, find_packages

this_directory = Path(__file__).parent

with open(this_directory / "requirements.in", encoding="utf-8") as f:
    requirements = f.read().splitlines()

long_description = (this_directory / "README.md").read_text()

setup(
    name="sqsworker",
    version="0.1.0",
    description="sqsworker receives batches of messages from an SQS queue, passes them to "
    "handlers and deletes the successfully handled messages.",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="sqsworker Team",
    license="MIT license",
    classifiers=[
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=["setuptools"] + requirements,
    extras_require={
        "dev": [
            "pytest",
            "pytest-asyncio",
            "pytest-cov",
        ]
    },
    python_requires=">=3.11",
    entry_points={
        "console_scripts": [
            "sqsworker = sqsworker.run_sqsworker:cli",
        ]
    },
)
