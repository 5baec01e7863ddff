"""
Setup script for report-service project.

Allows development installation with `pip install -e .`
"""

from setuptools import setup, find_packages

setup(
    name="report-service",
    version="0.1.0",
    packages=find_packages(include=["report_service", "report_service.*"]),
    python_requires=">=3.11",
    install_requires=[
        "fastapi",
        "pydantic>=2",
        "pydantic-settings>=2",
        "python-dotenv",
        "playwright",
        "bleach[css]>=6",
        "pypdf>=3",
    ],
    extras_require={
        "test": [
            "pytest",
            "httpx",
        ],
    },
)
