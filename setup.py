from setuptools import setup, find_packages

setup(
    name="tokenflow",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "pydantic>=2.0",
        "networkx>=3.0",
        "loguru>=0.7",
        "requests",
        "opentelemetry-api",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    python_requires=">=3.9",
)
