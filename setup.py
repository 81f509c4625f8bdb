"""Setup script for the hydromon package."""

from setuptools import find_packages, setup

setup(
    name="hydromon",
    version="0.1.0",
    description="Hydroponic reservoir telemetry decoding and monitoring",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    install_requires=[
        "pymysql",
        "pyyaml",
        "python-dotenv",
        "paho-mqtt>=2.0.0",
        "aiohttp",
        "rich",
        "pydantic>=2",
    ],
    extras_require={
        "dev": [
            "pytest",
            "pytest-asyncio",
            "black",
            "isort",
            "mypy",
        ],
    },
    entry_points={
        "console_scripts": [
            "hydromon=hydromon.cli:main",
            "hydromon-ingest=hydromon.ingest:main",
            "hydromon-display=hydromon.display:main",
        ],
    },
)
