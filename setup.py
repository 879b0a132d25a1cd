"""Setup configuration for the Fafnir Discord bot."""

from setuptools import setup, find_packages

setup(
    name="fafnir-bot",
    version="0.1.0",
    description="Moderation and utility bot for the Fafnir Discord community",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.11",
    install_requires=[
        "py-cord>=2.4",
        "aiosqlite>=0.19",
        "aiohttp>=3.8",
        "PyYAML>=6.0",
        "python-dotenv>=1.0",
        "prompt_toolkit>=3.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.21",
        ],
    },
    entry_points={
        "console_scripts": [
            "fafnir=fafnir.main:main",
        ],
    },
)
