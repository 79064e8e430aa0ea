"""
Setup script for mastery-engine.

The mastery engine is the knowledge-tracking core of a self-study
language-learning application. It provides:

1. Credit-Propagation Graph - Which lessons/items implicitly practice others
2. Strength Model - Bounded per-item mastery with decay and challenge mode
3. Practice Sessions - Answer/retry/feedback state machine with hints

The 'mastery-engine' command exposes graph building, hint previews and an
interactive practice session.
"""

from setuptools import find_packages, setup

setup(
    name="mastery-engine",
    version="0.1.0",
    description="Credit-propagation graph, strength model and practice sessions for language learning",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    packages=find_packages(include=["mastery_engine", "mastery_engine.*"]),
    py_modules=["config"],
    python_requires=">=3.11",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # Logging
        "loguru>=0.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "mastery-engine=mastery_engine.cli.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Education",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
        "Topic :: Education :: Computer Aided Instruction (CAI)",
    ],
    keywords="learning mastery spaced-practice arabic education cli",
)
