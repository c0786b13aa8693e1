"""setuptools setup for QuestLog.

Install for development:
    pip install -e ".[test]"
"""

from setuptools import find_packages, setup

setup(
    name="questlog",
    version="0.1.0",
    description="Daily quest tracker with a single focus timer, XP and levels",
    python_requires=">=3.10",
    packages=find_packages(include=["questlog", "questlog.*"]),
    install_requires=["PyQt6"],
    extras_require={"test": ["pytest"]},
)
