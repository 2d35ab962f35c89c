from setuptools import setup, find_packages


setup(
    name="gma",
    version="0.1",
    packages=find_packages(include=["gma", "gma.*"]),
    description="Reader, writer and command-line tool for .gma addon archives.",
    author="vercingetorx",
    python_requires=">=3.8",
    install_requires=[],
    entry_points={
        "console_scripts": [
            "gma=gma.cli:main",
        ]
    },
)
