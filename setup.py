"""Package the livechart chart engine, CLI and viewer."""

from setuptools import setup

setup(
    name="livechart",
    version="0.1.0",
    description="Windowed, stacked, pannable live time-series chart engine",
    python_requires=">=3.9",
    package_dir={"": "python"},
    packages=["livechart", "livechart.viewer"],
    install_requires=["numpy"],
    extras_require={
        "viewer": ["dearpygui"],
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "livechart=livechart.cli:main",
            "livechart-viewer=livechart.viewer:launch",
        ],
    },
)
