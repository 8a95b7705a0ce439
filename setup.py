from setuptools import find_packages, setup

setup(
    name="vaultmap",
    version="0.1.0",
    packages=find_packages(include=["vaultmap", "vaultmap.*"]),
    package_data={"vaultmap": ["config.yaml"]},
    python_requires=">=3.10",
    install_requires=[
        "numpy",
        "scipy",
        "networkx",
        "pydantic>=2",
        "PyYAML",
        "typer",
        "prometheus-client",
    ],
    extras_require={
        "test": ["pytest", "hypothesis"],
    },
    entry_points={"console_scripts": ["vaultmap=vaultmap.cli:app_cli"]},
)
