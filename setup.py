from setuptools import find_namespace_packages, setup


setup(
    name="host-watch",
    version="0.1.0",
    description="ICMP reachability watchdog that alerts on clustered timeouts.",
    package_dir={"": "src"},
    packages=find_namespace_packages("src"),
    python_requires=">=3.8",
    install_requires=[
        "pydantic>=2.6",
        "pydantic-settings>=2.2",
        "tenacity>=8.2",
        "structlog>=24.1",
        "rich>=13.7",
        "typer>=0.12",
    ],
    extras_require={
        "dev": ["pytest>=8.0", "ruff>=0.6", "mypy>=1.8"],
    },
    entry_points={"console_scripts": ["host-watch=host_watch.cli:app"]},
)
