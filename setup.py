from setuptools import setup, find_packages

setup(
    name="msgpack-cli",
    version="0.1.0",
    description="msgpack-cli - JSON/MessagePack conversion and MessagePack-RPC calls from the command line",
    author="msgpack-cli contributors",
    license="Apache-2.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "msgpack>=1.0.0",
        "opentelemetry-api>=1.14.0",
        "opentelemetry-sdk>=1.14.0",
        "opentelemetry-exporter-otlp>=1.14.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov",
            "black",
            "isort",
            "pylint",
        ],
    },
    entry_points={
        "console_scripts": [
            "msgpack-cli=msgpack_cli.cli:main",
        ],
    },
    python_requires=">=3.9",
)
