from setuptools import setup, find_packages

setup(
    name="brokerage-trade-engine",
    version="1.0.0",
    author="Zehnlabs Rebalancer Team",
    description="Trade execution and credential lifecycle for Schwab and Tradier portfolios",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    package_data={
        "broker_connector_base": ["py.typed"],
    },
    install_requires=[
        "pydantic==2.11.7",
        "aiohttp==3.12.15",
        "PyYAML==6.0.2",
        "redis>=5.0.1",
        "click>=8.1.7",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "trade-engine=trade_engine.cli:cli",
        ],
    },
    python_requires=">=3.11",
)
