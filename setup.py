from setuptools import setup, find_packages

setup(
    name="bridge-proxy",
    version="0.1.0",
    packages=find_packages(include=["bridge", "bridge.*"]),
    python_requires=">=3.12",
    install_requires=[
        "fastapi>=0.110",
        "httpx>=0.27",
        "pydantic>=2.5",
        "pydantic-settings>=2.7",
        "uvicorn>=0.29",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
            "respx>=0.21",
        ],
    },
    entry_points={
        "console_scripts": [
            "bridge-proxy=bridge.__main__:main",
        ],
    },
)
