from setuptools import find_packages, setup

setup(
    name="shield-client",
    version="0.1.0",
    license="Apache License 2.0",

    python_requires=">=3.11",
    description="Async client for the Shield secret-custody service: "
                "store, fetch, update and delete secret shares.",

    packages=find_packages(exclude=('tests',)),

    install_requires=[
        "httpx>=0.27,<1.0",
        "pydantic~=2.7",
        "pydantic-settings~=2.3",
        "stamina>=24.2",
        "structlog>=24.1",
        "prometheus-client>=0.20",
    ],

    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
        ],
    },

    test_suite="tests",

    classifiers=[
        'Development Status :: 2 - Pre-Alpha',
        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
    ],
)
