from setuptools import find_packages, setup

setup(
    name="e2ee",
    version="0.1.2",
    description="RSA-OAEP end-to-end encryption for short text messages",
    packages=find_packages(exclude=["tests", "tests.*", "examples", "examples.*"]),
    include_package_data=True,
    python_requires=">=3.10",
    install_requires=[
        "cryptography",
        "pydantic>=2",
        "click",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "e2ee-cli=e2ee.cli:cli",
        ],
    },
)
