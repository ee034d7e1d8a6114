from setuptools import setup, find_packages

setup(
    name="adopr",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    python_requires=">=3.10",
    install_requires=[
        "typer",
        "GitPython",
        "requests",
        "python-dotenv",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    entry_points={
        "console_scripts": [
            "adopr=adopr.app:main",
        ],
    },
)
