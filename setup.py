from setuptools import setup, find_packages

setup(
    name="saug",
    version="1.0.0",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "httpx>=0.24.0",
        "aiofiles>=23.2.1",
        "lxml>=4.9.0",
        "tqdm>=4.66.0",
        "click>=8.1.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "saug=saug.cli:main",
        ],
    },
    python_requires=">=3.8",
)
