# setup.py
from setuptools import setup, find_packages

setup(
    name="renobudget",
    version="0.1.0",
    description="Track expenses and bills against a fixed home-renovation budget",
    author="Your Name",
    author_email="you@example.com",
    url="https://github.com/yourusername/renobudget",
    packages=find_packages(include=["renovation_tracker", "renovation_tracker.*"]),
    python_requires=">=3.10",
    install_requires=[
        "click>=8.0",
        "pyyaml>=5.3",
        "python-dotenv>=0.19",
        "huggingface_hub>=0.24",
        "anyio>=4.1",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "renobudget=renovation_tracker.cli:main",
            "renobudget-web=renovation_tracker.web:main",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],
)
