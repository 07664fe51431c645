#!/usr/bin/env python3
"""
Setup script for the BargainAgent backend
"""

from setuptools import setup, find_packages

# Read the README file
def read_readme():
    with open("README.md", "r", encoding="utf-8") as fh:
        return fh.read()

# Read requirements
def read_requirements():
    with open("requirements.txt", "r", encoding="utf-8") as fh:
        return [line.strip() for line in fh if line.strip() and not line.startswith("#")]

setup(
    name="bargain-agent",
    version="1.0.0",
    author="Your Name",
    author_email="your.email@example.com",
    description="Discount code finder backend with daily search quotas, powered by Gemini",
    long_description=read_readme(),
    long_description_content_type="text/markdown",
    url="https://github.com/yourusername/bargain-agent",
    packages=find_packages(include=["src", "src.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Framework :: FastAPI",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
        "Topic :: Scientific/Engineering :: Artificial Intelligence",
    ],
    python_requires=">=3.9",
    install_requires=read_requirements(),
    extras_require={
        "dev": [
            "pytest>=6.0",
            "pytest-cov>=2.0",
            "black>=21.0",
            "flake8>=3.8",
            "mypy>=0.800",
        ],
        "test": [
            "pytest>=6.0",
            "pytest-cov>=2.0",
            "pytest-mock>=3.0",
            "httpx>=0.24",
        ],
    },
    entry_points={
        "console_scripts": [
            "bargain-agent=src.main:main",
            "bargain-agent-api=src.api_server:main",
        ],
    },
    include_package_data=True,
    keywords=[
        "discounts",
        "promo codes",
        "bargains",
        "gemini",
        "ai",
        "fastapi",
    ],
    project_urls={
        "Bug Reports": "https://github.com/yourusername/bargain-agent/issues",
        "Source": "https://github.com/yourusername/bargain-agent",
    },
)
