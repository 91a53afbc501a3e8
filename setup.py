"""
page-perf-tool - Client-side Page Load Performance Tool

Collects browser timing entries for repeated page loads, derives named
load stages and summarizes them with robust statistics.

Features:
- Stage derivation from navigation, first-contentful-paint and boot mark entries
- Labelled multi-iteration runs that survive page reloads
- Median ± median-absolute-deviation summaries
- IQR outlier filtering, boxplot and histogram charts
- CSV export and a small Flask dashboard
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README for long description
readme_file = Path(__file__).parent / "README.md"
long_description = readme_file.read_text() if readme_file.exists() else __doc__

setup(
    name="page-perf-tool",
    version="1.0.0",
    description="Repeated-run page load timing collection and robust summaries",
    long_description=long_description,
    long_description_content_type="text/markdown",
    python_requires=">=3.8",
    packages=find_packages(exclude=["tests", "*.tests", "*.tests.*", "tests.*"]),
    install_requires=[
        "numpy>=1.20.0",
        "flask>=2.0.0",
        "flask-cors>=3.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "perf-tool=perf_tool.cli:main",
            "perf-tool-dashboard=perf_tool.dashboard:main",
        ],
    },
    classifiers=[
        "Development Status :: 5 - Production/Stable",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Testing",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
    ],
    keywords="performance web page-load timing statistics",
)
