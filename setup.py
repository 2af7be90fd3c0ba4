"""
Minority Window: class-imbalance sweep harness
Setup script for package installation with optional dependencies.
"""

from setuptools import setup, find_packages
import os

# Read the README file for long description
def read_readme():
    readme_path = os.path.join(os.path.dirname(__file__), 'README.md')
    if os.path.exists(readme_path):
        with open(readme_path, 'r', encoding='utf-8') as f:
            return f.read()
    return "Sliding-window class-imbalance experiments for binary classifiers"

# Core dependencies - essential for basic functionality
CORE_REQUIREMENTS = [
    "numpy>=1.21.0",
    "pandas>=1.3.0",
    "scikit-learn>=1.0.0",
    "imbalanced-learn>=0.10.0",
    "joblib>=1.1.0",
    "threadpoolctl>=3.0.0",
    "psutil>=5.8.0",
]

# Development dependencies - testing and code quality tools
DEVELOPMENT_REQUIREMENTS = [
    "pytest>=6.0.0",
    "pytest-cov>=2.12.0",
    "black>=21.0.0",
    "flake8>=3.9.0",
    "mypy>=0.910",
]

EXTRAS_REQUIRE = {
    "development": DEVELOPMENT_REQUIREMENTS,
    "test": ["pytest>=6.0.0", "pytest-cov>=2.12.0"],
    "all": DEVELOPMENT_REQUIREMENTS,
}

setup(
    name="minority-window",
    version="1.0.0",
    description="Sliding-window class-imbalance experiments for binary classifiers",
    long_description=read_readme(),
    long_description_content_type="text/markdown",
    packages=find_packages(include=["minority_window", "minority_window.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Science/Research",
        "Topic :: Scientific/Engineering :: Artificial Intelligence",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
    ],
    python_requires=">=3.8",
    install_requires=CORE_REQUIREMENTS,
    extras_require=EXTRAS_REQUIRE,
    entry_points={
        "console_scripts": [
            "minority-window=minority_window.cli:main",
        ],
    },
    include_package_data=True,
    zip_safe=False,
    keywords="machine-learning, class-imbalance, oversampling, random-forest, logistic-regression",
)
