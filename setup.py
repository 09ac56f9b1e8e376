from setuptools import setup, find_packages

setup(
    name="ipfkit",
    version="0.1.0",
    description="Read-only access to IPF archives and IES tables",
    
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    
    install_requires=[
        "structlog>=23.1.0",
        "pydantic>=2.0.0",
        "pyyaml>=6.0",
        "prometheus-client>=0.16.0",
    ],
    
    extras_require={
        "dev": [
            "pytest>=7.3.0",
            "pytest-cov>=4.0.0",
            "black>=23.3.0",
            "mypy>=1.3.0",
            "ruff>=0.0.270",
        ],
    },
    
    python_requires=">=3.11",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3.11",
    ],
)
