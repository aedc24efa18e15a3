from setuptools import setup, find_packages

setup(
    name="femdyn",
    version="0.1.0",
    description="Finite element assembly and explicit dynamics of linear elastic solids",
    author="femdyn developers",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.8",
    install_requires=[
        "numpy>=1.20",
        "scipy>=1.7",
        "matplotlib>=3.4",
        "meshio>=5.0",
    ],
    extras_require={
        "dev": ["pytest>=6.0"],
    },
)
