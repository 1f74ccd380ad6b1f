from setuptools import setup, find_packages

setup(
    name="puttmcmc",
    version="0.1.0",
    author="Sanjan Muchandimath",
    description="Metropolis-Hastings sampling and golf putting models for teaching Bayesian computation",
    packages=find_packages(include=["puttmcmc", "puttmcmc.*"]),
    package_data={"puttmcmc": ["data/*.txt"]},
    python_requires=">=3.9",
    install_requires=[
        "numpy",
        "scipy",
        "pandas",
        "matplotlib>=3.7",
        "seaborn",
    ],
    extras_require={
        "test": ["pytest"],
    },
)
