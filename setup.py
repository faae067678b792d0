from setuptools import find_packages, setup

setup(
    name="gmwblab",
    version="0.1.0",
    description="GMWB pricing by penalty and policy iteration on the HJBQVI",
    author="Diego",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.9",
    install_requires=[
        "numpy>=1.23",
        "pandas>=1.5",
        "scipy>=1.12",
        "matplotlib>=3.7",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": ["gmwblab=gmwblab.__main__:main"],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],
    include_package_data=True,
)
