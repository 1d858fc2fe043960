from setuptools import setup, find_packages

setup(
    name="fdroidrepo",
    version="0.1.0",
    description="Create and manipulate F-Droid repositories through fdroidserver",
    author="The fdroidrepo authors",
    packages=find_packages(exclude=["tests", "tests.*"]),
    license="AGPL-3.0-only",
    python_requires=">=3.11",
    install_requires=[
        "pydantic>=2",
        "PyYAML",
        "toml",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    include_package_data=True,
)
