# setup.py
from setuptools import setup, find_packages

setup(
    name="dialectdb",
    version="0.1.0",
    description="Connection, query builder, schema builder and migrations over many SQL dialects",
    packages=find_packages(
        exclude=(
            "tests",
            "tests.*",
            "docs",
            "dist",
            "build",
        )
    ),
    python_requires=">=3.10",
    install_requires=[],
    extras_require={
        "postgres": ["psycopg2-binary"],
        "mysql": ["PyMySQL"],
        "sqlsrv": ["pyodbc"],
        "oracle": ["oracledb"],
        "db2": ["ibm_db"],
        "test": ["pytest"],
    },
)
