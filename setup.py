"""Install the gatehouse service."""

from setuptools import setup, find_packages

setup(
    name='gatehouse',
    version='0.1.0',
    packages=find_packages(exclude=['*test*']),
    install_requires=[
        "flask>=2.3",
        "werkzeug>=2.3",
        "wtforms",
        "sqlalchemy>=1.4",
        "psycopg2-binary",
        "redis",
        "fakeredis",
        "pyjwt>=2.0",
        "pytz",
        "python-dateutil",
        "python-json-logger",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    zip_safe=False
)
