"""Install the user identity service."""

from setuptools import setup, find_packages

setup(
    name='user-identity',
    version='0.1.0',
    packages=find_packages(exclude=['*test*']),
    python_requires='>=3.8',
    install_requires=[
        "flask>=2",
        "werkzeug",
        "sqlalchemy>=1.4",
        "redis>=4.1",
        "pyjwt>=2",
        "pydantic>=2",
        "python-json-logger",
        "pytz",
    ],
    extras_require={
        'mysql': ["mysqlclient"],
        'test': ["pytest", "hypothesis"],
    },
    zip_safe=False
)
