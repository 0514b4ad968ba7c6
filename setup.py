#!/usr/bin/env python
from setuptools import find_packages, setup

VERSION = __import__("flora").get_version()
INSTALL_REQUIREMENTS = [
    "boto3",
    "Django>=4.2",
    "django-flags",
    "Pillow",
    "psycopg2-binary",
    "requests",
    "sentry-sdk",
    "structlog",
]
TEST_REQUIREMENTS = ["pytest", "pytest-django"]
SCRIPTS = ["manage.py"]
DESCRIPTION = "Mirror plant images into object storage"
CLASSIFIERS = """\
Environment :: Console
Framework :: Django
Programming Language :: Python
Programming Language :: Python :: 3.10
""".splitlines()

with open("README.md", "r") as f:
    LONG_DESCRIPTION = f.read()


setup(
    name="flora",
    version=VERSION,
    description=DESCRIPTION,
    long_description=LONG_DESCRIPTION,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["*.tests", "*.tests.*"]),
    include_package_data=True,
    scripts=SCRIPTS,
    install_requires=INSTALL_REQUIREMENTS,
    extras_require={"test": TEST_REQUIREMENTS},
    python_requires=">=3.10",
    classifiers=CLASSIFIERS,
)
