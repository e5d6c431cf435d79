import setuptools

install_requires = [
    "Flask>=2.2",
    "Flask-SQLAlchemy>=3.0",
    "SQLAlchemy>=1.4",
    "Werkzeug>=2.2",
    "click>=8.0",
    "PyYAML>=5.1",
]

tests_require = [
    "pytest",
]

dev_requires = tests_require + [
    # To run test sessions
    "nox",
    # For coverage
    "coverage",
    "pytest-cov",
    # Static code analysis
    "flake8",
]


def get_long_description():
    with open("README.rst") as fd:
        return fd.read()


setuptools.setup(
    # Metadata
    name="contenttags",
    version="0.1.0.dev0",
    license="LGPL",
    description="Tags for content management applications: popularity, "
    "co-occurrence and tag clouds, based on Flask and SQLAlchemy",
    long_description=get_long_description(),
    platforms="any",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Environment :: Web Environment",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: GNU Lesser General Public License v2 (LGPLv2)",
        "Operating System :: OS Independent",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Framework :: Flask",
    ],
    # Data
    packages=setuptools.find_packages("src"),
    package_dir={"": "src"},
    package_data={"contenttags.core": ["default_logging.yml"]},
    include_package_data=True,
    zip_safe=False,
    python_requires=">=3.9",
    # Requirements & dependencies
    install_requires=install_requires,
    tests_require=tests_require,
    extras_require={
        "test": tests_require,
        "dev": dev_requires,
    },
)
