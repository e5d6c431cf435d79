import nox

PYTHON_VERSIONS = ["3.9", "3.10", "3.11", "3.12"]
PACKAGE = "contenttags"

nox.options.reuse_existing_virtualenvs = True
nox.options.sessions = ("pytest", "lint")


@nox.session
def lint(session):
    session.install("flake8")
    session.run("flake8", f"src/{PACKAGE}", "tests")


@nox.session(python=PYTHON_VERSIONS)
def pytest(session):
    session.install("-e", ".[test]")
    session.run("pip", "check")
    session.run("pytest", "-q")
