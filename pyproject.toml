[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "papeleria"
version = "0.1.0"
description = "HTTP backend for a stationery shop: staff login, school supply list orders and order search over MongoDB."
requires-python = ">=3.10"
keywords = ["flask", "mongodb", "orders", "stationery", "jwt", "backend"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Framework :: Flask",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: Dynamic Content",
]
dependencies = [
    "flask",
    "pymongo",
    "bcrypt",
    "pyjwt",
    "python-dotenv",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
papeleria = "papeleria.app:main"

[tool.hatch.build.targets.wheel]
packages = ["papeleria"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
