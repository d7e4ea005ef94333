[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "jwtguard"
version = "0.1.0"
description = "ASGI middleware that verifies RSA-signed JWT bearer tokens against keys fetched from a JWKS endpoint"
requires-python = ">=3.10"
keywords = ["jwt", "jwks", "asgi", "middleware", "authentication", "bearer", "oauth2", "openid"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Framework :: AsyncIO",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: Session",
    "Topic :: Security",
]
dependencies = [
    "pyjwt>=2.8",
    "cryptography>=41",
    "httpx>=0.25",
    "cachetools>=5.3",
]

[project.optional-dependencies]
test = [
    "pytest>=7.4",
    "pytest-asyncio>=0.23",
]

[tool.hatch.build.targets.wheel]
packages = ["jwtguard"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
strict = true
ignore_missing_imports = true
