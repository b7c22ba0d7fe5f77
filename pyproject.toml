[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "nezhadash"
version = "0.1.0"
description = "Server monitoring dashboard core: agent registry, service sentinel, notifications, DDNS updates and stream relaying"
requires-python = ">=3.10"
keywords = [
    "monitoring",
    "dashboard",
    "ddns",
    "notifications",
    "uptime",
    "servers",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Monitoring",
    "Topic :: Internet :: Name Service (DNS)",
]
dependencies = [
    "dnspython",
    "requests",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["nezhadash"]

[tool.hatch.build.targets.sdist]
include = [
    "nezhadash",
    "tests",
]

[tool.pytest.ini_options]
addopts = "-ra"
