[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tunvpn"
version = "0.1.0"
description = "A small UDP VPN for Linux that tunnels TUN traffic encrypted with AES-256-GCM"
requires-python = ">=3.11"
dependencies = [
    "cryptography",
]
keywords = ["vpn", "tun", "udp", "aes-gcm", "tunnel", "asyncio"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
    "Topic :: Security :: Cryptography",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[project.scripts]
tunvpn-server = "tunvpn.server:main"
tunvpn-client = "tunvpn.client:main"

[tool.hatch.build.targets.wheel]
packages = ["tunvpn"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
