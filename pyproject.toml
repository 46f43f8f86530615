[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mcpgw"
version = "0.1.0"
description = "Building blocks for an MCP gateway: state stores, circuit breaking, SSE handling, CORS, tool routing, server risk scoring and tracing."
requires-python = ">=3.10"
dependencies = []
keywords = ["mcp", "gateway", "proxy", "json-rpc", "sse", "circuit-breaker", "rate-limit", "tracing", "wsgi"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: Proxy Servers",
    "Topic :: Internet :: WWW/HTTP :: WSGI :: Middleware",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["mcpgw"]

[tool.pytest.ini_options]
addopts = "-ra"
