"""cpython-dist: compile CPython for the paketo buildpack and publish it.

Reads the versions declared by the buildpack's ``buildpack.toml``, compares
them with the assets already attached to the distribution release, compiles
the missing ones in a container and uploads the archives.
"""

__version__ = "0.1.0"
__description__ = "Compile missing CPython versions and publish them as release assets"

from cpython_dist.core.orchestrator import Orchestrator
from cpython_dist.cli.app import app as cli

__all__ = ["Orchestrator", "cli", "__version__"]
