"""Package version for releasekeeper.

Read by the build backend (``[tool.setuptools.dynamic]``) and by
``releasekeeper --version``.
"""

__version__ = "0.3.0"
