"""nodelint - Consistency validator for dual-runtime Node-RED node packages.

nodelint checks that the host stub, device script, editor markup, package
descriptor and device manifest of every node in a package agree with each
other, and reports each violation with a stable rule id.
"""

__version__ = "0.1.0"
__author__ = "nodelint contributors"
__description__ = "Consistency validator for dual-runtime Node-RED node packages"

from nodelint.config import NodelintConfig
from nodelint.validator import validate, validate_root

__all__ = [
    "__version__",
    "__author__",
    "__description__",
    "NodelintConfig",
    "validate",
    "validate_root",
]
