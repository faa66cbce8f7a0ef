__title__ = 'argbinder'
__license__ = 'MIT'
# Placeholder, modified by dynamic-versioning.
__version__ = "0.0.0"

from . import discovery, faults, grammar, markers, parser, readers
from .discovery import *
from .faults import *
from .markers import *
from .parser import *
from .readers import *

VersionInfo = __import__("collections").namedtuple("VersionInfo", (
    "major",
    "minor",
    "micro",
    "releaselevel",
    "serial",
    "metadata"
))

# Placeholder, modified by dynamic-versioning.
version_info = VersionInfo(0, 0, 0, "final", 0, "")

__all__ = (
    "__title__",
    "__license__",
    "__version__",
    "version_info"
)

# Load the exposed API of the readers
__all__ += readers.__all__  # type: ignore[attr-defined]
# Load the exposed API of the markers
__all__ += markers.__all__  # type: ignore[attr-defined]
# Load the exposed API of the discovery
__all__ += discovery.__all__  # type: ignore[attr-defined]
# Load the exposed API of the parser
__all__ += parser.__all__  # type: ignore[attr-defined]
# Load the exposed API of the faults
__all__ += faults.__all__  # type: ignore[attr-defined]
