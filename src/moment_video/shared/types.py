"""Type aliases shared by the storage layer."""

from pathlib import Path
from typing import Any, Dict, Union

# Directory roots for temp files and local storage
PathLike = Union[str, Path]

# Free-form per-object metadata attached to an upload (owner id, dimensions, ...)
ObjectMetadata = Dict[str, Any]
