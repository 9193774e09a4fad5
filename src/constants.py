"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    RESOLUTION_ERROR = 2
    CI_REGRESSION = 3


class OutputFormats(Enum):
    """Plan export formats supported by the program.

    Args:
        Enum (string): Export formats supported by the program.
    """

    JSON = "json"
    CSV = "csv"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    DEFAULT_HOST_TRIPLET = "x64-linux"
    DEFAULT_TARGET_TRIPLET = "x64-linux"
    MANIFEST_FILES = ["vcpkg.json", "port.json"]
    BASELINE_DEFAULT_KEY = "default"
    SUPPORTED_FORMATS = [OutputFormats.JSON.value, OutputFormats.CSV.value]
    LOG_FORMAT = "[%(levelname)s] %(message)s"
    LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    ENV_LOG_LEVEL = "PORTPLAN_LOG_LEVEL"
    ENV_CONFIG = "PORTPLAN_CONFIG"
    CONFIG_LOCATIONS = ["portplan.yml", "portplan.yaml", "~/.config/portplan/portplan.yml"]

    # Resolution policy defaults
    OVERRIDE_PRECEDENCE = True
    UNSUPPORTED_ACTION = "error"
    SKIP_FAILURES = False

    # Content identity
    ABI_HASH_ALGORITHM = "sha256"
    CORE_FEATURE = "core"
    DEFAULT_FEATURE = "default"
    ALL_FEATURES = "*"
