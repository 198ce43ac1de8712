"""Exception hierarchy for masstimes loading and configuration errors.

The resolution engine itself absorbs degraded input (malformed periods,
unknown time zones, stale schedules) into "fewer instances". These exceptions
are raised only by the surfaces that read files on behalf of a caller.
"""


class MassTimesError(Exception):
    """Base exception for all masstimes errors.

    Catch this to handle every failure raised by the package in one place.
    """


class DefinitionLoadError(MassTimesError):
    """Event definitions could not be loaded.

    Raised when:
    - The definitions file does not exist or cannot be read
    - The file is neither valid YAML nor valid JSON
    - The top level is not a list of definitions (or an ``events`` mapping)
    """


class ConfigError(MassTimesError):
    """Configuration file is unusable.

    Raised when:
    - The config file cannot be parsed
    - The top level of the config file is not a mapping
    """
