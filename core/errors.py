"""
Error taxonomy for the Restoration Planning Tool.

Every failure a user action can surface derives from RestorationToolError,
so the app can catch one type per action and leave the session untouched.
"""


class RestorationToolError(Exception):
    """Base class for all errors surfaced to the user."""


class UnsupportedCountryError(RestorationToolError):
    """The selected country has no entry in a reference table."""

    def __init__(self, country: str, table: str = ""):
        self.country = country
        self.table = table
        where = f" ({table})" if table else ""
        super().__init__(f"Unsupported country '{country}': country not found in reference table{where}")


class NoCountrySelectedError(RestorationToolError):
    """A country-dependent action was triggered before choosing a country."""

    def __init__(self):
        super().__init__("No country selected. Choose a country first.")


class NoAvailableAreaError(RestorationToolError):
    """Analysis or statistics requested before an available area exists."""

    def __init__(self):
        super().__init__("No available area defined. Display the available area before continuing.")


class InvalidGeometryError(RestorationToolError):
    """The drawn project area is not a usable rectangle or polygon."""


class DataSourceError(RestorationToolError):
    """A dataset is missing, unreadable or unreachable."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Could not read {source}: {reason}")
