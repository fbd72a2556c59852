"""Exception hierarchy for the scanning core."""


class BinHunterError(Exception):
    """Base class for every error raised by binhunter."""


class RuleEngineError(BinHunterError):
    pass


class RulesNotLoadedError(RuleEngineError):
    """scan_file() was called before a rule-set was successfully loaded."""


class EngineScanError(RuleEngineError):
    """The matching engine could not scan the target (unreadable, corrupt...)."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Could not scan {path}: {reason}")
        self.path = path
        self.reason = reason


class RegistrationError(BinHunterError):
    def __init__(self, plugin_id: str, message: str):
        super().__init__(message)
        self.plugin_id = plugin_id


class ApiVersionMismatchError(RegistrationError):
    def __init__(self, plugin_id: str, found: int, expected: int):
        super().__init__(
            plugin_id,
            f"Plugin {plugin_id!r} targets API version {found}, expected {expected}",
        )
        self.found = found
        self.expected = expected


class DuplicateDetectorError(RegistrationError):
    def __init__(self, plugin_id: str):
        super().__init__(plugin_id, f"A plugin with id {plugin_id!r} is already registered")


class UnknownDetectorError(BinHunterError):
    def __init__(self, plugin_id: str):
        super().__init__(f"No plugin registered with id {plugin_id!r}")
        self.plugin_id = plugin_id
