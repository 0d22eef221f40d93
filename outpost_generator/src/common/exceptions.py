"""Generator exceptions."""


class GenerationError(Exception):
    """Raised when a diagnostics collector in ``raise_errors`` mode records an error."""


class ConfigurationError(ValueError):
    """Raised for malformed input at the generator boundary.

    Covers missing or non-numeric positions, blueprints that contain anything
    other than pumpjacks and blueprint strings that cannot be decoded. Bad
    tuning values are never reported this way; they only degrade the output.
    """

    def __init__(self, message: str, entity: object = None) -> None:
        self.message = message
        self.entity = entity
        suffix = f" (entity {entity!r})" if entity is not None else ""
        super().__init__(f"{message}{suffix}")
