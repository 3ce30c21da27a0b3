from pathlib import Path
from typing import Any


class BlockConditionsError(Exception):
    """Base user-facing application error."""


class DocumentFileError(BlockConditionsError):
    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        self.message = message
        super().__init__(f"{message}: {path}")


class MissingDocumentFileError(DocumentFileError):
    def __init__(self, path: Path) -> None:
        super().__init__(path=path, message="Missing rule document")


class InvalidDocumentFormatError(DocumentFileError):
    def __init__(self, path: Path, detail: str) -> None:
        self.detail = detail
        super().__init__(path=path, message=f"Invalid document format ({detail})")


class InvalidContextError(BlockConditionsError):
    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Invalid evaluation context ({detail})")


class InvalidSettingsError(BlockConditionsError):
    def __init__(self, path: Path, detail: str) -> None:
        self.path = path
        self.detail = detail
        super().__init__(f"Invalid settings ({detail}): {path}")


class InvalidParamValueError(BlockConditionsError, ValueError):
    def __init__(self, field: str, value: Any, detail: str) -> None:
        self.field = field
        self.value = value
        super().__init__(f"Invalid value for {field!r}: {value!r} ({detail})")


class AuthoringError(BlockConditionsError):
    """Raised when an editing operation would produce an invalid document."""


class ConditionNotFoundError(AuthoringError, KeyError):
    def __init__(self, condition_id: str) -> None:
        self.condition_id = condition_id
        super().__init__(f"Condition not found: {condition_id}")

    def __str__(self) -> str:
        return self.args[0]


class UnknownConditionKindError(AuthoringError, ValueError):
    def __init__(self, type_value: str) -> None:
        self.type_value = type_value
        super().__init__(f"Unknown condition kind: {type_value}")


class InvalidPatchError(AuthoringError, ValueError):
    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Invalid condition update ({detail})")
