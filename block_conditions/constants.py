from typing import Final


APP_NAME: Final[str] = "block-conditions"
CONDITIONS_ATTRIBUTE: Final[str] = "conditionalHeadersBlocksConditions"

CONFIG_FILENAME: Final[str] = "config.yaml"

YAML_SUFFIXES: Final[tuple[str, ...]] = (".yaml", ".yml")

# Keys on a stored condition entry that are never parameters.
RESERVED_NODE_KEYS: Final[tuple[str, ...]] = (
    "id",
    "guid",
    "type",
    "label",
    "negate",
    "params",
    "operator",
    "_needsConfig",
)
