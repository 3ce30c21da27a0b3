from block_conditions.tui.renderers import ConditionsConsoleUI

__all__ = ["ConditionsConsoleUI"]
