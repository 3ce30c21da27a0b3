from enum import Enum

from block_conditions.models import Action, NodeState


class UIStyle(str, Enum):
    BLUE = "blue"
    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"
    CYAN = "cyan"
    MAGENTA = "magenta"
    DIM = "dim"


ACTION_STYLE = {
    Action.SHOW: UIStyle.GREEN.value,
    Action.HIDE: UIStyle.MAGENTA.value,
}

NODE_STATE_STYLE = {
    NodeState.COLLAPSED: UIStyle.DIM.value,
    NodeState.EDITING: UIStyle.YELLOW.value,
}


def bool_style(value: bool) -> str:
    return UIStyle.GREEN.value if value else UIStyle.RED.value
