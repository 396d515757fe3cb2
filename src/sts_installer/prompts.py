"""Interactive confirmation prompts.

The prompts share one questionary style so that per-step confirmation
and the cleanup confirmation look the same.
"""

import questionary
from questionary import Style

from sts_installer import console

PROMPT_STYLE = Style(
    [
        ("qmark", "fg:#af87ff bold"),  # Purple question mark
        ("question", "bold"),
        ("answer", "fg:#ff87d7 bold"),  # Pink submitted answer
        ("instruction", "fg:#6c6c6c italic"),  # Gray italic instructions
        ("text", ""),
    ]
)

QMARK = "? "


def _confirm(message: str) -> bool:
    answer: bool | None = questionary.confirm(
        message,
        default=False,
        style=PROMPT_STYLE,
        qmark=QMARK,
    ).ask()
    if answer is None:
        console.warning("Prompt cancelled.")
        return False
    return answer


def confirm_step(number: int, name: str) -> bool:
    """Ask the operator whether to execute a step.

    Args:
        number: Step number in the catalog.
        name: Step name.

    Returns:
        True if the operator approved; a cancelled prompt counts as a decline.

    """
    return _confirm(f"Proceed with [Step {number}] {name}?")


def confirm_cleanup(cluster_name: str, region: str) -> bool:
    """Ask the operator to approve deleting a cluster's AWS resources."""
    return _confirm(f"This will delete AWS resources for cluster {cluster_name} in region {region}. Continue?")
