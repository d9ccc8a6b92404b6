"""
CASCADE Errors - Failure taxonomy for a restoration run.

Every error here is terminal for the run it happens in; nothing is retried.
"""


class CascadeError(Exception):
    """Base class for all restoration cascade failures."""


class ConfigError(CascadeError):
    """The gateway cannot be built (missing credentials or bad settings)."""


class PlanError(CascadeError):
    """The planning call failed or returned an unusable plan."""


class PromptError(CascadeError):
    """The prompt-crafting call failed or returned no prompt."""


class EditError(CascadeError):
    """The image-edit call failed or returned no image."""
