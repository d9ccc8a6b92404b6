"""
CASCADE Models - Data contracts shared by the gateway, loop and UI.
"""

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from cascade.errors import PlanError


class AppStatus(str, Enum):
    """Lifecycle of a restoration run."""

    IDLE = 'idle'
    PLANNING = 'planning'
    RESTORING = 'restoring'
    DONE = 'done'
    ERROR = 'error'

    @property
    def is_processing(self) -> bool:
        return self in (AppStatus.PLANNING, AppStatus.RESTORING)


@dataclass(frozen=True)
class PlanStep:
    """One goal of the restoration plan."""

    step: int
    goal: str


@dataclass(frozen=True)
class RestorationStep:
    """A completed plan step with its prompt and surrounding images."""

    step: int
    goal: str
    prompt: str
    before_image: str
    after_image: str

    @classmethod
    def from_plan(cls, plan_step: PlanStep, prompt: str, before_image: str, after_image: str) -> 'RestorationStep':
        return cls(
            step=plan_step.step,
            goal=plan_step.goal,
            prompt=prompt,
            before_image=before_image,
            after_image=after_image,
        )


@dataclass(frozen=True)
class RunState:
    """Immutable snapshot of a run, as seen by observers and the UI."""

    status: AppStatus = AppStatus.IDLE
    error: Optional[str] = None
    progress: str = ''
    steps: Tuple[RestorationStep, ...] = field(default_factory=tuple)
    original_image: Optional[str] = None

    @property
    def is_processing(self) -> bool:
        return self.status.is_processing

    @property
    def final_image(self) -> Optional[str]:
        """Latest image of the run: the last step's output, else the original."""
        if self.steps:
            return self.steps[-1].after_image
        return self.original_image

    def to_dict(self, include_images: bool = True) -> Dict[str, Any]:
        """Serialize the snapshot for JSON responses."""
        steps = []
        for restoration_step in self.steps:
            entry = asdict(restoration_step)
            if not include_images:
                entry.pop('before_image')
                entry.pop('after_image')
            steps.append(entry)

        data = {
            'status': self.status.value,
            'error': self.error,
            'progress': self.progress,
            'steps': steps,
        }
        if include_images:
            data['original_image'] = self.original_image
        return data


def validate_plan(raw: Any) -> List[PlanStep]:
    """
    Validate a decoded planning response and convert it to PlanSteps.

    Args:
        raw: Decoded JSON from the planning model, or PlanSteps a gateway already built

    Returns:
        Ordered list of PlanStep

    Raises:
        PlanError: If the plan is empty, not a list, or has malformed entries
    """
    if not isinstance(raw, (list, tuple)):
        raise PlanError("Invalid plan format received from API: expected a list of steps.")
    if not raw:
        raise PlanError("Invalid plan format received from API: the plan has no steps.")

    plan = []
    previous = 0
    for index, item in enumerate(raw, 1):
        if isinstance(item, PlanStep):
            item = {'step': item.step, 'goal': item.goal}
        if not isinstance(item, dict):
            raise PlanError(f"Invalid plan entry #{index}: expected an object with 'step' and 'goal'.")

        step = item.get('step')
        goal = item.get('goal')

        # bool is an int subclass
        if isinstance(step, bool) or not isinstance(step, int):
            raise PlanError(f"Invalid plan entry #{index}: 'step' must be an integer.")
        if not isinstance(goal, str) or not goal.strip():
            raise PlanError(f"Invalid plan entry #{index}: 'goal' must be non-empty text.")

        if index == 1 and step != 1:
            raise PlanError(f"Plan must start at step 1, got step {step}.")
        if step <= previous:
            raise PlanError(f"Plan step numbers must increase, got {step} after {previous}.")

        plan.append(PlanStep(step=step, goal=goal.strip()))
        previous = step

    return plan
