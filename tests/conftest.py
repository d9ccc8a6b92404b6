"""Shared fixtures for the cascade tests."""

import io
import sys
from pathlib import Path

import pytest
from PIL import Image

# Add repo root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from cascade.errors import EditError, PromptError
from cascade.images import to_data_url
from cascade.models import PlanStep

COLORS = ['red', 'green', 'blue', 'yellow', 'purple', 'orange', 'white', 'black']


def make_png(color='red', size=(16, 16)) -> bytes:
    """Encode a solid-color PNG."""
    buffer = io.BytesIO()
    Image.new('RGB', size, color=color).save(buffer, format='PNG')
    return buffer.getvalue()


def make_image_ref(color='red') -> str:
    return to_data_url(make_png(color), 'image/png')


class StubGateway:
    """
    In-memory gateway.

    Each edit returns a new image of the next color; ``fail_prompt_at`` and
    ``fail_edit_at`` make the call for that 1-based plan position raise.
    """

    def __init__(self, plan=None, plan_error=None, fail_prompt_at=None, fail_edit_at=None):
        self.plan = plan if plan is not None else [
            PlanStep(step=1, goal='Remove scratches'),
            PlanStep(step=2, goal='Colorize'),
        ]
        self.plan_error = plan_error
        self.fail_prompt_at = fail_prompt_at
        self.fail_edit_at = fail_edit_at
        self.calls = []
        self.edited_images = []

    def request_plan(self, image, instructions):
        self.calls.append(('plan', image, instructions))
        if self.plan_error is not None:
            raise self.plan_error
        return self.plan

    def request_edit_prompt(self, image, goal, instructions):
        self.calls.append(('prompt', image, goal, instructions))
        position = sum(1 for call in self.calls if call[0] == 'prompt')
        if position == self.fail_prompt_at:
            raise PromptError(f'prompt failed for "{goal}"')
        return f'{goal.lower()}...'

    def request_image_edit(self, image, prompt):
        self.calls.append(('edit', image, prompt))
        position = sum(1 for call in self.calls if call[0] == 'edit')
        if position == self.fail_edit_at:
            raise EditError('Image generation failed or did not return an image.')
        new_image = make_image_ref(COLORS[position % len(COLORS)])
        self.edited_images.append(new_image)
        return new_image


@pytest.fixture
def original_image():
    return make_image_ref('gray')


@pytest.fixture
def stub_gateway():
    return StubGateway()
