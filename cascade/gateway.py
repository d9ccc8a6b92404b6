#!/usr/bin/env python3
"""
CASCADE Gateway - Gemini access for planning, prompt crafting and image edits.
"""

import base64
import json
import sys
from pathlib import Path
from typing import Any, Iterable, List, Optional, Tuple

from google import genai
from google.genai import types

from cascade.config import Settings, load_settings
from cascade.errors import EditError, PlanError, PromptError
from cascade.images import detect_media_type, file_to_data_url, parse_data_url, to_data_url
from cascade.models import PlanStep, validate_plan


PLAN_PROMPT = """You are an expert photo restoration specialist. Analyze the provided image and the user's request: "{instructions}".
Create a dedicated, step-by-step plan to restore this photo to a full-color, high-quality image as if it was taken with a modern DSLR.
The plan should have between 2 and 4 distinct steps. For each step, define a clear goal."""

STEP_PROMPT = """You are an expert prompt engineer for generative AI image models. Based on the provided image and the restoration goal: "{goal}", create a concise but detailed prompt for an image editing model.
The prompt must instruct the model to edit the image to achieve the goal while preserving the original composition, subject, and key features.
If you see specific flaws like scratches, dust, or missing parts, include instructions to fix them.
Where relevant, incorporate the user's original request: "{instructions}".
The final output should be ONLY the prompt string, with no extra text or formatting."""

PLAN_SCHEMA = types.Schema(
    type=types.Type.ARRAY,
    items=types.Schema(
        type=types.Type.OBJECT,
        properties={
            'step': types.Schema(
                type=types.Type.INTEGER,
                description="The step number, starting from 1.",
            ),
            'goal': types.Schema(
                type=types.Type.STRING,
                description="A clear, concise goal for this restoration step.",
            ),
        },
        required=['step', 'goal'],
    ),
)


class GeminiGateway:
    """Runs the three remote calls of a restoration cascade against Gemini."""

    def __init__(self, settings: Settings, client: Optional[Any] = None):
        """
        Initialize the Gateway.

        Args:
            settings: Model names and credentials
            client: Pre-built ``genai.Client``; built from the settings' API key when omitted

        Raises:
            ConfigError: If no client is given and the API key is missing
        """
        self.settings = settings
        if client is None:
            client = genai.Client(api_key=settings.require_api_key())
        self.client = client

    def _image_part(self, image_ref: str) -> types.Part:
        media_type, data = parse_data_url(image_ref)
        return types.Part.from_bytes(data=data, mime_type=media_type)

    def request_plan(self, image_ref: str, instructions: str = '') -> List[PlanStep]:
        """
        Ask the planning model for an ordered restoration plan.

        Raises:
            PlanError: If the call fails or the plan is empty or malformed
        """
        try:
            response = self.client.models.generate_content(
                model=self.settings.planner_model,
                contents=[PLAN_PROMPT.format(instructions=instructions), self._image_part(image_ref)],
                config=types.GenerateContentConfig(
                    response_mime_type='application/json',
                    response_schema=PLAN_SCHEMA,
                ),
            )
        except Exception as e:
            raise PlanError(f"Failed to generate a restoration plan: {e}") from e

        return self._parse_plan(getattr(response, 'text', None))

    def _parse_plan(self, response_text: Optional[str]) -> List[PlanStep]:
        """Decode the planning response and validate its shape."""
        if not response_text or not response_text.strip():
            raise PlanError("Could not generate a valid restoration plan. The AI returned an empty response.")

        response_text = response_text.strip()

        # Remove markdown code blocks if present
        if response_text.startswith('```'):
            lines = response_text.split('\n')
            response_text = '\n'.join(lines[1:-1])
        if response_text.startswith('json'):
            response_text = response_text[4:].strip()

        try:
            raw = json.loads(response_text)
        except json.JSONDecodeError as e:
            print("Error: Failed to parse restoration plan from Gemini response", file=sys.stderr)
            print(f"Response was: {response_text}", file=sys.stderr)
            raise PlanError(
                "Could not generate a valid restoration plan. "
                "The AI's response was not in the expected format."
            ) from e

        return validate_plan(raw)

    def request_edit_prompt(self, image_ref: str, goal: str, instructions: str = '') -> str:
        """
        Ask the prompt model for an edit instruction for one plan step.

        Raises:
            PromptError: If the call fails or returns no text
        """
        try:
            response = self.client.models.generate_content(
                model=self.settings.prompt_model,
                contents=[STEP_PROMPT.format(goal=goal, instructions=instructions), self._image_part(image_ref)],
            )
        except Exception as e:
            raise PromptError(f"Failed to generate a prompt for \"{goal}\": {e}") from e

        prompt = (getattr(response, 'text', None) or '').strip()
        if not prompt:
            raise PromptError(f"The AI returned an empty prompt for \"{goal}\".")
        return prompt

    def request_image_edit(self, image_ref: str, prompt: str) -> str:
        """
        Apply an edit prompt to an image with the image model.

        Returns:
            A new image reference

        Raises:
            EditError: If the call fails or the response carries no usable image
        """
        try:
            response = self.client.models.generate_content(
                model=self.settings.image_model,
                contents=[prompt, self._image_part(image_ref)],
                config=types.GenerateContentConfig(response_modalities=['IMAGE']),
            )
        except Exception as e:
            raise EditError(f"Image generation failed: {e}") from e

        extracted = self._extract_image(response)
        if extracted is None:
            raise EditError("Image generation failed or did not return an image.")

        data, declared_type = extracted
        detected = detect_media_type(data)
        if detected is None:
            raise EditError("Image generation returned data that is not a readable image.")

        return to_data_url(data, declared_type or detected)

    def _iter_response_parts(self, response) -> Iterable[Any]:
        """Yield parts from a Gemini response, handling multiple response shapes."""
        parts = getattr(response, 'parts', None)
        if parts:
            return parts
        candidates = getattr(response, 'candidates', None)
        if candidates:
            content = getattr(candidates[0], 'content', None)
            if content is not None and getattr(content, 'parts', None):
                return content.parts
        return []

    def _extract_image(self, response) -> Optional[Tuple[bytes, Optional[str]]]:
        """Extract the final (non-thought) image bytes and media type from the response."""
        non_thought_images = []
        thought_images = []

        for part in self._iter_response_parts(response):
            inline_data = getattr(part, 'inline_data', None)
            if not inline_data:
                continue
            data = getattr(inline_data, 'data', None)
            if not data:
                continue
            if isinstance(data, str):
                try:
                    data = base64.b64decode(data)
                except ValueError:
                    continue
            media_type = getattr(inline_data, 'mime_type', None)
            if getattr(part, 'thought', False):
                thought_images.append((data, media_type))
            else:
                non_thought_images.append((data, media_type))

        if non_thought_images:
            return non_thought_images[-1]
        if thought_images:
            return thought_images[-1]
        return None


def main():
    """CLI interface for the Gateway: print a restoration plan for an image."""
    if len(sys.argv) not in (2, 3):
        print("Usage: gateway.py <image_path> [instructions]", file=sys.stderr)
        sys.exit(1)

    image_path = Path(sys.argv[1])
    instructions = sys.argv[2] if len(sys.argv) == 3 else ''

    if not image_path.exists():
        print(f"Error: Image not found: {image_path}", file=sys.stderr)
        sys.exit(1)

    settings = load_settings()
    if not settings.api_key:
        print("Error: GEMINI_API_KEY environment variable not set", file=sys.stderr)
        sys.exit(1)

    gateway = GeminiGateway(settings)
    plan = gateway.request_plan(file_to_data_url(image_path), instructions)

    print(json.dumps([{'step': s.step, 'goal': s.goal} for s in plan], indent=2))


if __name__ == '__main__':
    main()
