#!/usr/bin/env python3
"""
CASCADE Orchestrator - Main restoration loop.
Turns a restoration plan into a chain of prompt and edit calls, publishing
every completed step as soon as it finishes.
"""

import sys
import threading
from dataclasses import replace
from typing import Callable, List, Optional

from cascade.models import AppStatus, RestorationStep, RunState, validate_plan

UNKNOWN_ERROR = 'An unknown error occurred during the restoration process.'

Observer = Callable[[RunState], None]


class RestorationCascade:
    """
    Runs one restoration at a time against an injected gateway.

    The gateway must provide ``request_plan``, ``request_edit_prompt`` and
    ``request_image_edit``. Observers receive a fresh ``RunState`` after every
    status change, progress message and completed step.
    """

    def __init__(self, gateway, on_update: Optional[Observer] = None):
        self.gateway = gateway
        self._observers: List[Observer] = []
        if on_update is not None:
            self._observers.append(on_update)

        self._lock = threading.Lock()
        self._state = RunState()
        # Bumped by every run and reset; a run whose generation is stale stops publishing.
        self._generation = 0
        # Loops still executing, including abandoned ones waiting on a gateway call.
        self._running = 0

    def subscribe(self, observer: Observer):
        """Register an observer for state updates."""
        self._observers.append(observer)

    @property
    def state(self) -> RunState:
        with self._lock:
            return self._state

    @property
    def is_processing(self) -> bool:
        return self.state.is_processing

    @property
    def is_busy(self) -> bool:
        """True while any loop is executing, even one abandoned by a reset."""
        with self._lock:
            return self._running > 0

    def _publish(self, generation: int, **changes) -> bool:
        """Apply changes to the state if the run is still current, then notify observers."""
        with self._lock:
            if generation != self._generation:
                return False
            self._state = replace(self._state, **changes)
            snapshot = self._state

        for observer in list(self._observers):
            try:
                observer(snapshot)
            except Exception as e:
                print(f"Warning: state observer failed: {e}", file=sys.stderr)
        return True

    def _begin(self, image: str) -> Optional[int]:
        """Claim the cascade for a new run; None if a loop is still executing."""
        with self._lock:
            if self._state.is_processing or self._running:
                return None
            self._generation += 1
            self._running += 1
            self._state = RunState(
                status=AppStatus.PLANNING,
                progress='Generating restoration plan...',
                original_image=image,
            )
            return self._generation

    def reset(self) -> RunState:
        """Return to idle, dropping results and abandoning any run in flight."""
        with self._lock:
            self._generation += 1
            generation = self._generation
            self._state = RunState()
        self._publish(generation)
        return self.state

    def run(self, image: Optional[str], instructions: str = '') -> RunState:
        """
        Run the complete cascade for one image.

        Args:
            image: Image reference of the uploaded photo
            instructions: Optional free-text request from the user

        Returns:
            The state at the end of the run. Without an image, or while
            another run is in flight, nothing starts and the current state
            is returned.
        """
        if not image:
            return self.state

        generation = self._begin(image)
        if generation is None:
            return self.state

        self._execute(generation, image, instructions or '')
        return self.state

    def start(self, image: Optional[str], instructions: str = '') -> Optional[threading.Thread]:
        """
        Start a run on a background thread.

        Returns:
            The worker thread, or None if nothing was started
        """
        if not image:
            return None

        generation = self._begin(image)
        if generation is None:
            return None

        worker = threading.Thread(
            target=self._execute,
            args=(generation, image, instructions or ''),
            name=f'cascade-run-{generation}',
            daemon=True,
        )
        worker.start()
        return worker

    def _execute(self, generation: int, image: str, instructions: str):
        try:
            self._publish(generation)
            plan = validate_plan(self.gateway.request_plan(image, instructions))

            if not self._publish(generation, status=AppStatus.RESTORING):
                return

            current_image = image
            completed: List[RestorationStep] = []
            total_steps = len(plan)

            for index, plan_step in enumerate(plan):
                label = f'Step {index + 1}/{total_steps}'

                if not self._publish(generation, progress=f'{label}: Generating prompt for "{plan_step.goal}"...'):
                    return
                step_prompt = self.gateway.request_edit_prompt(current_image, plan_step.goal, instructions)

                if not self._publish(generation, progress=f'{label}: Applying AI restoration for "{plan_step.goal}"...'):
                    return
                new_image = self.gateway.request_image_edit(current_image, step_prompt)

                completed.append(RestorationStep.from_plan(
                    plan_step,
                    prompt=step_prompt,
                    before_image=current_image,
                    after_image=new_image,
                ))
                if not self._publish(generation, steps=tuple(completed)):
                    return

                current_image = new_image

            self._publish(generation, status=AppStatus.DONE, progress='Restoration complete!')

        except Exception as e:
            print(f"Error during restoration: {e}", file=sys.stderr)
            self._publish(generation, status=AppStatus.ERROR, error=str(e) or UNKNOWN_ERROR)
        finally:
            with self._lock:
                self._running -= 1
