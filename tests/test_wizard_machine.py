#!/usr/bin/env python3
"""
Tests for WizardMachine: step gating, back navigation and the single-flight
generation on the last step.

USAGE:
    Run from project root: python -m pytest tests/test_wizard_machine.py -v
"""

import asyncio
import os
import sys
import unittest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from haccp_wizard.errors import GenerationError
from haccp_wizard.schemas.form_models import FormData, RESULT_STEP, TOTAL_STEPS, WizardPhase, WizardState
from haccp_wizard.schemas.result_models import AllergenSuggestion, GeneratedResult, HazardSuggestion
from haccp_wizard.wizard.machine import GENERATION_ERROR_MESSAGE, WizardMachine
from haccp_wizard.wizard.steps import is_step_valid
from haccp_wizard.wizard.transitions import Action
from wizard_fixtures import FakeGenerator, act, complete_state, sample_result


class TestStepGating(unittest.IsolatedAsyncioTestCase):

    async def test_invalid_step_blocks_advance(self):
        machine = WizardMachine(FakeGenerator())
        self.assertFalse(machine.can_advance())
        self.assertFalse(await machine.advance())
        self.assertEqual(machine.state.current_step, 1)

    async def test_valid_steps_advance_by_one(self):
        for n in range(1, TOTAL_STEPS):
            machine = WizardMachine(FakeGenerator(), complete_state(step=n))
            self.assertTrue(machine.can_advance())
            self.assertTrue(await machine.advance())
            self.assertEqual(machine.state.current_step, n + 1)

    async def test_walk_through_all_steps(self):
        generator = FakeGenerator()
        machine = WizardMachine(generator, complete_state(step=1))
        for _ in range(TOTAL_STEPS):
            self.assertTrue(await machine.advance())
        self.assertEqual(machine.state.current_step, RESULT_STEP)
        self.assertEqual(machine.phase, WizardPhase.result)
        self.assertEqual(generator.generate_calls, 1)
        self.assertEqual(machine.step_title(), "Generated documentation")

    async def test_invalid_nip_reports_field_error(self):
        machine = WizardMachine(FakeGenerator(), complete_state(step=2))
        machine.dispatch(Action(type="set_detail", payload={"field": "nip", "value": "12345"}))
        self.assertFalse(machine.can_advance())
        self.assertEqual(list(machine.field_errors()), ["nip"])
        self.assertFalse(await machine.advance())

    async def test_failing_predicate_never_changes_state(self):
        breakers = {
            1: lambda s: s.model_copy(update={"form_data": s.form_data.model_copy(update={"category": None})}),
            2: lambda s: act(s, "set_detail", field="nip", value="12-34"),
            3: lambda s: act(act(s, "remove_product", name="Chicken Soup"), "remove_product", name="Salad"),
            4: lambda s: act(s, "toggle_equipment", name="Combi oven"),
            5: lambda s: act(s, "remove_stage", id=s.form_data.stages[0].id),
            7: lambda s: act(s, "add_supplier", name="", products="Milk"),
            8: lambda s: act(s, "set_working_condition", field="humidity", value=" "),
        }
        # Step 6 has no required input, so there is nothing to break
        self.assertTrue(is_step_valid(6, FormData()))
        for n, breaker in breakers.items():
            before = breaker(complete_state(step=n))
            self.assertFalse(is_step_valid(n, before.form_data), f"step {n}")
            generator = FakeGenerator()
            machine = WizardMachine(generator, before)

            self.assertFalse(await machine.advance(), f"step {n}")
            self.assertIs(machine.state, before, f"step {n}")
            self.assertEqual(generator.generate_calls, 0)


class TestBackNavigation(unittest.TestCase):

    def test_back_from_first_step_is_noop(self):
        machine = WizardMachine(FakeGenerator())
        self.assertFalse(machine.back())
        self.assertEqual(machine.state.current_step, 1)

    def test_back_ignores_validity(self):
        machine = WizardMachine(FakeGenerator(), WizardState(current_step=4))
        self.assertTrue(machine.back())
        self.assertEqual(machine.state.current_step, 3)

    def test_back_from_result_keeps_result(self):
        state = complete_state().model_copy(update={
            "current_step": RESULT_STEP, "generated_result": sample_result()})
        machine = WizardMachine(FakeGenerator(), state)
        self.assertTrue(machine.back())
        self.assertEqual(machine.state.current_step, TOTAL_STEPS)
        self.assertIsNotNone(machine.state.generated_result)


class TestGeneration(unittest.IsolatedAsyncioTestCase):

    async def test_success_moves_to_result(self):
        generator = FakeGenerator()
        machine = WizardMachine(generator, complete_state())
        self.assertTrue(await machine.advance())
        self.assertEqual(machine.state.generated_result, generator.result)
        self.assertFalse(machine.state.is_submitting)
        self.assertIsNone(machine.state.last_error)

    async def test_single_flight(self):
        gate = asyncio.Event()
        generator = FakeGenerator(gate=gate)
        machine = WizardMachine(generator, complete_state())

        first = asyncio.create_task(machine.advance())
        await asyncio.sleep(0)
        self.assertEqual(machine.phase, WizardPhase.generating)
        self.assertTrue(machine.state.is_submitting)

        # Re-entrant calls are rejected while the first is in flight
        self.assertFalse(await machine.advance())
        self.assertFalse(machine.back())
        self.assertFalse(machine.dispatch(Action(type="add_product", payload={"name": "Pizza"})))
        self.assertFalse(machine.can_advance())
        self.assertNotIn("Pizza", machine.state.form_data.products)

        gate.set()
        self.assertTrue(await first)
        self.assertEqual(generator.generate_calls, 1)
        self.assertEqual(machine.state.current_step, RESULT_STEP)

    async def test_failure_reverts_to_last_step(self):
        generator = FakeGenerator(error=GenerationError("network down"))
        start = complete_state()
        machine = WizardMachine(generator, start)

        self.assertFalse(await machine.advance())
        self.assertEqual(machine.state.current_step, TOTAL_STEPS)
        self.assertFalse(machine.state.is_submitting)
        self.assertEqual(machine.state.last_error, GENERATION_ERROR_MESSAGE)
        self.assertIsNone(machine.state.generated_result)
        self.assertEqual(machine.state.form_data, start.form_data)

    async def test_unexpected_exception_is_contained(self):
        machine = WizardMachine(FakeGenerator(error=RuntimeError("bad json")), complete_state())
        self.assertFalse(await machine.advance())
        self.assertEqual(machine.phase, WizardPhase.step)

    async def test_empty_payload_counts_as_failure(self):
        machine = WizardMachine(FakeGenerator(result=GeneratedResult()), complete_state())
        self.assertFalse(await machine.advance())
        self.assertEqual(machine.state.current_step, TOTAL_STEPS)
        self.assertEqual(machine.state.last_error, GENERATION_ERROR_MESSAGE)

    async def test_retry_after_failure(self):
        generator = FakeGenerator(error=GenerationError("timeout"))
        machine = WizardMachine(generator, complete_state())
        self.assertFalse(await machine.advance())

        generator.error = None
        self.assertTrue(await machine.advance())
        self.assertEqual(generator.generate_calls, 2)
        self.assertIsNone(machine.state.last_error)
        self.assertEqual(machine.phase, WizardPhase.result)

    async def test_advance_on_result_is_noop(self):
        machine = WizardMachine(FakeGenerator(), complete_state())
        await machine.advance()
        self.assertFalse(await machine.advance())
        self.assertEqual(machine.state.current_step, RESULT_STEP)

    async def test_on_change_sees_every_commit(self):
        seen = []
        machine = WizardMachine(FakeGenerator(), complete_state(), on_change=seen.append)
        await machine.advance()
        self.assertEqual([s.phase for s in seen], [WizardPhase.generating, WizardPhase.result])

    def test_restored_submitting_state_is_reset(self):
        interrupted = complete_state().model_copy(update={"is_submitting": True})
        machine = WizardMachine(FakeGenerator(), interrupted)
        self.assertEqual(machine.phase, WizardPhase.step)
        self.assertEqual(machine.state.current_step, TOTAL_STEPS)
        self.assertIsNone(machine.state.last_error)


class TestSuggestions(unittest.IsolatedAsyncioTestCase):

    async def test_allergen_suggestions_merge_into_matrix(self):
        generator = FakeGenerator()
        generator.allergens = [AllergenSuggestion(dish="Chicken Soup", allergens=["Celery", "gluten"])]
        machine = WizardMachine(generator, complete_state(step=6))
        await machine.suggest_allergens()
        self.assertEqual(machine.state.form_data.allergens_for("Chicken Soup"), ["Gluten", "Celery"])

    async def test_hazard_suggestions_merge_into_rows(self):
        generator = FakeGenerator()
        generator.hazards = [HazardSuggestion(productName="Salad", physical="Soil")]
        machine = WizardMachine(generator, complete_state(step=6))
        await machine.suggest_product_hazards()
        self.assertEqual(machine.state.form_data.hazards_for("Salad").physical, "Soil")

    async def test_no_products_no_call(self):
        generator = FakeGenerator()
        generator.allergens = [AllergenSuggestion(dish="X", allergens=["Milk"])]
        machine = WizardMachine(generator)
        self.assertEqual(await machine.suggest_allergens(), [])


if __name__ == "__main__":
    unittest.main()
