#!/usr/bin/env python3
"""
Tests for the pure wizard transitions: form actions, suggestion merges and
navigation.

USAGE:
    Run from project root: python -m pytest tests/test_transitions.py -v
"""

import os
import sys
import unittest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from haccp_wizard.errors import ActionPayloadError, UnknownActionError
from haccp_wizard.schemas.form_models import (
    DocType,
    HACCPCategory,
    RESULT_STEP,
    TOTAL_STEPS,
    WizardPhase,
    WizardState,
)
from haccp_wizard.schemas.result_models import AllergenSuggestion, HazardSuggestion
from haccp_wizard.wizard import transitions as t
from wizard_fixtures import act, complete_state, sample_result


class TestFormActions(unittest.TestCase):

    def test_inputs_are_not_mutated(self):
        state = WizardState()
        after = t.add_product(state, "Soup")
        self.assertEqual(state.form_data.products, [])
        self.assertEqual(after.form_data.products, ["Soup"])

    def test_category_and_doc_type(self):
        state = act(WizardState(), "set_category", category="foodtruck")
        state = act(state, "set_doc_type", doc_type="HACCP + GHP")
        self.assertEqual(state.form_data.category, HACCPCategory.foodtruck)
        self.assertEqual(state.form_data.doc_type, DocType.haccp_ghp)

    def test_unknown_category_rejected(self):
        with self.assertRaises(ActionPayloadError):
            act(WizardState(), "set_category", category="bakery")
        with self.assertRaises(ActionPayloadError):
            act(WizardState(), "set_doc_type")

    def test_unknown_action_rejected(self):
        with self.assertRaises(UnknownActionError) as ctx:
            act(WizardState(), "launch_rocket")
        self.assertEqual(ctx.exception.action_type, "launch_rocket")

    def test_set_field_routes_details_and_conditions(self):
        state = t.set_field(WizardState(), "nip", "1234567890")
        state = t.set_field(state, "humidity", "50%")
        self.assertEqual(state.form_data.details.nip, "1234567890")
        self.assertEqual(state.form_data.working_conditions.humidity, "50%")
        with self.assertRaises(ActionPayloadError):
            t.set_field(state, "colour", "red")

    def test_add_product_ignores_blank_and_duplicates(self):
        state = t.add_product(WizardState(), "Soup")
        state = t.add_product(state, "Soup")
        state = t.add_product(state, "   ")
        self.assertEqual(state.form_data.products, ["Soup"])
        self.assertEqual(len(state.form_data.allergen_matrix), 1)

    def test_toggle_product(self):
        state = act(WizardState(), "toggle_product", name="Soup")
        self.assertEqual(state.form_data.products, ["Soup"])
        state = act(state, "toggle_product", name="Soup")
        self.assertEqual(state.form_data.products, [])
        self.assertEqual(state.form_data.product_hazards, [])

    def test_equipment_actions(self):
        state = act(WizardState(), "toggle_equipment", name="Slicer")
        state = act(state, "add_equipment", name="Cold room", count=2)
        names = [e.name for e in state.form_data.equipment]
        self.assertEqual(names, ["Slicer", "Cold room"])

        cold_room = state.form_data.equipment[1]
        state = act(state, "set_equipment_count", id=cold_room.id, count=3)
        self.assertEqual(state.form_data.equipment[1].count, 3)
        with self.assertRaises(ActionPayloadError):
            act(state, "set_equipment_count", id=cold_room.id, count=0)

        state = act(state, "toggle_equipment", name="Slicer")
        state = act(state, "remove_equipment", id=cold_room.id)
        self.assertEqual(state.form_data.equipment, [])

    def test_stage_and_supplier_actions(self):
        state = act(WizardState(), "add_stage", name="Receiving")
        stage_id = state.form_data.stages[0].id
        state = act(state, "update_stage", id=stage_id, description="Check temperature")
        self.assertEqual(state.form_data.stages[0].description, "Check temperature")
        self.assertEqual(state.form_data.stages[0].name, "Receiving")
        state = act(state, "remove_stage", id=stage_id)
        self.assertEqual(state.form_data.stages, [])

        state = act(state, "add_supplier", name="Dairy Co", products="Milk")
        supplier_id = state.form_data.suppliers[0].id
        state = act(state, "update_supplier", id=supplier_id, contact="+48 600 000 000")
        self.assertEqual(state.form_data.suppliers[0].contact, "+48 600 000 000")
        with self.assertRaises(ActionPayloadError):
            act(state, "update_supplier", id="missing")
        state = act(state, "remove_supplier", id=supplier_id)
        self.assertEqual(state.form_data.suppliers, [])

    def test_toggle_allergen_keeps_canonical_order(self):
        state = t.add_product(WizardState(), "Cake")
        state = act(state, "toggle_allergen", product="Cake", allergen="Milk")
        state = act(state, "toggle_allergen", product="Cake", allergen="Gluten")
        self.assertEqual(state.form_data.allergens_for("Cake"), ["Gluten", "Milk"])
        state = act(state, "toggle_allergen", product="Cake", allergen="Milk")
        self.assertEqual(state.form_data.allergens_for("Cake"), ["Gluten"])

    def test_toggle_allergen_rejects_unknowns(self):
        state = t.add_product(WizardState(), "Cake")
        with self.assertRaises(ActionPayloadError):
            act(state, "toggle_allergen", product="Cake", allergen="Chocolate")
        with self.assertRaises(ActionPayloadError):
            act(state, "toggle_allergen", product="Bread", allergen="Gluten")

    def test_set_product_hazard(self):
        state = t.add_product(WizardState(), "Tartare")
        state = act(state, "set_product_hazard", product="Tartare", field="biological", value="E. coli")
        self.assertEqual(state.form_data.hazards_for("Tartare").biological, "E. coli")
        with self.assertRaises(ActionPayloadError):
            act(state, "set_product_hazard", product="Tartare", field="radioactive", value="x")

    def test_sop_blocks(self):
        state = act(WizardState(), "add_sop_block", text="Cleaning")
        state = act(state, "add_sop_block", text="Cleaning")
        state = act(state, "add_sop_block", text="Pest control")
        self.assertEqual(state.form_data.sop_blocks, ["Cleaning", "Pest control"])
        state = act(state, "remove_sop_block", index=0)
        self.assertEqual(state.form_data.sop_blocks, ["Pest control"])
        with self.assertRaises(ActionPayloadError):
            act(state, "remove_sop_block", index=5)

    def test_actions_ignored_while_submitting(self):
        state = complete_state().model_copy(update={"is_submitting": True})
        self.assertIs(t.add_product(state, "Pizza"), state)


class TestProductScenario(unittest.TestCase):

    def test_allergen_survives_unrelated_removal(self):
        state = t.add_product(WizardState(), "Chicken Soup")
        state = t.add_product(state, "Salad")
        state = act(state, "toggle_allergen", product="Chicken Soup", allergen="Gluten")
        state = t.remove_product(state, "Salad")

        form = state.form_data
        self.assertEqual(form.products, ["Chicken Soup"])
        self.assertEqual(len(form.allergen_matrix), 1)
        self.assertEqual(form.allergens_for("Chicken Soup"), ["Gluten"])
        self.assertEqual([h.product_name for h in form.product_hazards], ["Chicken Soup"])

    def test_removing_first_product_keeps_later_row(self):
        state = t.add_product(WizardState(), "Chicken Soup")
        state = t.add_product(state, "Salad")
        state = act(state, "toggle_allergen", product="Salad", allergen="Gluten")
        state = t.remove_product(state, "Chicken Soup")

        form = state.form_data
        self.assertEqual(form.products, ["Salad"])
        self.assertEqual([e.product_name for e in form.allergen_matrix], ["Salad"])
        self.assertEqual([h.product_name for h in form.product_hazards], ["Salad"])
        self.assertEqual(form.allergens_for("Salad"), ["Gluten"])


class TestSuggestionMerges(unittest.TestCase):

    def test_allergen_suggestions_normalized(self):
        state = t.add_product(WizardState(), "Pancakes")
        state = t.add_product(state, "Tea")
        suggestions = [
            AllergenSuggestion(dish="Pancakes", allergens=["milk", "Eggs", "wheat flour", "cocoa"]),
            AllergenSuggestion(dish="Unknown dish", allergens=["Fish"]),
        ]
        merged = t.apply_allergen_suggestions(state, suggestions)
        self.assertEqual(merged.form_data.allergens_for("Pancakes"), ["Gluten", "Eggs", "Milk"])
        self.assertEqual(merged.form_data.allergens_for("Tea"), [])
        self.assertIsNone(merged.form_data.allergens_for("Unknown dish"))

    def test_hazard_suggestions_fill_rows(self):
        state = t.add_product(WizardState(), "Tartare")
        merged = t.apply_hazard_suggestions(state, [
            HazardSuggestion(product_name="Tartare", biological="Salmonella", physical="Bone"),
        ])
        row = merged.form_data.hazards_for("Tartare")
        self.assertEqual((row.biological, row.chemical, row.physical), ("Salmonella", "", "Bone"))

    def test_empty_suggestions_keep_state(self):
        state = t.add_product(WizardState(), "Tea")
        self.assertIs(t.apply_allergen_suggestions(state, []), state)
        self.assertIs(t.apply_hazard_suggestions(state, []), state)

    def test_normalize_allergen(self):
        self.assertEqual(t.normalize_allergen("SESAME"), "Sesame")
        self.assertEqual(t.normalize_allergen("soya lecithin"), "Soy")
        self.assertIsNone(t.normalize_allergen("  "))
        self.assertIsNone(t.normalize_allergen("chocolate"))

    def test_normalize_singular_and_specific_labels(self):
        expected = {
            "Peanut": "Peanuts",
            "peanut oil": "Peanuts",
            "crustacean": "Crustaceans",
            "prawns": "Crustaceans",
            "Mollusc": "Molluscs",
            "mussels": "Molluscs",
            "tree nut": "Tree nuts",
            "hazelnuts": "Tree nuts",
            "sulphite": "Sulphites",
        }
        for label, allergen in expected.items():
            self.assertEqual(t.normalize_allergen(label), allergen, label)


class TestNavigation(unittest.TestCase):

    def test_next_step_gated(self):
        state = WizardState()
        self.assertIs(t.next_step(state), state)
        state = act(state, "set_category", category="production")
        state = act(state, "set_doc_type", doc_type="GMP")
        self.assertEqual(t.next_step(state).current_step, 2)

    def test_next_step_stops_at_last_step(self):
        state = complete_state()
        self.assertIs(t.next_step(state), state)

    def test_previous_step(self):
        self.assertEqual(t.previous_step(complete_state(step=4)).current_step, 3)
        first = complete_state(step=1)
        self.assertIs(t.previous_step(first), first)
        # Back navigation never checks validity
        self.assertEqual(t.previous_step(WizardState(current_step=5)).current_step, 4)

    def test_generation_lifecycle(self):
        state = t.begin_generation(complete_state())
        self.assertTrue(state.is_submitting)
        self.assertEqual(state.phase, WizardPhase.generating)
        self.assertIs(t.begin_generation(state), state)

        done = t.finish_generation(state, sample_result())
        self.assertEqual(done.current_step, RESULT_STEP)
        self.assertEqual(done.phase, WizardPhase.result)
        self.assertFalse(done.is_submitting)

        back = t.previous_step(done)
        self.assertEqual(back.current_step, TOTAL_STEPS)
        self.assertIsNotNone(back.generated_result)

    def test_begin_generation_requires_valid_last_step(self):
        state = complete_state()
        state = t.set_field(state, "ventilation", "")
        self.assertIs(t.begin_generation(state), state)
        early = complete_state(step=3)
        self.assertIs(t.begin_generation(early), early)

    def test_fail_generation_restores_last_step(self):
        state = t.begin_generation(complete_state())
        failed = t.fail_generation(state, "boom")
        self.assertEqual(failed.current_step, TOTAL_STEPS)
        self.assertFalse(failed.is_submitting)
        self.assertEqual(failed.last_error, "boom")
        self.assertEqual(failed.form_data, state.form_data)

    def test_form_edit_after_result_clears_it(self):
        done = t.finish_generation(t.begin_generation(complete_state()), sample_result())
        back = t.previous_step(done)

        edited = act(back, "toggle_allergen", product="Salad", allergen="Mustard")
        self.assertIsNone(edited.generated_result)
        self.assertEqual(edited.current_step, TOTAL_STEPS)

    def test_noop_edit_keeps_result(self):
        back = t.previous_step(t.finish_generation(complete_state(), sample_result()))
        # Re-adding an existing product changes nothing
        same = t.add_product(back, "Salad")
        self.assertIs(same, back)
        self.assertIsNotNone(same.generated_result)

    def test_suggestion_merge_after_result_clears_it(self):
        back = t.previous_step(t.finish_generation(complete_state(), sample_result()))
        merged = t.apply_hazard_suggestions(back, [HazardSuggestion(product_name="Salad", physical="Soil")])
        self.assertIsNone(merged.generated_result)


if __name__ == "__main__":
    unittest.main()
