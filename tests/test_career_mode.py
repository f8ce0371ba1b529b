import unittest

from shadowledger.modules.character_pkg import career, magic, services
from shadowledger.modules.character_pkg.results import ErrorKind
from shadowledger.modules.character_pkg.schemas import CharacterSettings, CharacterStatus
from shadowledger.modules.rules_pkg import calculations
from shadowledger.modules.rules_pkg.data_loader import get_catalog


class CareerTestCase(unittest.TestCase):
    def setUp(self):
        self.catalog = get_catalog()
        character = services.new_character(settings=CharacterSettings())
        character = services.set_metatype(character, self.catalog.find_by_name("metatypes", "Human")).character
        character = services.set_attribute(character, "bod", 3).character
        character = services.set_skill(character, "Pistols", 3).character
        self.creation = character
        self.career = career.enter_career_mode(character).character

    def with_karma(self, character, amount):
        result = career.award_karma(character, amount, "Run payout")
        self.assertTrue(result.success)
        return result.character


class TestModeTransition(CareerTestCase):
    def test_enter_career_mode(self):
        self.assertEqual(self.career.status, CharacterStatus.CAREER)
        self.assertTrue(self.career.is_career)
        self.assertEqual(self.career.build_points_spent, self.creation.build_points_spent)

    def test_transition_is_one_way(self):
        result = career.enter_career_mode(self.career)
        self.assertEqual(result.kind, ErrorKind.INVALID_MODE)
        self.assertEqual(result.error, "Character is already in career mode")

    def test_karma_spending_requires_career(self):
        creation = self.with_karma(self.creation, 50)
        for result in (
            career.improve_attribute(creation, "bod"),
            career.improve_skill(creation, "Pistols"),
            career.learn_new_skill(creation, "Hacking"),
            career.spend_karma(creation, 5, "Bribe"),
        ):
            self.assertFalse(result.success)
            self.assertEqual(result.kind, ErrorKind.INVALID_MODE)
            self.assertIn("career mode", result.error)


class TestAwards(CareerTestCase):
    def test_award_karma(self):
        character = self.with_karma(self.career, 50)
        self.assertEqual(character.karma, 50)
        self.assertEqual(character.total_karma, 50)
        entry = character.expense_log[-1]
        self.assertEqual((entry.type, entry.amount, entry.reason), ("karma", 50, "Run payout"))

    def test_awards_must_be_positive(self):
        self.assertEqual(career.award_karma(self.career, 0).kind, ErrorKind.INVALID_ARGUMENT)
        self.assertEqual(career.award_nuyen(self.career, -5).kind, ErrorKind.INVALID_ARGUMENT)

    def test_nuyen_award_and_spend(self):
        character = career.award_nuyen(self.career, 5000, "Extraction job").character
        character = career.spend_nuyen(character, 1200, "Doc Wagon").character
        self.assertEqual(character.nuyen, 3800)
        amounts = [e.amount for e in career.get_expense_log(character, "nuyen")]
        self.assertEqual(amounts, [5000, -1200])

        result = career.spend_nuyen(character, 10000, "Car")
        self.assertEqual(result.error, "Not enough nuyen (need 10000, have 3800)")

    def test_generic_karma_spend(self):
        character = self.with_karma(self.career, 10)
        character = career.spend_karma(character, 4, "Bond focus").character
        self.assertEqual(character.karma, 6)
        self.assertEqual(character.total_karma, 10)

    def test_expense_log_filter(self):
        character = self.with_karma(self.career, 10)
        character = career.award_nuyen(character, 100).character
        self.assertEqual(len(career.get_expense_log(character)), 2)
        self.assertEqual(len(career.get_expense_log(character, "karma")), 1)


class TestImprovements(CareerTestCase):
    def test_improve_attribute_costs_new_rating_times_five(self):
        character = self.with_karma(self.career, 50)
        result = career.improve_attribute(character, "bod")
        self.assertTrue(result.success)
        improved = result.character
        self.assertEqual(improved.karma, 30)
        self.assertEqual(improved.attributes["bod"].base, 3)
        self.assertEqual(improved.attributes["bod"].karma, 1)
        self.assertEqual(improved.attributes["bod"].rating, 4)
        entry = improved.expense_log[-1]
        self.assertEqual(entry.amount, -20)
        self.assertEqual(entry.reason, "Improved Body to 4")

    def test_attribute_stops_at_augmented_max(self):
        character = self.with_karma(self.career, 1000)
        for _ in range(6):
            character = career.improve_attribute(character, "bod").character
        self.assertEqual(character.attributes["bod"].rating, 9)
        result = career.improve_attribute(character, "bod")
        self.assertEqual(result.kind, ErrorKind.ALREADY_AT_LIMIT)
        self.assertEqual(result.error, "Body is already at maximum (9)")

    def test_failed_spend_changes_nothing(self):
        character = self.with_karma(self.career, 4)
        result = career.improve_attribute(character, "bod")
        self.assertFalse(result.success)
        self.assertEqual(result.error, "Not enough karma (need 20, have 4)")
        self.assertIsNone(result.character)
        self.assertEqual(character.karma, 4)
        self.assertEqual(len(character.expense_log), 1)

    def test_improve_skill(self):
        character = self.with_karma(self.career, 20)
        character = career.improve_skill(character, "Pistols").character
        self.assertEqual(character.karma, 12)
        self.assertEqual(character.skills[0].rating, 4)
        self.assertEqual(character.skills[0].karma_spent, 8)

    def test_improve_unknown_skill(self):
        character = self.with_karma(self.career, 20)
        result = career.improve_skill(character, "Hacking")
        self.assertEqual(result.error, "Skill 'Hacking' not found")

    def test_skill_max_rating(self):
        character = self.with_karma(self.career, 100)
        for _ in range(3):
            character = career.improve_skill(character, "Pistols").character
        result = career.improve_skill(character, "Pistols")
        self.assertEqual(result.kind, ErrorKind.ALREADY_AT_LIMIT)

    def test_learn_new_skill(self):
        character = self.with_karma(self.career, 10)
        character = career.learn_new_skill(character, "Hacking").character
        self.assertEqual(character.karma, 6)
        self.assertEqual(career.learn_new_skill(character, "Hacking").kind, ErrorKind.DUPLICATE)

    def test_specialization(self):
        character = self.with_karma(self.career, 10)
        character = career.add_specialization(character, "Pistols", "Semi-Automatics").character
        self.assertEqual(character.karma, 8)
        result = career.add_specialization(character, "Pistols", "Revolvers")
        self.assertEqual(result.error, "Pistols already has a specialization (Semi-Automatics)")

    def test_knowledge_skills(self):
        character = self.with_karma(self.career, 10)
        character = career.learn_knowledge_skill(character, "Corporate Politics", "Professional").character
        self.assertEqual(character.karma, 8)
        skill_id = character.knowledge_skills[0].id
        character = career.improve_knowledge_skill(character, skill_id).character
        self.assertEqual(character.karma, 6)
        self.assertEqual(character.knowledge_skills[0].rating, 2)

    def test_creation_removals_blocked(self):
        result = services.remove_skill(self.career, "Pistols")
        self.assertEqual(result.kind, ErrorKind.INVALID_MODE)


class TestMagicAdvancement(CareerTestCase):
    def _awakened(self, quality, capability):
        character = services.add_quality(self.creation, quality, "Positive", 15, capability=capability).character
        character = magic.initialize_magic(character, "Hermetic").character
        return career.enter_career_mode(character).character

    def test_initiation_costs_thirteen_and_opens_a_slot(self):
        character = self.with_karma(self._awakened("Magician", "magician"), 13)
        character = career.initiate(character).character
        self.assertEqual(character.magic.initiate_grade, 1)
        self.assertEqual(character.karma, 0)
        self.assertEqual(calculations.free_metamagic_slots(character), 1)

        character = magic.add_metamagic(character, "Centering").character
        self.assertEqual(magic.add_metamagic(character, "Masking").kind, ErrorKind.ALREADY_AT_LIMIT)

    def test_initiation_unaffordable(self):
        character = self.with_karma(self._awakened("Magician", "magician"), 4)
        result = career.initiate(character)
        self.assertEqual(result.error, "Not enough karma (need 13, have 4)")

    def test_mundanes_cannot_initiate(self):
        character = self.with_karma(self.career, 20)
        self.assertEqual(career.initiate(character).kind, ErrorKind.NOT_ELIGIBLE)

    def test_learn_spell(self):
        character = self.with_karma(self._awakened("Magician", "magician"), 10)
        character = career.learn_spell(character, self.catalog.find_by_name("spells", "Heal")).character
        self.assertEqual(character.karma, 5)
        self.assertEqual(character.magic.spells[0].karma, 5)
        self.assertEqual(character.build_points_spent.spells, 0)

    def test_adepts_cannot_learn_spells(self):
        character = self.with_karma(self._awakened("Adept", "adept"), 10)
        result = career.learn_spell(character, self.catalog.find_by_name("spells", "Heal"))
        self.assertEqual(result.kind, ErrorKind.NOT_ELIGIBLE)

    def test_submersion_opens_an_echo_slot(self):
        character = services.add_quality(self.creation, "Technomancer", "Positive", 5, capability="technomancer").character
        character = magic.initialize_resonance(character).character
        character = self.with_karma(career.enter_career_mode(character).character, 20)

        character = career.submerge(character).character
        self.assertEqual(character.resonance.submersion_grade, 1)
        self.assertEqual(character.karma, 7)
        self.assertEqual(calculations.free_echo_slots(character), 1)

        character = magic.add_echo(character, "Overclocking").character
        self.assertEqual(calculations.free_echo_slots(character), 0)

        character = career.learn_complex_form(character, self.catalog.find_by_name("complex_forms", "Browse")).character
        self.assertEqual(character.karma, 2)


if __name__ == "__main__":
    unittest.main()
