import unittest

from shadowledger.modules.character_pkg import career, equipment, services
from shadowledger.modules.character_pkg.results import ErrorKind
from shadowledger.modules.character_pkg.schemas import CharacterSettings, CharacterStatus
from shadowledger.modules.rules_pkg import calculations
from shadowledger.modules.rules_pkg.data_loader import get_catalog


class TestNewCharacter(unittest.TestCase):
    def test_bp_build_defaults(self):
        character = services.new_character(owner_id="user_1", settings=CharacterSettings())
        self.assertEqual(character.build_points, 400)
        self.assertEqual(character.status, CharacterStatus.CREATION)
        self.assertEqual(character.essence, 6.0)
        self.assertEqual(character.build_points_spent.total(), 0)
        self.assertEqual(character.attributes["bod"].base, 1)
        self.assertNotIn("mag", character.attributes)
        self.assertNotIn("res", character.attributes)
        self.assertIsNone(character.magic)
        self.assertEqual(character.nuyen, 0)

    def test_karma_build_uses_karma_budget(self):
        character = services.new_character(build_method="karma", settings=CharacterSettings())
        self.assertEqual(character.build_points, 750)

    def test_explicit_id(self):
        character = services.new_character(character_id="abc")
        self.assertEqual(character.id, "abc")


class TestCreationServices(unittest.TestCase):
    def setUp(self):
        self.catalog = get_catalog()
        self.character = services.new_character(settings=CharacterSettings())

    def _human(self):
        result = services.set_metatype(self.character, self.catalog.find_by_name("metatypes", "Human"))
        self.assertTrue(result.success, result.error)
        return result.character

    # --- Identity ---

    def test_update_identity(self):
        result = services.update_identity(self.character, "alias", "Wraith")
        self.assertTrue(result.success)
        self.assertEqual(result.character.identity.alias, "Wraith")
        self.assertEqual(self.character.identity.alias, "")

    def test_update_identity_rejects_metatype_field(self):
        result = services.update_identity(self.character, "metatype", "Troll")
        self.assertFalse(result.success)
        self.assertEqual(result.kind, ErrorKind.NOT_FOUND)

    def test_update_background(self):
        result = services.update_background(self.character, "concept", "Street samurai")
        self.assertEqual(result.character.background.concept, "Street samurai")

    # --- Metatype & attributes ---

    def test_human_clamps_edge_to_new_minimum(self):
        human = self._human()
        self.assertEqual(human.identity.metatype, "Human")
        self.assertEqual(human.attributes["edg"].base, 2)
        self.assertEqual(human.build_points_spent.metatype, 0)
        self.assertEqual(human.build_points_spent.attributes, 0)

    def test_elf_charges_metatype_bp(self):
        result = services.set_metatype(self.character, self.catalog.find_by_name("metatypes", "Elf"))
        self.assertTrue(result.success)
        elf = result.character
        self.assertEqual(elf.build_points_spent.metatype, 30)
        self.assertEqual(elf.attributes["cha"].base, 3)
        self.assertEqual(elf.attribute_limits["agi"].max, 7)
        self.assertEqual(calculations.remaining_bp(elf), 370)

    def test_metavariant_cost_replaces_metatype_cost(self):
        elf = self.catalog.find_by_name("metatypes", "Elf")
        result = services.set_metatype(self.character, elf, "Night One")
        self.assertTrue(result.success)
        self.assertEqual(result.character.build_points_spent.metatype, 45)
        self.assertEqual(result.character.identity.metavariant, "Night One")
        self.assertEqual(result.character.attributes["agi"].base, 3)

    def test_unknown_metavariant(self):
        elf = self.catalog.find_by_name("metatypes", "Elf")
        result = services.set_metatype(self.character, elf, "Sasquatch")
        self.assertEqual(result.kind, ErrorKind.NOT_FOUND)
        self.assertEqual(result.error, "Metavariant 'Sasquatch' not found")

    def test_unknown_metatype(self):
        result = services.set_metatype(self.character, None)
        self.assertEqual(result.kind, ErrorKind.NOT_FOUND)

    def test_switching_metatype_reprices_attributes(self):
        human = self._human()
        human = services.set_attribute(human, "bod", 3).character
        self.assertEqual(human.build_points_spent.attributes, 20)
        troll = services.set_metatype(human, self.catalog.find_by_name("metatypes", "Troll")).character
        # BOD 3 is clamped up to the troll minimum of 5, which is free.
        # Edge 2 was the human minimum but is one point above the troll one.
        self.assertEqual(troll.attributes["bod"].base, 5)
        self.assertEqual(troll.attributes["edg"].base, 2)
        self.assertEqual(troll.build_points_spent.attributes, 10)
        self.assertEqual(troll.build_points_spent.metatype, 40)

    def test_set_attribute_charges_ten_per_point(self):
        human = self._human()
        result = services.set_attribute(human, "bod", 4)
        self.assertTrue(result.success)
        self.assertEqual(result.character.attributes["bod"].base, 4)
        self.assertEqual(result.character.build_points_spent.attributes, 30)

    def test_set_attribute_clamps_to_natural_range(self):
        human = self._human()
        result = services.set_attribute(human, "bod", 12)
        self.assertEqual(result.character.attributes["bod"].base, 6)
        self.assertEqual(result.character.build_points_spent.attributes, 50)

        lowered = services.set_attribute(result.character, "bod", 0)
        self.assertEqual(lowered.character.attributes["bod"].base, 1)
        self.assertEqual(lowered.character.build_points_spent.attributes, 0)

    def test_set_attribute_unknown_code(self):
        result = services.set_attribute(self._human(), "xyz", 3)
        self.assertEqual(result.kind, ErrorKind.NOT_FOUND)

    def test_bp_ceiling(self):
        character = services.new_character(settings=CharacterSettings(starting_bp=20))
        result = services.set_attribute(character, "bod", 4)
        self.assertFalse(result.success)
        self.assertEqual(result.kind, ErrorKind.INSUFFICIENT_RESOURCE)
        self.assertEqual(result.error, "Not enough BP (need 30, have 20)")
        self.assertEqual(character.attributes["bod"].base, 1)

    def test_ignore_rules_lifts_bp_ceiling(self):
        character = services.new_character(settings=CharacterSettings(starting_bp=20, ignore_rules=True))
        result = services.set_attribute(character, "bod", 4)
        self.assertTrue(result.success)
        self.assertEqual(calculations.remaining_bp(result.character), -10)

    def test_refunds_always_succeed_when_over_budget(self):
        character = services.new_character(settings=CharacterSettings(starting_bp=20, ignore_rules=True))
        over = services.set_attribute(character, "bod", 4).character
        strict = over.model_copy(update={"settings": CharacterSettings(starting_bp=20)})
        result = services.set_attribute(strict, "bod", 3)
        self.assertTrue(result.success)
        self.assertEqual(result.character.build_points_spent.attributes, 20)

    # --- Qualities ---

    def test_add_and_remove_quality(self):
        result = services.add_quality(self.character, "Lucky", "Positive", 20)
        self.assertTrue(result.success)
        character = result.character
        self.assertEqual(character.build_points_spent.qualities, 20)

        removed = services.remove_quality(character, character.qualities[0].id)
        self.assertTrue(removed.success)
        self.assertEqual(removed.character.build_points_spent.qualities, 0)
        self.assertEqual(removed.character.qualities, ())

    def test_duplicate_quality(self):
        character = services.add_quality(self.character, "Lucky", "Positive", 20).character
        result = services.add_quality(character, "Lucky", "Positive", 20)
        self.assertEqual(result.kind, ErrorKind.DUPLICATE)
        self.assertEqual(result.error, "Already has quality 'Lucky'")

    def test_negative_quality_grants_bp(self):
        character = services.add_quality(self.character, "Bad Luck", "Negative", -20).character
        self.assertEqual(character.build_points_spent.qualities, -20)
        self.assertEqual(calculations.remaining_bp(character), 420)

    def test_quality_category_validated(self):
        result = services.add_quality(self.character, "Odd", "Neutral", 5)
        self.assertEqual(result.kind, ErrorKind.INVALID_ARGUMENT)

    def test_catalog_quality_keeps_capability(self):
        quality = self.catalog.find_by_name("qualities", "Aspected Magician (Sorcery)")
        result = services.add_catalog_quality(self.character, quality)
        self.assertEqual(result.character.qualities[0].capability, "aspected_magician")
        self.assertEqual(result.character.build_points_spent.qualities, 10)

    def test_quality_bp_is_captured(self):
        character = services.add_quality(self.character, "Toughness", "Positive", 10).character
        quality = character.qualities[0]
        # Removal refunds the stored value, not a catalog lookup.
        self.assertEqual(quality.bp, 10)

    # --- Skills ---

    def test_set_skill_prices_rating_and_specialization(self):
        character = services.set_skill(self.character, "Pistols", 4).character
        self.assertEqual(character.build_points_spent.skills, 16)

        character = services.set_skill(character, "Pistols", 4, "Semi-Automatics").character
        self.assertEqual(character.build_points_spent.skills, 18)
        self.assertEqual(len(character.skills), 1)

        character = services.set_skill(character, "Pistols", 2).character
        self.assertEqual(character.build_points_spent.skills, 8)
        self.assertIsNone(character.skills[0].specialization)

    def test_empty_specialization_is_free(self):
        character = services.set_skill(self.character, "Pistols", 3, "").character
        self.assertEqual(character.build_points_spent.skills, 12)
        self.assertIsNone(character.skills[0].specialization)

        character = services.set_knowledge_skill(character, "Seattle Gangs", 2, "Street", "").character
        self.assertEqual(character.build_points_spent.knowledge_skills, 4)
        self.assertIsNone(character.knowledge_skills[0].specialization)

    def test_set_skill_limits(self):
        result = services.set_skill(self.character, "Pistols", 7)
        self.assertEqual(result.kind, ErrorKind.ALREADY_AT_LIMIT)
        result = services.set_skill(self.character, "Pistols", -1)
        self.assertEqual(result.kind, ErrorKind.INVALID_ARGUMENT)

    def test_remove_skill_refunds(self):
        character = services.set_skill(self.character, "Pistols", 3).character
        result = services.remove_skill(character, "Pistols")
        self.assertTrue(result.success)
        self.assertEqual(result.character.skills, ())
        self.assertEqual(result.character.build_points_spent.skills, 0)

    def test_remove_unknown_skill_is_noop(self):
        result = services.remove_skill(self.character, "Basket Weaving")
        self.assertTrue(result.success)
        self.assertEqual(result.character, self.character)

    def test_knowledge_skills(self):
        result = services.set_knowledge_skill(self.character, "Seattle Gangs", 3, "Street")
        character = result.character
        self.assertEqual(character.build_points_spent.knowledge_skills, 6)
        skill = character.knowledge_skills[0]
        self.assertEqual(skill.category, "Street")

        character = services.set_knowledge_skill(character, "Seattle Gangs", 4, "Street").character
        self.assertEqual(character.build_points_spent.knowledge_skills, 8)
        self.assertEqual(character.knowledge_skills[0].id, skill.id)

        character = services.remove_knowledge_skill(character, skill.id).character
        self.assertEqual(character.build_points_spent.knowledge_skills, 0)

    # --- Contacts ---

    def test_contact_costs_loyalty_plus_connection(self):
        character = services.add_contact(self.character, "Mr. Johnson", "Fixer", loyalty=3, connection=4).character
        self.assertEqual(character.build_points_spent.contacts, 7)
        contact = character.contacts[0]
        removed = services.remove_contact(character, contact.id).character
        self.assertEqual(removed.build_points_spent.contacts, 0)

    def test_contact_ratings_are_clamped(self):
        character = services.add_contact(self.character, "Dodger", loyalty=9, connection=0).character
        contact = character.contacts[0]
        self.assertEqual((contact.loyalty, contact.connection), (6, 1))

    def test_career_contacts_are_free(self):
        in_career = career.enter_career_mode(self.character).character
        character = services.add_contact(in_career, "Bartender", loyalty=2, connection=2).character
        self.assertEqual(character.contacts[0].bp, 0)
        self.assertEqual(character.build_points_spent.contacts, 0)

    # --- Resources ---

    def test_resources_set_starting_nuyen(self):
        character = services.set_resources_bp(self.character, 20).character
        self.assertEqual(character.nuyen, 90000)
        self.assertEqual(character.starting_nuyen, 90000)
        self.assertEqual(character.build_points_spent.resources, 20)

    def test_resources_are_clamped(self):
        character = services.set_resources_bp(self.character, 60).character
        self.assertEqual(character.build_points_spent.resources, 50)
        self.assertEqual(character.nuyen, 275000)

    def test_lowering_resources_keeps_spending(self):
        character = services.set_resources_bp(self.character, 20).character
        ares = self.catalog.find_by_name("weapons", "Ares Predator IV")
        character = equipment.add_weapon(character, ares).character
        self.assertEqual(character.nuyen, 89650)

        character = services.set_resources_bp(character, 5).character
        self.assertEqual(character.nuyen, 19650)

    def test_lowering_resources_below_spending_fails(self):
        character = services.set_resources_bp(self.character, 20).character
        car = self.catalog.find_by_name("vehicles", "Eurocar Westwind 2000")
        character = equipment.add_vehicle(character, car).character
        self.assertEqual(character.nuyen, 0)

        result = services.set_resources_bp(character, 10)
        self.assertFalse(result.success)
        self.assertEqual(result.error, "Not enough nuyen (need 90000, have 50000)")

    def test_creation_only_operations_in_career(self):
        in_career = career.enter_career_mode(self._human()).character
        for result in (
            services.set_attribute(in_career, "bod", 3),
            services.set_skill(in_career, "Pistols", 1),
            services.add_quality(in_career, "Lucky", "Positive", 20),
            services.set_resources_bp(in_career, 10),
            services.set_metatype(in_career, self.catalog.find_by_name("metatypes", "Elf")),
        ):
            self.assertEqual(result.kind, ErrorKind.INVALID_MODE)
            self.assertEqual(result.error, "This action is only available during creation, not in career mode")


class TestConditionAndReputation(unittest.TestCase):
    def setUp(self):
        # BOD 1 and WIL 1: both monitors hold 9 boxes, overflow 1.
        self.character = services.new_character(settings=CharacterSettings())

    def test_stun_overflow_spills_into_physical(self):
        result = services.apply_damage(self.character, "stun", 11)
        condition = result.character.condition
        self.assertEqual(condition.stun_current, 9)
        self.assertEqual(condition.physical_current, 2)

    def test_physical_caps_at_monitor_plus_overflow(self):
        result = services.apply_damage(self.character, "physical", 20)
        self.assertEqual(result.character.condition.physical_current, 10)

    def test_damage_must_be_positive(self):
        result = services.apply_damage(self.character, "physical", 0)
        self.assertEqual(result.kind, ErrorKind.INVALID_ARGUMENT)

    def test_unknown_track(self):
        result = services.apply_damage(self.character, "mental", 2)
        self.assertEqual(result.kind, ErrorKind.NOT_FOUND)

    def test_heal_never_goes_below_zero(self):
        hurt = services.apply_damage(self.character, "physical", 3).character
        healed = services.heal_damage(hurt, "physical", 5).character
        self.assertEqual(healed.condition.physical_current, 0)

    def test_edge_spend_and_refresh(self):
        character = services.spend_edge(self.character).character
        self.assertEqual(calculations.edge_remaining(character), 0)

        result = services.spend_edge(character)
        self.assertFalse(result.success)
        self.assertEqual(result.error, "Not enough edge (need 1, have 0)")

        refreshed = services.refresh_edge(character).character
        self.assertEqual(calculations.edge_remaining(refreshed), 1)

    def test_reputation_never_negative(self):
        character = services.adjust_reputation(self.character, "street_cred", 2).character
        character = services.adjust_reputation(character, "notoriety", -3).character
        self.assertEqual(character.reputation.street_cred, 2)
        self.assertEqual(character.reputation.notoriety, 0)

        result = services.adjust_reputation(character, "fame", 1)
        self.assertEqual(result.kind, ErrorKind.NOT_FOUND)


if __name__ == "__main__":
    unittest.main()
