import pytest

from shadowledger.modules.character_pkg import services
from shadowledger.modules.character_pkg.schemas import CharacterSettings
from shadowledger.modules.rules_pkg.data_loader import get_catalog


@pytest.fixture
def catalog():
    return get_catalog()


@pytest.fixture
def character():
    """A fresh 400 BP creation-mode character with no metatype."""
    return services.new_character(owner_id="user_1", settings=CharacterSettings())


@pytest.fixture
def human(character, catalog):
    result = services.set_metatype(character, catalog.find_by_name("metatypes", "Human"))
    assert result.success
    return result.character


@pytest.fixture
def funded(human):
    """Human with 50 BP of resources (275,000 nuyen)."""
    result = services.set_resources_bp(human, 50)
    assert result.success
    return result.character
