import random

import pytest

from endless_dungeon.combat import CombatResolver
from endless_dungeon.ecs import World


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def world() -> World:
    return World()


@pytest.fixture
def resolver(rng) -> CombatResolver:
    return CombatResolver(rng)
