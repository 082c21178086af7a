"""
Combat
=======
Damage rules and the one-shot exchange resolver.

An exchange is: attacker strikes; if the defender survives it strikes
back; if both survive the exchange is Ongoing and the next approach
triggers a fresh one. Only a death declares a winner.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional, Set, Union
import logging
import random

from .ecs import World
from .components import Combatant, LootTable


logger = logging.getLogger(__name__)


# =============================================================================
# OUTCOMES
# =============================================================================

@dataclass(frozen=True)
class Victory:
    """The attacker killed the defender."""
    winner: int
    loser: int
    loot: int = 0


@dataclass(frozen=True)
class Defeat:
    """The defender survived and killed the attacker on the return strike."""
    winner: int
    loser: int


@dataclass(frozen=True)
class Ongoing:
    """Both sides survived; damage dealt each way."""
    dealt: int
    taken: int


CombatOutcome = Union[Victory, Defeat, Ongoing]


# =============================================================================
# DAMAGE RULES
# =============================================================================

def effective_damage(raw_damage: int, shield: int) -> int:
    """Shield soaks damage, but a hit always deals at least 1."""
    return max(1, raw_damage - shield)


def apply_damage(target: Combatant, raw_damage: int) -> int:
    """Hit a combatant, clamping health at 0. Returns the damage after shield."""
    dealt = effective_damage(raw_damage, target.shield)
    target.health = max(0, target.health - dealt)
    return dealt


def heal(target: Combatant, amount: int) -> int:
    """Restore health up to the maximum. The dead stay dead. Returns amount healed."""
    if not target.is_alive:
        return 0
    before = target.health
    target.health = min(target.max_health, target.health + max(0, amount))
    return target.health - before


def reset_combatant(target: Combatant) -> None:
    """Full heal; the only way back from death."""
    target.health = target.max_health


def roll_loot(table: Optional[LootTable], rng: random.Random) -> int:
    if table is None or not table.amounts:
        return 0
    return rng.choice(table.amounts)


# =============================================================================
# RESOLVER
# =============================================================================

class CombatResolver:
    """
    Resolves exchanges between two combatants in a World.

    An attacker may only have one resolution in flight; a second request
    while it is engaged is dropped and resolve() returns None.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()
        self._engaged: Set[int] = set()

    def is_engaged(self, attacker_id: int) -> bool:
        return attacker_id in self._engaged

    @contextmanager
    def engaged(self, attacker_id: int) -> Iterator[None]:
        """Hold the busy flag for an attacker."""
        self._engaged.add(attacker_id)
        try:
            yield
        finally:
            self._engaged.discard(attacker_id)

    def resolve(self, world: World, attacker_id: int,
                defender_id: int) -> Optional[CombatOutcome]:
        """
        Run one exchange. Returns None when dropped (attacker busy) or when
        either side is missing or already dead.
        """
        if self.is_engaged(attacker_id):
            logger.debug('Dropped combat request from busy attacker %d', attacker_id)
            return None

        attacker = world.get_component(attacker_id, Combatant)
        defender = world.get_component(defender_id, Combatant)
        if attacker is None or defender is None:
            return None
        if not attacker.is_alive or not defender.is_alive:
            return None

        with self.engaged(attacker_id):
            dealt = apply_damage(defender, attacker.damage)
            if not defender.is_alive:
                loot = roll_loot(world.get_component(defender_id, LootTable), self.rng)
                logger.debug('Entity %d killed %d (loot %d)', attacker_id, defender_id, loot)
                return Victory(attacker_id, defender_id, loot)

            taken = apply_damage(attacker, defender.damage)
            if not attacker.is_alive:
                logger.debug('Entity %d died attacking %d', attacker_id, defender_id)
                return Defeat(defender_id, attacker_id)

            return Ongoing(dealt, taken)
