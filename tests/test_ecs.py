from endless_dungeon.components import Combatant, EnemyTag, GridPosition, Renderable


def test_query_yields_matching_entities_in_creation_order(world) -> None:
    a = world.create_entity(GridPosition(0, 0), Combatant())
    world.create_entity(GridPosition(1, 0))
    c = world.create_entity(Combatant(), GridPosition(2, 0))

    assert [result[0] for result in world.query(GridPosition, Combatant)] == [a, c]
    assert list(world.query(Renderable)) == []
    assert list(world.query()) == []


def test_destroy_during_iteration_is_safe(world) -> None:
    ids = [world.create_entity(GridPosition(i, 0), EnemyTag()) for i in range(4)]
    for entity_id, _, _ in world.query(GridPosition, EnemyTag):
        world.destroy_entity(entity_id)

    assert list(world.query(GridPosition)) == []
    assert all(world.get_component(entity_id, EnemyTag) is None for entity_id in ids)


def test_entities_at_filters_by_cell_and_components(world) -> None:
    enemy = world.create_entity(GridPosition(3, 4), EnemyTag())
    marker = world.create_entity(GridPosition(3, 4))
    world.create_entity(GridPosition(4, 3), EnemyTag())

    assert list(world.entities_at(3, 4)) == [enemy, marker]
    assert list(world.entities_at(3, 4, EnemyTag)) == [enemy]
    assert world.first_at(3, 4, EnemyTag) == enemy
    assert world.first_at(0, 0) is None


def test_components_can_be_added_later(world) -> None:
    entity_id = world.create_entity(GridPosition(1, 1))
    world.add_component(entity_id, Combatant(max_health=10, health=10))

    assert world.get_component(entity_id, Combatant).health == 10
    assert world.first_at(1, 1, Combatant) == entity_id
