from __future__ import annotations

from dataclasses import dataclass, field

from .entities import Enemy, Projectile, Tower


@dataclass(slots=True)
class EntityRegistry:
    """
    Live towers, enemies and projectiles keyed by identifier.

    Identifiers come from one counter shared by every entity type and only
    grow. Dict order is insertion order, so iterating a collection visits
    entities by ascending identifier. Lookups return None for entities that
    no longer exist; callers treat that as a normal outcome.
    """
    next_id: int = 0
    towers: dict[int, Tower] = field(default_factory=dict)
    enemies: dict[int, Enemy] = field(default_factory=dict)
    projectiles: dict[int, Projectile] = field(default_factory=dict)
    _tower_cells: dict[tuple[int, int], int] = field(default_factory=dict)

    def issue_id(self) -> int:
        entity_id = self.next_id
        self.next_id += 1
        return entity_id

    # towers

    def add_tower(self, tower: Tower) -> Tower:
        cell = (tower.cell_x, tower.cell_y)
        if cell in self._tower_cells:
            raise ValueError(f"Cell {cell} already hosts tower {self._tower_cells[cell]}")
        self.towers[tower.id] = tower
        self._tower_cells[cell] = tower.id
        return tower

    def remove_tower(self, tower_id: int) -> Tower | None:
        tower = self.towers.pop(tower_id, None)
        if tower is not None:
            self._tower_cells.pop((tower.cell_x, tower.cell_y), None)
        return tower

    def get_tower(self, tower_id: int) -> Tower | None:
        return self.towers.get(tower_id)

    def tower_at(self, cell_x: int, cell_y: int) -> Tower | None:
        tower_id = self._tower_cells.get((cell_x, cell_y))
        if tower_id is None:
            return None
        return self.towers.get(tower_id)

    # enemies

    def add_enemy(self, enemy: Enemy) -> Enemy:
        self.enemies[enemy.id] = enemy
        return enemy

    def remove_enemy(self, enemy_id: int) -> Enemy | None:
        return self.enemies.pop(enemy_id, None)

    def get_enemy(self, enemy_id: int) -> Enemy | None:
        return self.enemies.get(enemy_id)

    # projectiles

    def add_projectile(self, projectile: Projectile) -> Projectile:
        self.projectiles[projectile.id] = projectile
        return projectile

    def remove_projectile(self, projectile_id: int) -> Projectile | None:
        return self.projectiles.pop(projectile_id, None)
