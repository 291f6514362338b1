# commission_api/services/team_roles.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Optional, Set

from commission_api.models.project import Project, TEAM_SLOTS


@dataclass(frozen=True)
class TeamRoles:
    """
    Who sits where on one project's team.

    The same employee may be a developer and hold a role slot at once;
    both facts are reported, nothing is de-duplicated.
    """
    developers: FrozenSet[int] = frozenset()
    slots: Dict[str, Optional[int]] = field(default_factory=dict)

    @classmethod
    def of(cls, project: Project) -> "TeamRoles":
        return cls(
            developers=frozenset(d.id for d in project.developers),
            slots={slot: getattr(project, fk) for slot, (fk, _, _) in TEAM_SLOTS.items()},
        )

    @property
    def developer_count(self) -> int:
        return len(self.developers)

    def is_developer(self, employee_id: int) -> bool:
        return employee_id in self.developers

    def role_holder(self, slot: str) -> Optional[int]:
        if slot not in TEAM_SLOTS:
            raise KeyError(slot)
        return self.slots.get(slot)

    def holds(self, slot: str, employee_id: int) -> bool:
        holder = self.role_holder(slot)
        return holder is not None and holder == employee_id

    def member_ids(self) -> Set[int]:
        out = set(self.developers)
        out.update(v for v in self.slots.values() if v is not None)
        return out
