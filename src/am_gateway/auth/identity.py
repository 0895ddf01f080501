"""Role-tagged identity handed to the core by the identity provider."""

from dataclasses import dataclass

from src.am_common.enums import Role


@dataclass(frozen=True)
class Identity:
    account_id: str
    role: Role

    def has_role(self, role: Role) -> bool:
        return self.role == role
