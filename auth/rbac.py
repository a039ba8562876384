"""
auth/rbac.py -- Role-based ability rules.

An Ability is the list of rules granted to one authenticated principal. A
rule names an action, a subject type and optional attribute conditions that
a concrete resource must match:

  USER   read   User  {id: <own id>}
  USER   update User  {id: <own id>}
  ADMIN  manage all

MANAGE matches every action and ALL matches every subject. Asking about a
subject type without a resource (can(READ, USER)) answers "is there any
rule that could allow this", so conditional rules count. Pass the resource
to check the conditions.

Unknown roles get an empty Ability (nothing allowed).
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from auth.models import TokenPayload, UserRole


class Action(str, Enum):
    MANAGE = "manage"
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


class Subject(str, Enum):
    ALL = "all"
    USER = "User"
    ADMIN = "Admin"


@dataclass(frozen=True)
class Rule:
    action: Action
    subject: Subject
    conditions: Mapping[str, Any] = field(default_factory=dict)

    def applies_to(self, action: Action, subject: Subject) -> bool:
        return self.action in (Action.MANAGE, action) and self.subject in (Subject.ALL, subject)

    def matches(self, resource: Any) -> bool:
        return all(_attribute(resource, key) == expected for key, expected in self.conditions.items())


def _attribute(resource: Any, key: str) -> Any:
    if isinstance(resource, Mapping):
        return resource.get(key)
    return getattr(resource, key, None)


class Ability:
    def __init__(self, rules: list[Rule] | None = None) -> None:
        self.rules: tuple[Rule, ...] = tuple(rules or ())

    def can(self, action: Action, subject: Subject, resource: Any = None) -> bool:
        for rule in self.rules:
            if not rule.applies_to(action, subject):
                continue
            if resource is None or rule.matches(resource):
                return True
        return False

    def cannot(self, action: Action, subject: Subject, resource: Any = None) -> bool:
        return not self.can(action, subject, resource)


def _rules_for_user(principal: TokenPayload) -> list[Rule]:
    own = {"id": principal.user_id}
    return [Rule(Action.READ, Subject.USER, own), Rule(Action.UPDATE, Subject.USER, own)]


def _rules_for_admin(principal: TokenPayload) -> list[Rule]:
    return [Rule(Action.MANAGE, Subject.ALL)]


_ROLE_RULES: dict[UserRole, Callable[[TokenPayload], list[Rule]]] = {
    UserRole.USER: _rules_for_user,
    UserRole.ADMIN: _rules_for_admin,
}


def create_ability_for_user(principal: TokenPayload) -> Ability:
    define_rules = _ROLE_RULES.get(principal.role)
    if define_rules is None:
        return create_empty_ability()
    return Ability(define_rules(principal))


def create_empty_ability() -> Ability:
    return Ability()
