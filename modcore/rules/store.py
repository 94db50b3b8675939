"""JSON storage for rules (``rules.json``) and verdicts (``filter_results.json``)."""

from __future__ import annotations

from typing import Callable, Optional

from modcore.common.storage import Storage
from modcore.common.types import record_from_dict, record_to_dict
from modcore.rules.models import FilterVerdict, Rule

GENERATION = "rules"


class RuleStore:
    def __init__(self, storage: Storage) -> None:
        self._storage = storage
        self._table = storage.table("rules")

    @property
    def generation(self) -> int:
        return self._storage.generation(GENERATION)

    def get(self, rule_id: int) -> Optional[Rule]:
        row = self._table.get(rule_id)
        return record_from_dict(Rule, row) if row else None

    def list(self) -> list[Rule]:
        return [record_from_dict(Rule, r) for r in sorted(self._table.all(), key=lambda r: r["id"])]

    def create(self, rule: Rule) -> Rule:
        row = record_to_dict(rule)
        row.pop("id")
        stored = self._table.insert(row)
        self._storage.bump(GENERATION)
        return record_from_dict(Rule, stored)

    def save(self, rule: Rule) -> Rule:
        self._table.update(rule.id, record_to_dict(rule))
        self._storage.bump(GENERATION)
        return rule

    def delete(self, rule_id: int) -> bool:
        deleted = self._table.delete(rule_id)
        if deleted:
            self._storage.bump(GENERATION)
        return deleted


class VerdictStore:
    def __init__(self, storage: Storage) -> None:
        self._table = storage.table("filter_results")

    def get(self, verdict_id: int) -> Optional[FilterVerdict]:
        row = self._table.get(verdict_id)
        return record_from_dict(FilterVerdict, row) if row else None

    def find(self, predicate: Callable[[dict], bool]) -> list[FilterVerdict]:
        rows = sorted(self._table.find(predicate), key=lambda r: r["id"])
        return [record_from_dict(FilterVerdict, r) for r in rows]

    def create(self, verdict: FilterVerdict) -> FilterVerdict:
        row = record_to_dict(verdict)
        row.pop("id")
        return record_from_dict(FilterVerdict, self._table.insert(row))

    def save(self, verdict: FilterVerdict) -> FilterVerdict:
        self._table.update(verdict.id, record_to_dict(verdict))
        return verdict
